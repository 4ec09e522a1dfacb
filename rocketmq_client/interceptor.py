"""Chaining of producer/consumer interceptors."""

from __future__ import annotations

from typing import Any, Callable, Optional

Invoker = Callable[[Any, Any, Any], Any]
Interceptor = Callable[[Any, Any, Any, Invoker], Any]


def chain_interceptors(*interceptors: Interceptor) -> Optional[Interceptor]:
    """Combine interceptors into one that runs them in the given order.

    Returns None when no interceptor is given.
    """
    if not interceptors:
        return None
    if len(interceptors) == 1:
        return interceptors[0]

    last = len(interceptors) - 1

    def link(index: int, final: Invoker) -> Invoker:
        if index == last:
            return final

        def invoke(ctx: Any, req: Any, reply: Any) -> Any:
            return interceptors[index + 1](ctx, req, reply, link(index + 1, final))

        return invoke

    def chained(ctx: Any, req: Any, reply: Any, invoker: Invoker) -> Any:
        return interceptors[0](ctx, req, reply, link(0, invoker))

    return chained