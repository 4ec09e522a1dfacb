"""Immutable call contexts and the values the client stores in them."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .message import Message, MessageExt, MessageQueue, MessageType
from .result import SendResult

CONSUMER_PUSH = "ConsumerPush"
CONSUMER_PULL = "ConsumerPull"
PROP_CTX_TYPE = "ConsumeContextType"

MAX_INT32 = 2**31 - 1


class _CtxKey(enum.Enum):
    METHOD = enum.auto()
    MSG_CTX = enum.auto()
    ORDERLY_CTX = enum.auto()
    CONCURRENTLY_CTX = enum.auto()
    PRODUCER_CTX = enum.auto()


class Context:
    """An immutable key/value context; ``with_value`` returns a new one."""

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping[Any, Any]] = None) -> None:
        self._values = dict(values or {})

    def with_value(self, key: Any, value: Any) -> "Context":
        values = dict(self._values)
        values[key] = value
        return Context(values)

    def value(self, key: Any) -> Any:
        """Return the value stored under ``key``, or None."""
        return self._values.get(key)


BACKGROUND = Context()


class CommunicationMode(str, enum.Enum):
    SEND_SYNC = "SendSync"
    SEND_ONEWAY = "SendOneway"
    SEND_ASYNC = "SendAsync"


class ConsumeReturnType(str, enum.Enum):
    SUCCESS = "SUCCESS"
    TIMEOUT = "TIMEOUT"
    EXCEPTION = "EXCEPTION"
    NULL = "RETURNNULL"
    FAILED = "FAILED"

    def ordinal(self) -> int:
        return list(ConsumeReturnType).index(self)


@dataclass
class ConsumeMessageContext:
    consumer_group: str = ""
    msgs: list[MessageExt] = field(default_factory=list)
    mq: Optional[MessageQueue] = None
    success: bool = False
    status: str = ""
    properties: dict[str, str] = field(default_factory=dict)


@dataclass
class ConsumeOrderlyContext:
    mq: MessageQueue = field(default_factory=MessageQueue)
    auto_commit: bool = True
    suspend_current_queue_time_millis: int = -1


@dataclass
class ConsumeConcurrentlyContext:
    mq: MessageQueue = field(default_factory=MessageQueue)
    delay_level_when_next_consume: int = 0
    ack_index: int = MAX_INT32


@dataclass
class ProducerCtx:
    producer_group: str = ""
    message: Message = field(default_factory=Message)
    mq: MessageQueue = field(default_factory=MessageQueue)
    broker_addr: str = ""
    born_host: str = ""
    communication_mode: Optional[CommunicationMode] = None
    send_result: Optional[SendResult] = None
    props: dict[str, str] = field(default_factory=dict)
    msg_type: MessageType = MessageType.NORMAL_MSG
    namespace: str = ""


def _require(ctx: Context, key: _CtxKey, what: str) -> Any:
    value = ctx.value(key)
    if value is None:
        raise KeyError(f"{what} not set in context")
    return value


def with_method(ctx: Context, mode: CommunicationMode) -> Context:
    """Return a context that records the calling method."""
    return ctx.with_value(_CtxKey.METHOD, mode)


def get_method(ctx: Context) -> CommunicationMode:
    """Return the calling method; raises KeyError if none was set."""
    return _require(ctx, _CtxKey.METHOD, "method")


def with_consumer_ctx(ctx: Context, consumer_ctx: ConsumeMessageContext) -> Context:
    return ctx.with_value(_CtxKey.MSG_CTX, consumer_ctx)


def get_consumer_ctx(ctx: Context) -> Optional[ConsumeMessageContext]:
    """Return the push consumer's message context, or None."""
    return ctx.value(_CtxKey.MSG_CTX)


def with_orderly_ctx(ctx: Context, orderly_ctx: ConsumeOrderlyContext) -> Context:
    return ctx.with_value(_CtxKey.ORDERLY_CTX, orderly_ctx)


def get_orderly_ctx(ctx: Context) -> Optional[ConsumeOrderlyContext]:
    return ctx.value(_CtxKey.ORDERLY_CTX)


def with_concurrently_ctx(ctx: Context, concurrently_ctx: ConsumeConcurrentlyContext) -> Context:
    return ctx.with_value(_CtxKey.CONCURRENTLY_CTX, concurrently_ctx)


def get_concurrently_ctx(ctx: Context) -> Optional[ConsumeConcurrentlyContext]:
    return ctx.value(_CtxKey.CONCURRENTLY_CTX)


def with_producer_ctx(ctx: Context, producer_ctx: ProducerCtx) -> Context:
    return ctx.with_value(_CtxKey.PRODUCER_CTX, producer_ctx)


def get_producer_ctx(ctx: Context) -> ProducerCtx:
    """Return the producer context; raises KeyError if none was set."""
    return _require(ctx, _CtxKey.PRODUCER_CTX, "producer context")