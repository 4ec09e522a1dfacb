"""Name server address checks and small shared helpers."""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, Optional

from .errors import IllegalIPError, MultiIPError, NoNameserverError

_IPV4_REGEX = re.compile(
    r"^((25[0-5]|2[0-4]\d|((1\d{2})|([1-9]?\d)))\.){3}(25[0-5]|2[0-4]\d|((1\d{2})|([1-9]?\d)))",
    re.ASCII,
)
_IPV6_REGEX = re.compile(
    r"(([0-9a-fA-F]{1,4}:){7,7}[0-9a-fA-F]{1,4}|([0-9a-fA-F]{1,4}:){1,7}:|"
    r"([0-9a-fA-F]{1,4}:){1,6}:[0-9a-fA-F]{1,4}|([0-9a-fA-F]{1,4}:){1,5}(:[0-9a-fA-F]{1,4}){1,2}|"
    r"([0-9a-fA-F]{1,4}:){1,4}(:[0-9a-fA-F]{1,4}){1,3}|([0-9a-fA-F]{1,4}:){1,3}(:[0-9a-fA-F]{1,4}){1,4}|"
    r"([0-9a-fA-F]{1,4}:){1,2}(:[0-9a-fA-F]{1,4}){1,5}|[0-9a-fA-F]{1,4}:((:[0-9a-fA-F]{1,4}){1,6})|"
    r":((:[0-9a-fA-F]{1,4}){1,7}|:)|fe80:(:[0-9a-fA-F]{0,4}){0,4}%[0-9a-zA-Z]{1,}|"
    r"::(ffff(:0{1,4}){0,1}:){0,1}((25[0-5]|(2[0-4]|1{0,1}[0-9]){0,1}[0-9])\.){3,3}"
    r"(25[0-5]|(2[0-4]|1{0,1}[0-9]){0,1}[0-9])|([0-9a-fA-F]{1,4}:){1,4}:"
    r"((25[0-5]|(2[0-4]|1{0,1}[0-9]){0,1}[0-9])\.){3,3}(25[0-5]|(2[0-4]|1{0,1}[0-9]){0,1}[0-9]))",
    re.ASCII,
)
_HTTP_PREFIX_REGEX = re.compile(r"^(http|https)://")

_panic_handler: Optional[Callable[[BaseException], Any]] = None


def verify_ip(ip: str) -> None:
    """Check that ``ip`` holds exactly one IP address or is an http(s) URL.

    Raises MultiIPError or IllegalIPError otherwise.
    """
    if _HTTP_PREFIX_REGEX.match(ip):
        return
    if ";" in ip:
        raise MultiIPError()
    ipv4s = [m.group(0) for m in _IPV4_REGEX.finditer(ip)]
    ipv6s = [m.group(0) for m in _IPV6_REGEX.finditer(ip)]
    if not ipv4s and not ipv6s:
        raise IllegalIPError()
    if len(ipv4s) > 1 or len(ipv6s) > 1:
        raise MultiIPError()


def new_namesrv_addr(*args: str) -> list[str]:
    """Build a verified list of name server addresses.

    A single argument may hold several addresses separated by ';'.
    """
    if not args:
        raise NoNameserverError()
    servers = args[0].split(";") if len(args) == 1 else list(args)
    for server in servers:
        verify_ip(server)
    return list(servers)


def check_namesrv_addr(addrs: Iterable[str]) -> None:
    """Verify every address, raising on the first bad one."""
    for server in addrs:
        verify_ip(server)


def set_panic_handler(handler: Optional[Callable[[BaseException], Any]]) -> None:
    """Install the handler ``with_recover`` passes caught exceptions to."""
    global _panic_handler
    _panic_handler = handler


def with_recover(fn: Callable[[], Any]) -> None:
    """Run ``fn``; hand any exception to the panic handler if one is set."""
    try:
        fn()
    except Exception as exc:
        handler = _panic_handler
        if handler is None:
            raise
        handler(exc)


def diff(origin: list[str], latest: list[str]) -> bool:
    """Return True if the two address lists differ as sets or in length."""
    return len(origin) != len(latest) or set(origin) != set(latest)