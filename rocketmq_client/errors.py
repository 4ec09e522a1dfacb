"""Exception types raised by the client."""

from __future__ import annotations


class RocketMQError(Exception):
    """Base class for every error raised by the client."""


class NoNameserverError(RocketMQError, ValueError):
    """No name server address was given."""

    def __init__(self, message: str = "nameServerAddrs can't be empty.") -> None:
        super().__init__(message)


class MultiIPError(RocketMQError, ValueError):
    """An address string holds more than one IP address."""

    def __init__(self, message: str = "multiple IP addr does not support") -> None:
        super().__init__(message)


class IllegalIPError(RocketMQError, ValueError):
    """An address string holds no valid IP address."""

    def __init__(self, message: str = "IP addr error") -> None:
        super().__init__(message)


class MQBrokerError(RocketMQError):
    """An error response sent back by a broker."""

    def __init__(self, response_code: int, error_message: str) -> None:
        self.response_code = response_code
        self.error_message = error_message
        super().__init__(f"CODE: {response_code}  DESC: {error_message}")


class RemotingError(RocketMQError):
    """A failure in the remoting (network) layer."""


class MQClientError(RocketMQError):
    """An error detected on the client side."""

    def __init__(self, code: int, msg: str) -> None:
        self.code = code
        self.msg = msg
        super().__init__(f"CODE: {code}  DESC: {msg}")


def is_remoting_err(err: BaseException | None) -> bool:
    """Return True if ``err`` is a remoting error."""
    return isinstance(err, RemotingError)