"""Pluggable logger used by the client, with module-level helpers."""

from __future__ import annotations

import logging
import os
import sys
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

LOG_LEVEL_ENV = "ROCKETMQ_LOG_LEVEL"

LOG_KEY_CONSUMER_GROUP = "consumerGroup"
LOG_KEY_TOPIC = "topic"
LOG_KEY_MESSAGE_QUEUE = "MessageQueue"
LOG_KEY_UNDERLAY_ERROR = "underlayError"
LOG_KEY_BROKER = "broker"
LOG_KEY_VALUE_CHANGED_FROM = "changedFrom"
LOG_KEY_VALUE_CHANGED_TO = "changeTo"
LOG_KEY_PULL_REQUEST = "PullRequest"
LOG_KEY_TIMESTAMP = "timestamp"

Fields = Optional[Mapping[str, Any]]

_LEVELS = {
    "debug": logging.DEBUG,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}

_FORMAT = "%(asctime)s %(levelname)s %(message)s"

_LOGGER_METHODS = ("debug", "info", "warning", "error", "fatal", "level", "output_path")


class Logger(ABC):
    """Interface every client logger implements."""

    @abstractmethod
    def debug(self, msg: str, fields: Fields = None) -> None: ...

    @abstractmethod
    def info(self, msg: str, fields: Fields = None) -> None: ...

    @abstractmethod
    def warning(self, msg: str, fields: Fields = None) -> None: ...

    @abstractmethod
    def error(self, msg: str, fields: Fields = None) -> None: ...

    @abstractmethod
    def fatal(self, msg: str, fields: Fields = None) -> None: ...

    @abstractmethod
    def level(self, level: str) -> None: ...

    @abstractmethod
    def output_path(self, path: str) -> None: ...


def _is_blank(msg: str, fields: Fields) -> bool:
    return not msg and not fields


def _render(msg: str, fields: Fields) -> str:
    if not fields:
        return msg
    rendered = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
    return f"{msg} {rendered}" if msg else rendered


def _default_stdlib_logger() -> logging.Logger:
    logger = logging.getLogger("rocketmq_client")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    return logger


class DefaultLogger(Logger):
    """Logger backed by the standard ``logging`` module."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger if logger is not None else _default_stdlib_logger()
        self.level(os.environ.get(LOG_LEVEL_ENV, ""))

    def _log(self, level: int, msg: str, fields: Fields) -> None:
        if _is_blank(msg, fields):
            return
        self.logger.log(level, _render(msg, fields))

    def debug(self, msg: str, fields: Fields = None) -> None:
        self._log(logging.DEBUG, msg, fields)

    def info(self, msg: str, fields: Fields = None) -> None:
        self._log(logging.INFO, msg, fields)

    def warning(self, msg: str, fields: Fields = None) -> None:
        self._log(logging.WARNING, msg, fields)

    def error(self, msg: str, fields: Fields = None) -> None:
        self._log(logging.ERROR, msg, fields)

    def fatal(self, msg: str, fields: Fields = None) -> None:
        """Log at critical level and terminate with exit status 1."""
        if _is_blank(msg, fields):
            return
        self.logger.critical(_render(msg, fields))
        raise SystemExit(1)

    def level(self, level: str) -> None:
        self.logger.setLevel(_LEVELS.get((level or "").lower(), logging.INFO))

    def output_path(self, path: str) -> None:
        """Send all further output to ``path``, appending to it."""
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        handler.setFormatter(logging.Formatter(_FORMAT))
        for old in list(self.logger.handlers):
            self.logger.removeHandler(old)
            if isinstance(old, logging.FileHandler):
                old.close()
        self.logger.addHandler(handler)


_rlog: Logger = DefaultLogger()


def set_logger(logger: Logger) -> None:
    """Replace the logger used by the whole client.

    Raises TypeError if ``logger`` lacks any of the logger methods.
    """
    missing = [name for name in _LOGGER_METHODS if not callable(getattr(logger, name, None))]
    if missing:
        raise TypeError(f"logger is missing methods: {', '.join(missing)}")
    global _rlog
    _rlog = logger


def set_log_level(level: str) -> None:
    if not level:
        return
    _rlog.level(level)


def set_output_path(path: str) -> None:
    if not path:
        return
    _rlog.output_path(path)


def debug(msg: str, fields: Fields = None) -> None:
    _rlog.debug(msg, fields)


def info(msg: str, fields: Fields = None) -> None:
    if _is_blank(msg, fields):
        return
    _rlog.info(msg, fields)


def warning(msg: str, fields: Fields = None) -> None:
    if _is_blank(msg, fields):
        return
    _rlog.warning(msg, fields)


def error(msg: str, fields: Fields = None) -> None:
    _rlog.error(msg, fields)


def fatal(msg: str, fields: Fields = None) -> None:
    _rlog.fatal(msg, fields)