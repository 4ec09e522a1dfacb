"""Strategies for choosing which message queue a message is sent to."""

from __future__ import annotations

import random
import threading
import time
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .message import Message, MessageQueue

_FNV32_OFFSET_BASIS = 0x811C9DC5
_FNV32_PRIME = 0x01000193
_UINT32_MASK = 0xFFFFFFFF


def _fnv1a_32(data: bytes) -> int:
    h = _FNV32_OFFSET_BASIS
    for byte in data:
        h ^= byte
        h = (h * _FNV32_PRIME) & _UINT32_MASK
    return h


def _require_queues(queues: Sequence[Optional[MessageQueue]]) -> None:
    if not queues:
        raise ValueError("no message queue to select from")


class QueueSelector(ABC):
    """Picks one queue out of a topic's queues for a message."""

    @abstractmethod
    def select(
        self, message: Message, queues: Sequence[Optional[MessageQueue]]
    ) -> Optional[MessageQueue]:
        """Return the queue ``message`` should be sent to."""


class ManualQueueSelector(QueueSelector):
    """Uses the queue set on the message itself."""

    def select(
        self, message: Message, queues: Sequence[Optional[MessageQueue]]
    ) -> Optional[MessageQueue]:
        return message.queue


class RandomQueueSelector(QueueSelector):
    """Picks a random queue each time."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rand = random.Random(seed if seed is not None else time.time_ns())
        self._lock = threading.Lock()

    def select(
        self, message: Message, queues: Sequence[Optional[MessageQueue]]
    ) -> Optional[MessageQueue]:
        _require_queues(queues)
        with self._lock:
            index = self._rand.randrange(len(queues))
        return queues[index]


class RoundRobinQueueSelector(QueueSelector):
    """Cycles through the queues, keeping a separate position per topic."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._indexer: dict[str, int] = {}

    def select(
        self, message: Message, queues: Sequence[Optional[MessageQueue]]
    ) -> Optional[MessageQueue]:
        _require_queues(queues)
        with self._lock:
            index = (self._indexer.get(message.topic, 0) + 1) & _UINT32_MASK
            self._indexer[message.topic] = index
        return queues[index % len(queues)]


class HashQueueSelector(QueueSelector):
    """Picks a queue by hashing the sharding key; random when there is none."""

    def __init__(self, random_selector: Optional[QueueSelector] = None) -> None:
        self._random = random_selector if random_selector is not None else RandomQueueSelector()

    def select(
        self, message: Message, queues: Sequence[Optional[MessageQueue]]
    ) -> Optional[MessageQueue]:
        key = message.get_sharding_key()
        if not key:
            return self._random.select(message, queues)
        _require_queues(queues)
        return queues[_fnv1a_32(key.encode("utf-8")) % len(queues)]