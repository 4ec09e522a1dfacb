"""Results of send and pull operations."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

from .message import LocalTransactionState, Message, MessageExt, MessageQueue


class SendStatus(enum.IntEnum):
    """Outcome of sending a message to a broker."""

    SEND_OK = 0
    SEND_FLUSH_DISK_TIMEOUT = 1
    SEND_FLUSH_SLAVE_TIMEOUT = 2
    SEND_SLAVE_NOT_AVAILABLE = 3
    SEND_UNKNOWN_ERROR = 4


@dataclass
class SendResult:
    """What a broker reported after a message was sent."""

    status: SendStatus = SendStatus.SEND_UNKNOWN_ERROR
    msg_id: str = ""
    message_queue: Optional[MessageQueue] = None
    queue_offset: int = 0
    transaction_id: str = ""
    offset_msg_id: str = ""
    region_id: str = ""
    trace_on: bool = False

    def __str__(self) -> str:
        queue = str(self.message_queue) if self.message_queue is not None else "<nil>"
        return (
            f"SendResult [sendStatus={int(self.status)}, msgIds={self.msg_id}, "
            f"offsetMsgId={self.offset_msg_id}, queueOffset={self.queue_offset}, "
            f"messageQueue={queue}]"
        )


@dataclass
class TransactionSendResult(SendResult):
    """Send result of a transactional message, with its local transaction state."""

    state: LocalTransactionState = LocalTransactionState.UNKNOW_STATE


class PullStatus(enum.IntEnum):
    """Outcome of pulling messages from a broker."""

    PULL_FOUND = 0
    PULL_NO_NEW_MSG = 1
    PULL_NO_MSG_MATCHED = 2
    PULL_OFFSET_ILLEGAL = 3
    PULL_BROKER_TIMEOUT = 4


@dataclass
class PullResult:
    """Messages and offsets returned by a pull request."""

    next_begin_offset: int = 0
    min_offset: int = 0
    max_offset: int = 0
    status: PullStatus = PullStatus.PULL_FOUND
    suggest_which_broker_id: int = 0
    message_exts: list[MessageExt] = field(default_factory=list)
    body: bytes = b""

    def get_messages(self) -> list[Message]:
        """Return the pulled messages as plain messages."""
        return list(self.message_exts)