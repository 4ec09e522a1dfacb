"""Messages, message queues, message ids and the broker's message wire format."""

from __future__ import annotations

import enum
import ipaddress
import os
import socket
import struct
import threading
import time
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping, Optional, Union

PROPERTY_KEY_SEPARATOR = " "
PROPERTY_KEYS = "KEYS"
PROPERTY_TAGS = "TAGS"
PROPERTY_WAIT_STORE_MSG_OK = "WAIT"
PROPERTY_DELAY_TIME_LEVEL = "DELAY"
PROPERTY_RETRY_TOPIC = "RETRY_TOPIC"
PROPERTY_REAL_TOPIC = "REAL_TOPIC"
PROPERTY_REAL_QUEUE_ID = "REAL_QID"
PROPERTY_TRANSACTION_PREPARED = "TRAN_MSG"
PROPERTY_PRODUCER_GROUP = "PGROUP"
PROPERTY_MIN_OFFSET = "MIN_OFFSET"
PROPERTY_MAX_OFFSET = "MAX_OFFSET"
PROPERTY_BUYER_ID = "BUYER_ID"
PROPERTY_ORIGIN_MESSAGE_ID = "ORIGIN_MESSAGE_ID"
PROPERTY_TRANSFER_FLAG = "TRANSFER_FLAG"
PROPERTY_CORRECTION_FLAG = "CORRECTION_FLAG"
PROPERTY_MQ2_FLAG = "MQ2_FLAG"
PROPERTY_RECONSUME_TIME = "RECONSUME_TIME"
PROPERTY_MSG_REGION = "MSG_REGION"
PROPERTY_TRACE_SWITCH = "TRACE_ON"
PROPERTY_UNIQUE_CLIENT_MESSAGE_ID_KEY_INDEX = "UNIQ_KEY"
PROPERTY_MAX_RECONSUME_TIMES = "MAX_RECONSUME_TIMES"
PROPERTY_CONSUME_START_TIME = "CONSUME_START_TIME"
PROPERTY_TRANSACTION_PREPARED_QUEUE_OFFSET = "TRAN_PREPARED_QUEUE_OFFSET"
PROPERTY_TRANSACTION_CHECK_TIMES = "TRANSACTION_CHECK_TIMES"
PROPERTY_CHECK_IMMUNITY_TIME_IN_SECONDS = "CHECK_IMMUNITY_TIME_IN_SECONDS"
PROPERTY_SHARDING_KEY = "SHARDING_KEY"
PROPERTY_TRANSACTION_ID = "__transactionId__"

FLAG_COMPRESSED = 0x1
FLAG_BORN_HOST_V6 = 0x1 << 4
FLAG_STORE_HOST_V6 = 0x1 << 5
MSG_ID_LENGTH = 8 + 8

PROPERTY_SEPARATOR = "\x02"
NAME_VALUE_SEPARATOR = "\x01"

COMPRESSED_FLAG = 0x1
MULTI_TAGS_FLAG = 0x1 << 1
TRANSACTION_NOT_TYPE = 0
TRANSACTION_PREPARED_TYPE = 0x1 << 2
TRANSACTION_COMMIT_TYPE = 0x2 << 2
TRANSACTION_ROLLBACK_TYPE = 0x3 << 2


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def _to_int16(value: int) -> int:
    value &= 0xFFFF
    return value - (1 << 16) if value & 0x8000 else value


def _hash_string(text: str) -> int:
    h = 0
    for byte in text.encode("utf-8"):
        h = _to_int32(31 * h + byte)
    return h


def _address_from_bytes(raw: bytes) -> str:
    if len(raw) == 4:
        return str(ipaddress.IPv4Address(raw))
    if len(raw) == 16:
        addr = ipaddress.IPv6Address(raw)
        mapped = addr.ipv4_mapped
        return str(mapped) if mapped is not None else str(addr)
    if not raw:
        return "<nil>"
    return "?" + raw.hex()


def _uncompress(data: bytes) -> bytes:
    try:
        return zlib.decompress(data)
    except zlib.error:
        return data


@dataclass(frozen=True)
class MessageQueue:
    """A single queue of a topic on a broker."""

    topic: str = ""
    broker_name: str = ""
    queue_id: int = 0

    def __str__(self) -> str:
        return (
            f"MessageQueue [topic={self.topic}, brokerName={self.broker_name}, "
            f"queueId={self.queue_id}]"
        )

    def hash_code(self) -> int:
        """Hash compatible with the broker's own queue hashing."""
        result = 1
        result = 31 * result + _hash_string(self.broker_name)
        result = 31 * result + self.queue_id
        result = 31 * result + _hash_string(self.topic)
        return result


class Message:
    """A message to be sent, with thread-safe user properties."""

    def __init__(
        self,
        topic: str = "",
        body: bytes = b"",
        *,
        flag: int = 0,
        transaction_id: str = "",
        batch: bool = False,
        compress: bool = False,
        queue: Optional[MessageQueue] = None,
        properties: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.topic = topic
        self.body = body if body is not None else b""
        self.flag = flag
        self.transaction_id = transaction_id
        self.batch = batch
        self.compress = compress
        self.queue = queue
        self._properties: dict[str, str] = dict(properties or {})
        self._lock = threading.RLock()

    def with_properties(self, properties: Mapping[str, str]) -> None:
        """Replace all properties."""
        with self._lock:
            self._properties = dict(properties)

    def with_property(self, key: str, value: str) -> None:
        """Set one property; empty keys or values are ignored."""
        if not key or not value:
            return
        with self._lock:
            self._properties[key] = value

    def get_property(self, key: str) -> str:
        with self._lock:
            return self._properties.get(key, "")

    def remove_property(self, key: str) -> str:
        """Remove a property and return its old value, or "" if absent."""
        with self._lock:
            return self._properties.pop(key, "")

    def marshall_properties(self) -> str:
        with self._lock:
            return "".join(
                f"{key}{NAME_VALUE_SEPARATOR}{value}{PROPERTY_SEPARATOR}"
                for key, value in self._properties.items()
            )

    def unmarshal_properties(self, data: Union[bytes, str]) -> None:
        """Merge properties encoded by ``marshall_properties`` into this message."""
        text = data.decode("utf-8", errors="replace") if isinstance(data, (bytes, bytearray, memoryview)) else data
        with self._lock:
            for item in text.split(PROPERTY_SEPARATOR):
                pair = item.split(NAME_VALUE_SEPARATOR)
                if len(pair) == 2:
                    self._properties[pair[0]] = pair[1]

    def get_properties(self) -> dict[str, str]:
        """Return a copy of all properties."""
        with self._lock:
            return dict(self._properties)

    def with_delay_time_level(self, level: int) -> "Message":
        """Set the delay level (1 = 1s, 2 = 5s, 3 = 10s, ... up to 18 = 2h)."""
        self.with_property(PROPERTY_DELAY_TIME_LEVEL, str(level))
        return self

    def with_tag(self, tags: str) -> "Message":
        self.with_property(PROPERTY_TAGS, tags)
        return self

    def with_keys(self, keys: Iterable[str]) -> "Message":
        self.with_property(PROPERTY_KEYS, "".join(k + PROPERTY_KEY_SEPARATOR for k in keys))
        return self

    def with_sharding_key(self, key: str) -> "Message":
        self.with_property(PROPERTY_SHARDING_KEY, key)
        return self

    def get_tags(self) -> str:
        return self.get_property(PROPERTY_TAGS)

    def get_keys(self) -> str:
        return self.get_property(PROPERTY_KEYS)

    def get_sharding_key(self) -> str:
        return self.get_property(PROPERTY_SHARDING_KEY)

    def marshal(self) -> bytes:
        """Encode the message in the batch wire layout."""
        properties = self.marshall_properties().encode("utf-8")
        body = bytes(self.body)
        store_size = 4 + 4 + 4 + 4 + 4 + len(body) + 2 + len(properties)
        header = struct.pack(
            ">IIIII",
            store_size & 0xFFFFFFFF,
            0,
            0,
            self.flag & 0xFFFFFFFF,
            len(body) & 0xFFFFFFFF,
        )
        return header + body + struct.pack(">H", len(properties) & 0xFFFF) + properties

    def __str__(self) -> str:
        body = bytes(self.body).decode("utf-8", errors="replace")
        return (
            f"[topic={self.topic}, body={body}, Flag={self.flag}, "
            f"properties={self.get_properties()}, TransactionId={self.transaction_id}]"
        )


class MessageExt(Message):
    """A message as stored on and delivered by a broker."""

    def __init__(
        self,
        topic: str = "",
        body: bytes = b"",
        *,
        msg_id: str = "",
        offset_msg_id: str = "",
        store_size: int = 0,
        queue_offset: int = 0,
        sys_flag: int = 0,
        born_timestamp: int = 0,
        born_host: str = "",
        store_timestamp: int = 0,
        store_host: str = "",
        commit_log_offset: int = 0,
        body_crc: int = 0,
        reconsume_times: int = 0,
        prepared_transaction_offset: int = 0,
        **kwargs,
    ) -> None:
        super().__init__(topic, body, **kwargs)
        self.msg_id = msg_id
        self.offset_msg_id = offset_msg_id
        self.store_size = store_size
        self.queue_offset = queue_offset
        self.sys_flag = sys_flag
        self.born_timestamp = born_timestamp
        self.born_host = born_host
        self.store_timestamp = store_timestamp
        self.store_host = store_host
        self.commit_log_offset = commit_log_offset
        self.body_crc = body_crc
        self.reconsume_times = reconsume_times
        self.prepared_transaction_offset = prepared_transaction_offset

    def get_region_id(self) -> str:
        return self.get_property(PROPERTY_MSG_REGION)

    def is_trace_on(self) -> str:
        return self.get_property(PROPERTY_TRACE_SWITCH)

    def __str__(self) -> str:
        queue_id = self.queue.queue_id if self.queue is not None else 0
        return (
            f"[Message={Message.__str__(self)}, MsgId={self.msg_id}, OffsetMsgId={self.offset_msg_id},"
            f"QueueId={queue_id}, StoreSize={self.store_size}, QueueOffset={self.queue_offset}, "
            f"SysFlag={self.sys_flag}, BornTimestamp={self.born_timestamp}, BornHost={self.born_host}, "
            f"StoreTimestamp={self.store_timestamp}, StoreHost={self.store_host}, "
            f"CommitLogOffset={self.commit_log_offset}, BodyCRC={self.body_crc}, "
            f"ReconsumeTimes={self.reconsume_times}, "
            f"PreparedTransactionOffset={self.prepared_transaction_offset}]"
        )


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = memoryview(bytes(data))
        self.pos = 0

    def __len__(self) -> int:
        return len(self._data) - self.pos

    def take(self, n: int) -> bytes:
        if n < 0 or self.pos + n > len(self._data):
            raise ValueError("truncated message data")
        chunk = bytes(self._data[self.pos : self.pos + n])
        self.pos += n
        return chunk

    def unpack(self, fmt: str) -> int:
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))[0]


def _read_host(reader: _Reader, ipv6: bool) -> tuple[bytes, int, str]:
    host = reader.take(16 if ipv6 else 4)
    port = reader.unpack(">i")
    return host, port, f"{_address_from_bytes(host)}:{port}"


def decode_message(data: bytes) -> list[MessageExt]:
    """Decode a broker's stored-message stream into messages.

    Raises ValueError if the data ends in the middle of a message.
    """
    reader = _Reader(data)
    messages: list[MessageExt] = []
    while len(reader) > 0:
        msg = MessageExt()
        msg.store_size = reader.unpack(">i")
        reader.take(4)  # magic code
        msg.body_crc = reader.unpack(">i")
        queue_id = reader.unpack(">i")
        msg.flag = reader.unpack(">i")
        msg.queue_offset = reader.unpack(">q")
        msg.commit_log_offset = reader.unpack(">q")
        msg.sys_flag = reader.unpack(">i")
        msg.born_timestamp = reader.unpack(">q")
        _, _, msg.born_host = _read_host(reader, msg.sys_flag & FLAG_BORN_HOST_V6 == FLAG_BORN_HOST_V6)
        msg.store_timestamp = reader.unpack(">q")
        host, port, msg.store_host = _read_host(
            reader, msg.sys_flag & FLAG_STORE_HOST_V6 == FLAG_STORE_HOST_V6
        )
        msg.reconsume_times = reader.unpack(">i")
        msg.prepared_transaction_offset = reader.unpack(">q")

        body = reader.take(reader.unpack(">i"))
        if msg.sys_flag & FLAG_COMPRESSED == FLAG_COMPRESSED:
            body = _uncompress(body)
        msg.body = body

        msg.topic = reader.take(reader.unpack(">B")).decode("utf-8", errors="replace")

        properties_length = reader.unpack(">h")
        if properties_length > 0:
            msg.unmarshal_properties(reader.take(properties_length))

        msg.queue = MessageQueue(queue_id=queue_id)
        msg.offset_msg_id = create_message_id(host, port, msg.commit_log_offset)
        msg.msg_id = msg.get_property(PROPERTY_UNIQUE_CLIENT_MESSAGE_ID_KEY_INDEX) or msg.offset_msg_id
        messages.append(msg)
    return messages


class AccessChannel(enum.IntEnum):
    LOCAL = 0
    CLOUD = 1


class MessageType(enum.IntEnum):
    NORMAL_MSG = 0
    TRANS_MSG_HALF = 1
    TRANS_MSG_COMMIT = 2
    DELAY_MSG = 3


class LocalTransactionState(enum.IntEnum):
    COMMIT_MESSAGE_STATE = 1
    ROLLBACK_MESSAGE_STATE = 2
    UNKNOW_STATE = 3


class TransactionListener(ABC):
    """Callbacks a transactional producer uses to run and check local transactions."""

    @abstractmethod
    def execute_local_transaction(self, msg: Message) -> LocalTransactionState:
        """Run the local transaction after the half message was sent."""

    @abstractmethod
    def check_local_transaction(self, msg: MessageExt) -> LocalTransactionState:
        """Report the local transaction state when the broker asks."""


@dataclass(frozen=True)
class MessageID:
    """Broker address and commit log offset encoded in an offset message id."""

    addr: str
    port: int
    offset: int


def create_message_id(addr: bytes, port: int, offset: int) -> str:
    """Encode host bytes, port and offset as an upper-case hex message id."""
    raw = bytes(addr) + struct.pack(">iq", _to_int32(port), offset)
    return raw.hex().upper()


def unmarshal_msg_id(msg_id: Union[bytes, str]) -> MessageID:
    """Decode an IPv4 offset message id. Raises ValueError if it is malformed."""
    text = msg_id.decode("ascii", errors="replace") if isinstance(msg_id, (bytes, bytearray)) else msg_id
    if len(text) < 32:
        raise ValueError(f"{text} len < 32")
    try:
        ip_bytes = bytes.fromhex(text[0:8])
        port_bytes = bytes.fromhex(text[8:16])
        offset_bytes = bytes.fromhex(text[16:32])
    except ValueError as exc:
        raise ValueError(f"{text} is not a valid message id") from exc
    return MessageID(
        addr=_address_from_bytes(ip_bytes),
        port=struct.unpack(">I", port_bytes)[0],
        offset=struct.unpack(">q", offset_bytes)[0],
    )


def get_transaction_value(flag: int) -> int:
    return flag & TRANSACTION_ROLLBACK_TYPE


def reset_transaction_value(flag: int, type_flag: int) -> int:
    return (flag & ~TRANSACTION_ROLLBACK_TYPE) | type_flag


def clear_compressed_flag(flag: int) -> int:
    return flag & ~COMPRESSED_FLAG


def set_compressed_flag(flag: int) -> int:
    return flag | COMPRESSED_FLAG


def pid() -> int:
    """Process id truncated to a signed 16-bit value."""
    return _to_int16(os.getpid())


def _client_ipv4() -> bytes:
    try:
        addr = ipaddress.IPv4Address(socket.gethostbyname(socket.gethostname()))
        if not addr.is_loopback:
            return addr.packed
    except (OSError, ValueError):
        pass
    return ipaddress.IPv4Address("127.0.0.1").packed


class _UniqIDGenerator:
    _CLASS_LOAD_ID = 0

    def __init__(self) -> None:
        raw = _client_ipv4() + struct.pack(">hi", pid(), self._CLASS_LOAD_ID)
        self.prefix = raw.hex().upper()
        self._lock = threading.Lock()
        self._counter = 0
        self._start = 0
        self._next = 0

    def _update_timestamp(self) -> None:
        now = datetime.now()
        start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        if start.month == 12:
            following = start.replace(year=start.year + 1, month=1)
        else:
            following = start.replace(month=start.month + 1)
        self._start = int(time.mktime(start.timetuple()))
        self._next = int(time.mktime(following.timetuple()))

    def next_id(self) -> str:
        with self._lock:
            if int(time.time()) > self._next:
                self._update_timestamp()
            self._counter = _to_int16(self._counter + 1)
            elapsed = _to_int32((int(time.time()) - self._start) * 1000)
            return self.prefix + struct.pack(">ih", elapsed, self._counter).hex()


_uniq_ids = _UniqIDGenerator()


def create_uniq_id() -> str:
    """Return a new client-side unique message id (32 hex characters)."""
    return _uniq_ids.next_id()