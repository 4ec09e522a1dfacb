import struct
import zlib

import pytest

from rocketmq_client.message import (
    FLAG_COMPRESSED,
    PROPERTY_UNIQUE_CLIENT_MESSAGE_ID_KEY_INDEX,
    LocalTransactionState,
    Message,
    MessageExt,
    MessageQueue,
    TransactionListener,
    clear_compressed_flag,
    create_message_id,
    create_uniq_id,
    decode_message,
    get_transaction_value,
    pid,
    reset_transaction_value,
    set_compressed_flag,
    unmarshal_msg_id,
)


def test_message_id():
    msg_id = unmarshal_msg_id(b"0AAF0895000078BF000000000009BB4A")
    assert msg_id.addr == "10.175.8.149"
    assert msg_id.port == 30911
    assert msg_id.offset == 637770


def test_message_id_accepts_str():
    assert unmarshal_msg_id("0AAF0895000078BF000000000009BB4A").port == 30911


def test_message_id_too_short():
    with pytest.raises(ValueError):
        unmarshal_msg_id("0AAF0895")


def test_properties_round_trip():
    msg1 = Message("test", properties={"k1": "v1", "k2": "v2"})
    encoded = msg1.marshall_properties()
    msg2 = Message("test")
    msg2.unmarshal_properties(encoded.encode())
    assert msg2.get_properties() == msg1.get_properties()


def test_create_message_id():
    first = create_message_id(bytes([10, 93, 233, 58]), 10911, 4391252)
    assert first == "0A5DE93A00002A9F0000000000430154"
    second = create_message_id(b"127.0.0.1", 11, 12)
    assert second == "3132372E302E302E310000000B000000000000000C"
    assert first == "0A5DE93A00002A9F0000000000430154"


def test_get_properties():
    msg = Message("test", properties={"k1": "v1", "k2": "v2"})
    assert msg.get_properties() == {"k1": "v1", "k2": "v2"}


def test_get_properties_returns_copy():
    msg = Message("test", properties={"k1": "v1"})
    copy = msg.get_properties()
    copy["k1"] = "changed"
    assert msg.get_property("k1") == "v1"


def test_with_property_ignores_empty():
    msg = Message("t")
    msg.with_property("", "v")
    msg.with_property("k", "")
    assert msg.get_properties() == {}


def test_remove_property():
    msg = Message("t")
    msg.with_property("k", "v")
    assert msg.remove_property("k") == "v"
    assert msg.remove_property("k") == ""
    assert msg.get_property("k") == ""


def test_builders():
    msg = Message("t").with_tag("TagA").with_keys(["a", "b"]).with_sharding_key("sk").with_delay_time_level(3)
    assert msg.get_tags() == "TagA"
    assert msg.get_keys() == "a b "
    assert msg.get_sharding_key() == "sk"
    assert msg.get_property("DELAY") == "3"


def test_with_properties_replaces():
    msg = Message("t", properties={"a": "1"})
    msg.with_properties({"b": "2"})
    assert msg.get_properties() == {"b": "2"}


def test_marshal_layout():
    msg = Message("t", b"hello", flag=7, properties={"k": "v"})
    data = msg.marshal()
    props = b"k\x01v\x02"
    assert len(data) == 20 + 5 + 2 + len(props)
    total, magic, crc, flag, body_len = struct.unpack(">IIIII", data[:20])
    assert (total, magic, crc, flag, body_len) == (len(data), 0, 0, 7, 5)
    assert data[20:25] == b"hello"
    assert struct.unpack(">H", data[25:27])[0] == len(props)
    assert data[27:] == props


def _stored(body, topic, properties, sys_flag=0, queue_id=3, offset=4391252):
    out = struct.pack(">i", 0)  # store size
    out += struct.pack(">i", 0)  # magic
    out += struct.pack(">i", 99)  # body crc
    out += struct.pack(">i", queue_id)
    out += struct.pack(">i", 1)  # flag
    out += struct.pack(">q", 10)  # queue offset
    out += struct.pack(">q", offset)
    out += struct.pack(">i", sys_flag)
    out += struct.pack(">q", 1000)  # born timestamp
    out += bytes([192, 168, 0, 1]) + struct.pack(">i", 5555)
    out += struct.pack(">q", 2000)  # store timestamp
    out += bytes([10, 93, 233, 58]) + struct.pack(">i", 10911)
    out += struct.pack(">i", 2)  # reconsume times
    out += struct.pack(">q", 0)
    out += struct.pack(">i", len(body)) + body
    out += bytes([len(topic)]) + topic
    out += struct.pack(">h", len(properties)) + properties
    return out


def test_decode_message_fields():
    data = _stored(b"payload", b"TopicTest", b"TAGS\x01TagA\x02")
    (msg,) = decode_message(data)
    assert msg.topic == "TopicTest"
    assert msg.body == b"payload"
    assert msg.queue.queue_id == 3
    assert msg.born_host == "192.168.0.1:5555"
    assert msg.store_host == "10.93.233.58:10911"
    assert msg.reconsume_times == 2
    assert msg.get_tags() == "TagA"
    assert msg.offset_msg_id == "0A5DE93A00002A9F0000000000430154"
    assert msg.msg_id == msg.offset_msg_id


def test_decode_message_uses_uniq_key_and_multiple():
    props = f"{PROPERTY_UNIQUE_CLIENT_MESSAGE_ID_KEY_INDEX}\x01ABC\x02".encode()
    data = _stored(b"a", b"T", props) + _stored(b"b", b"T", b"", queue_id=5)
    msgs = decode_message(data)
    assert [m.body for m in msgs] == [b"a", b"b"]
    assert msgs[0].msg_id == "ABC"
    assert msgs[1].queue.queue_id == 5


def test_decode_compressed_body():
    body = zlib.compress(b"x" * 100)
    (msg,) = decode_message(_stored(body, b"T", b"", sys_flag=FLAG_COMPRESSED))
    assert msg.body == b"x" * 100


def test_decode_truncated():
    with pytest.raises(ValueError):
        decode_message(_stored(b"abc", b"T", b"")[:-5])


def test_message_ext_accessors():
    msg = MessageExt("t")
    msg.with_property("MSG_REGION", "DefaultRegion")
    msg.with_property("TRACE_ON", "true")
    assert msg.get_region_id() == "DefaultRegion"
    assert msg.is_trace_on() == "true"


def test_message_queue_str_and_hash():
    q1 = MessageQueue("t", "b", 1)
    q2 = MessageQueue("t", "b", 1)
    assert str(q1) == "MessageQueue [topic=t, brokerName=b, queueId=1]"
    assert q1.hash_code() == q2.hash_code()
    assert q1.hash_code() != MessageQueue("t", "b", 2).hash_code()


def test_transaction_flags():
    assert get_transaction_value(0xF) == 0xC
    assert reset_transaction_value(0xD, 0x4) == 0x5
    assert clear_compressed_flag(0x3) == 0x2
    assert set_compressed_flag(0x2) == 0x3


def test_create_uniq_id():
    a = create_uniq_id()
    b = create_uniq_id()
    assert len(a) == 32 and len(b) == 32
    assert a[:20] == b[:20]
    assert a != b


def test_pid_in_int16_range():
    assert -32768 <= pid() <= 32767


def test_transaction_listener():
    class Listener(TransactionListener):
        def execute_local_transaction(self, msg):
            return LocalTransactionState.COMMIT_MESSAGE_STATE

        def check_local_transaction(self, msg):
            return LocalTransactionState.UNKNOW_STATE

    listener = Listener()
    assert listener.execute_local_transaction(Message("t")) == 1
    assert listener.check_local_transaction(MessageExt("t")) == 3
    with pytest.raises(TypeError):
        TransactionListener()