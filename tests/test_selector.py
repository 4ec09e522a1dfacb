import pytest

from rocketmq_client.message import Message, MessageQueue
from rocketmq_client.selector import (
    HashQueueSelector,
    ManualQueueSelector,
    RandomQueueSelector,
    RoundRobinQueueSelector,
)


def make_queues(n=10):
    return [MessageQueue(topic="test", broker_name="b", queue_id=i) for i in range(n)]


def test_round_robin():
    queues = make_queues(20)
    selector = RoundRobinQueueSelector()
    m = Message(topic="test")
    mrr = Message(topic="rr")
    for i in range(100):
        expected = (i + 1) % len(queues)
        assert selector.select(m, queues) is queues[expected]
        assert selector.select(mrr, queues) is queues[expected]


def test_round_robin_topics_are_independent():
    queues = make_queues(3)
    selector = RoundRobinQueueSelector()
    assert selector.select(Message(topic="a"), queues) is queues[1]
    assert selector.select(Message(topic="a"), queues) is queues[2]
    assert selector.select(Message(topic="b"), queues) is queues[1]
    assert selector.select(Message(topic="a"), queues) is queues[0]


def test_round_robin_empty_queues_raises():
    with pytest.raises(ValueError):
        RoundRobinQueueSelector().select(Message(topic="t"), [])


def test_hash_queue_selector_same_key_same_queue():
    queues = make_queues(20)
    selector = HashQueueSelector()
    m1 = Message(topic="test", body=b"one message")
    m1.with_sharding_key("same_key")
    m2 = Message(topic="test", body=b"another message")
    m2.with_sharding_key("same_key")
    q1 = selector.select(m1, queues)
    q2 = selector.select(m2, queues)
    assert q1 == q2
    assert q1 in queues


def test_hash_queue_selector_known_fnv_value():
    queues = make_queues(7)
    m = Message(topic="test").with_sharding_key("a")
    # FNV-1a 32 of "a" is 0xE40C292C; modulo 7 gives 5.
    assert HashQueueSelector().select(m, queues) is queues[5]


def test_hash_queue_selector_without_key_uses_random():
    queues = make_queues(5)
    selector = HashQueueSelector(RandomQueueSelector(seed=1))
    picked = {selector.select(Message(topic="t"), queues).queue_id for _ in range(200)}
    assert picked <= {q.queue_id for q in queues}
    assert len(picked) > 1


def test_random_selector_returns_member():
    queues = make_queues(4)
    selector = RandomQueueSelector(seed=42)
    for _ in range(50):
        assert selector.select(Message(topic="t"), queues) in queues


def test_random_selector_seeded_is_reproducible():
    queues = make_queues(10)
    a = RandomQueueSelector(seed=7)
    b = RandomQueueSelector(seed=7)
    seq_a = [a.select(Message(topic="t"), queues).queue_id for _ in range(20)]
    seq_b = [b.select(Message(topic="t"), queues).queue_id for _ in range(20)]
    assert seq_a == seq_b


def test_random_selector_empty_raises():
    with pytest.raises(ValueError):
        RandomQueueSelector().select(Message(topic="t"), [])


def test_manual_selector_returns_message_queue():
    target = MessageQueue(topic="t", broker_name="aa", queue_id=3)
    m = Message(topic="t", queue=target)
    assert ManualQueueSelector().select(m, make_queues(2)) is target


def test_manual_selector_without_queue_returns_none():
    assert ManualQueueSelector().select(Message(topic="t"), make_queues(2)) is None