from rocketmq_client.message import LocalTransactionState, MessageExt, MessageQueue
from rocketmq_client.result import (
    PullResult,
    PullStatus,
    SendResult,
    SendStatus,
    TransactionSendResult,
)


def test_new_send_result_is_unknown_error():
    assert SendResult().status is SendStatus.SEND_UNKNOWN_ERROR


def test_send_status_order():
    assert str(SendResult(status=SendStatus.SEND_OK)).startswith("SendResult [sendStatus=0,")
    assert str(SendResult()).startswith("SendResult [sendStatus=4,")


def test_send_result_str_contains_fields():
    mq = MessageQueue(topic="t", broker_name="b", queue_id=1)
    result = SendResult(status=SendStatus.SEND_OK, msg_id="111", message_queue=mq,
                        queue_offset=7, offset_msg_id="0")
    text = str(result)
    assert text.startswith("SendResult [sendStatus=0, msgIds=111, offsetMsgId=0, queueOffset=7")
    assert text.endswith(f"messageQueue={mq}]")


def test_send_result_str_without_queue():
    assert "messageQueue=<nil>" in str(SendResult())


def test_transaction_send_result_defaults_to_unknown_state():
    result = TransactionSendResult(msg_id="abc")
    assert result.state is LocalTransactionState.UNKNOW_STATE
    assert result.msg_id == "abc"
    assert isinstance(result, SendResult)


def test_pull_result_messages_empty():
    assert PullResult().get_messages() == []


def test_pull_result_messages_follow_exts():
    exts = [MessageExt(topic="a"), MessageExt(topic="b")]
    result = PullResult(status=PullStatus.PULL_NO_NEW_MSG, message_exts=exts)
    assert [m.topic for m in result.get_messages()] == ["a", "b"]
    assert result.get_messages() is not result.message_exts


def test_pull_result_body_round_trip():
    result = PullResult()
    result.body = b"payload"
    assert result.body == b"payload"