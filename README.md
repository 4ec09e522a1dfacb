# rocketmq-client

Building blocks for a RocketMQ-style messaging client. It uses only the standard library.

It provides:

- **Messages** (`rocketmq_client.message`): `Message` holds properties, tags, keys and sharding keys. `Message.marshal` encodes a message in the batch wire layout. `decode_message` decodes a broker's stored-message stream into `MessageExt` objects. The module also creates and parses message ids (`create_message_id`, `unmarshal_msg_id`) and generates unique client ids (`create_uniq_id`).
- **Results** (`rocketmq_client.result`): `SendResult`, `TransactionSendResult` and `PullResult`, with the `SendStatus` and `PullStatus` enums.
- **Contexts** (`rocketmq_client.ctx`): an immutable `Context`. Functions such as `with_producer_ctx` and `get_producer_ctx` store and read producer and consumer context objects in it.
- **Interceptors** (`rocketmq_client.interceptor`): `chain_interceptors` combines interceptors into one that runs them in order.
- **Name server resolution** (`rocketmq_client.nsresolver`): `EnvResolver`, `PassthroughResolver` and `HttpResolver`. `HttpResolver` keeps a local snapshot file of the last addresses it fetched. The module also has `TraceConfig`.
- **Address checks** (`rocketmq_client.base`): `new_namesrv_addr`, `check_namesrv_addr`, `verify_ip` and `diff`.
- **Queue selectors** (`rocketmq_client.selector`): `ManualQueueSelector`, `RandomQueueSelector`, `RoundRobinQueueSelector` and `HashQueueSelector`.
- **Errors** (`rocketmq_client.errors`): `RocketMQError` and its subclasses.
- **Logging** (`rocketmq_client.rlog`): a replaceable process-wide logger.

## Installation

```
pip install .
```

## Examples

Building a message and encoding it:

```python
from rocketmq_client.message import Message

msg = Message("TopicTest", b"hello")
msg.with_tag("TagA").with_keys(["order-1"]).with_sharding_key("user-42")
wire = msg.marshal()
```

Choosing a queue:

```python
from rocketmq_client.message import MessageQueue
from rocketmq_client.selector import RoundRobinQueueSelector

queues = [MessageQueue("TopicTest", "broker-a", i) for i in range(4)]
selector = RoundRobinQueueSelector()
queue = selector.select(msg, queues)
```

The random, round-robin and hash selectors raise `ValueError` when given no queues.

Checking name server addresses:

```python
from rocketmq_client.base import new_namesrv_addr

addrs = new_namesrv_addr("127.0.0.1:9876;127.0.0.2:9876")
```

`new_namesrv_addr` raises `NoNameserverError` when it gets no address. It raises `IllegalIPError` or `MultiIPError` when an address is invalid.

Resolving name servers from the `NAMESRV_ADDR` environment variable:

```python
from rocketmq_client.nsresolver import EnvResolver

servers = EnvResolver().resolve()
```

`HttpResolver` fetches a `;`-separated address list over HTTP. If the fetch fails, it reads the snapshot file. If there is no snapshot, it falls back to `NAMESRV_ADDR`. By default the snapshot is stored under `~/logs/rocketmq_client/snapshot`. Pass `snapshot_dir` to store it somewhere else.

## Logging

The log level comes from the `ROCKETMQ_LOG_LEVEL` environment variable. It can be one of `debug`, `warn`, `error` or `fatal`; anything else means `info`.

- Change the level at run time with `rlog.set_log_level`.
- Send the log to a file with `rlog.set_output_path`.
- Replace the logger with `rlog.set_logger`.
- `fatal` logs the message and then raises `SystemExit(1)`.

## What this package does not do

This package has no producer or consumer. It does not connect to brokers and has no remoting layer. It does not send, pull or acknowledge messages.

It provides the message model, the encodings, the queue selection, the name server resolution and the context plumbing that such a client is built on.

## Running the tests

```
pip install .[test]
pytest
```