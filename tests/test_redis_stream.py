import asyncio

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from scorewise.utils.redis_stream import RedisStreamConfig, RedisStreamConsumer, RedisStreamMessage


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeRedis:
    def __init__(self, batches=None, *, group_error=None) -> None:
        self._batches = list(batches or [])
        self.group_error = group_error
        self.groups: list[tuple[str, str, str]] = []
        self.acked: list[str] = []
        self.deleted: list[str] = []
        self.added: list[tuple[str, dict, int]] = []
        self.closed = False
        self.drained = asyncio.Event()

    async def xgroup_create(self, stream, group, id="$", mkstream=False):
        if self.group_error is not None:
            raise self.group_error
        self.groups.append((stream, group, id))

    async def xreadgroup(self, group, consumer, streams, count=None, block=None):
        if self._batches:
            return self._batches.pop(0)
        self.drained.set()
        await asyncio.sleep(3600)
        return []

    async def xack(self, stream, group, message_id):
        self.acked.append(message_id)

    async def xdel(self, stream, message_id):
        self.deleted.append(message_id)

    async def xadd(self, stream, fields, maxlen=None, approximate=True):
        self.added.append((stream, fields, maxlen))

    async def aclose(self):
        self.closed = True


class RecordingConsumer(RedisStreamConsumer):
    def __init__(self, config, fake, *, fail_on=(), **kwargs) -> None:
        super().__init__(config, redis_factory=lambda url, **_: fake, **kwargs)
        self.seen: list[RedisStreamMessage] = []
        self.fail_on = set(fail_on)

    async def handle_message(self, message: RedisStreamMessage) -> bool:
        self.seen.append(message)
        if message.message_id in self.fail_on:
            raise RuntimeError("handler blew up")
        await self.publish({"event": "echo", "text": str(message.fields.get("text"))})
        return message.fields.get("ack") != "no"


def _config(**overrides) -> RedisStreamConfig:
    values = dict(
        enabled=True,
        redis_url="redis://localhost/0",
        stream="chat:in",
        group="workers",
        consumer_name="worker-1",
        response_stream="chat:out",
        max_response_length=50,
    )
    values.update(overrides)
    return RedisStreamConfig(**values)


def test_message_from_entry_decodes_pairs_and_mappings():
    from_pairs = RedisStreamMessage.from_entry(b"chat:in", b"1-0", [(b"action", b"connect"), (b"broken",)])
    from_mapping = RedisStreamMessage.from_entry("chat:in", "2-0", {"user_id": "u1"})

    assert from_pairs == RedisStreamMessage(stream="chat:in", message_id="1-0", fields={"action": "connect"})
    assert from_mapping.fields == {"user_id": "u1"}


@pytest.mark.anyio
async def test_entries_are_handled_acknowledged_and_deleted():
    fake = FakeRedis(
        [
            [
                (
                    "chat:in",
                    [
                        ("1-0", {"text": "hello"}),
                        ("2-0", {"text": "keep", "ack": "no"}),
                        ("3-0", {"text": "boom"}),
                    ],
                )
            ]
        ]
    )
    consumer = RecordingConsumer(_config(), fake, fail_on={"3-0"}, delete_after_ack=True)

    assert await consumer.start() is True
    await asyncio.wait_for(fake.drained.wait(), timeout=1)
    await consumer.stop()

    assert fake.groups == [("chat:in", "workers", "0")]
    assert [message.message_id for message in consumer.seen] == ["1-0", "2-0", "3-0"]
    assert fake.acked == ["1-0", "3-0"]
    assert fake.deleted == ["1-0", "3-0"]
    assert fake.added == [
        ("chat:out", {"event": "echo", "text": "hello"}, 50),
        ("chat:out", {"event": "echo", "text": "keep"}, 50),
    ]
    assert fake.closed is True
    assert consumer.running is False


@pytest.mark.anyio
async def test_existing_group_is_reused():
    fake = FakeRedis(group_error=ResponseError("BUSYGROUP Consumer Group name already exists"))
    consumer = RecordingConsumer(_config(), fake)

    assert await consumer.start() is True
    await consumer.stop()


@pytest.mark.anyio
async def test_unreachable_redis_does_not_start():
    fake = FakeRedis(group_error=RedisConnectionError("refused"))
    consumer = RecordingConsumer(_config(), fake)

    assert await consumer.start() is False
    assert fake.closed is True
    assert consumer.running is False


@pytest.mark.anyio
async def test_disabled_consumer_does_not_connect():
    fake = FakeRedis()
    consumer = RecordingConsumer(_config(enabled=False), fake)

    assert await consumer.start() is False
    assert fake.groups == []
    assert await consumer.publish({"event": "noop"}) is False
