"""Command/response plumbing over Redis streams.

Gateways append commands to ``stream``; a consumer group member reads them,
hands each one to :meth:`RedisStreamConsumer.handle_message` and appends any
replies to ``response_stream``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from redis.asyncio import Redis
from redis.asyncio import from_url as redis_from_url
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

__all__ = [
    "RedisStreamConfig",
    "RedisStreamMessage",
    "RedisStreamConsumer",
]

# New groups replay the whole stream.
_GROUP_START_ID = "0"


@dataclass(slots=True)
class RedisStreamConfig:
    enabled: bool
    redis_url: str | None
    stream: str
    group: str
    consumer_name: str
    response_stream: str = ""
    max_response_length: int = 1000
    block_ms: int = 10_000
    batch_size: int = 20
    max_concurrency: int = 1
    backoff_initial: float = 1.0
    backoff_max: float = 30.0


def _text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", "replace")
    return str(value)


@dataclass(slots=True)
class RedisStreamMessage:
    stream: str
    message_id: str
    fields: dict[str, Any]

    @classmethod
    def from_entry(cls, stream: Any, message_id: Any, raw_fields: Any) -> RedisStreamMessage:
        """Build a message from one ``XREADGROUP`` entry.

        Fields may arrive as a mapping or as ``(key, value)`` pairs depending on
        the client's response parsing.
        """
        if isinstance(raw_fields, Mapping):
            pairs = raw_fields.items()
        else:
            pairs = (item for item in raw_fields or () if len(item) == 2)
        fields = {
            _text(key): _text(value) if isinstance(value, (bytes, bytearray)) else value
            for key, value in pairs
        }
        return cls(stream=_text(stream), message_id=_text(message_id), fields=fields)


class _Backoff:
    def __init__(self, initial: float, maximum: float) -> None:
        self._initial = max(0.0, initial)
        self._maximum = max(self._initial, maximum)
        self.delay = self._initial

    def reset(self) -> None:
        self.delay = self._initial

    async def wait(self) -> None:
        await asyncio.sleep(self.delay)
        self.delay = min(self.delay * 2 or self._initial, self._maximum)


class RedisStreamConsumer:
    """Consumer group member that dispatches entries to :meth:`handle_message`.

    Entries are acknowledged once ``handle_message`` returns a truthy value or
    raises; with ``delete_after_ack`` they are also removed from the stream.
    At most ``max_concurrency`` entries are processed at a time.
    """

    def __init__(
        self,
        config: RedisStreamConfig,
        *,
        logger: logging.Logger | None = None,
        delete_after_ack: bool = False,
        redis_factory: Callable[..., Redis] | None = None,
    ) -> None:
        self._config = config
        self._log = logger or logging.getLogger(__name__)
        self._delete_after_ack = delete_after_ack
        self._redis_factory = redis_factory or redis_from_url
        self._redis: Redis | None = None
        self._loop_task: asyncio.Task[None] | None = None
        self._stopped = asyncio.Event()
        self._slots = asyncio.Semaphore(max(1, int(config.max_concurrency)))
        self._workers: set[asyncio.Task[None]] = set()

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    async def start(self) -> bool:
        """Connect, make sure the consumer group exists and begin reading.

        Returns ``False`` when the consumer is disabled or Redis is unreachable.
        """
        config = self._config
        if not config.enabled or not config.redis_url:
            self._log.info("Stream consumer for %s is disabled", config.stream)
            return False
        if self.running:
            return True

        redis = self._redis_factory(config.redis_url, decode_responses=True)
        try:
            await self._create_group(redis)
        except (RedisConnectionError, OSError) as exc:
            await redis.aclose()
            self._log.error("Cannot reach Redis for stream %s: %s", config.stream, exc)
            return False
        except BaseException:
            await redis.aclose()
            raise

        self._redis = redis
        self._stopped.clear()
        self._loop_task = asyncio.create_task(self._consume(redis), name=f"stream:{config.stream}")
        self._loop_task.add_done_callback(lambda _task: self._stopped.set())
        self._log.info(
            "Reading %s as %s/%s (replies to %s)",
            config.stream,
            config.group,
            config.consumer_name,
            config.response_stream or "nowhere",
        )
        return True

    async def stop(self) -> None:
        self._stopped.set()
        task, self._loop_task = self._loop_task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
        redis, self._redis = self._redis, None
        if redis is not None:
            await redis.aclose()

    async def wait_stopped(self) -> None:
        await self._stopped.wait()

    async def publish(self, fields: Mapping[str, str]) -> bool:
        """Append ``fields`` to the response stream; ``False`` if it was not sent."""

        if self._redis is None or not self._config.response_stream:
            return False
        try:
            await self._redis.xadd(
                self._config.response_stream,
                dict(fields),
                maxlen=self._config.max_response_length,
                approximate=True,
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            self._log.exception(
                "Could not publish %s event to %s",
                fields.get("event", "?"),
                self._config.response_stream,
            )
            return False
        return True

    async def handle_message(self, message: RedisStreamMessage) -> bool:
        """Process one entry; return ``True`` to acknowledge it."""

        raise NotImplementedError

    async def _create_group(self, redis: Redis) -> None:
        try:
            await redis.xgroup_create(
                self._config.stream,
                self._config.group,
                id=_GROUP_START_ID,
                mkstream=True,
            )
        except ResponseError as exc:
            if "BUSYGROUP" not in str(exc):
                raise
            return
        self._log.info("Created consumer group %s on %s", self._config.group, self._config.stream)

    async def _read_batch(self, redis: Redis) -> list[RedisStreamMessage]:
        entries = await redis.xreadgroup(
            self._config.group,
            self._config.consumer_name,
            {self._config.stream: ">"},
            count=self._config.batch_size,
            block=self._config.block_ms,
        )
        return [
            RedisStreamMessage.from_entry(stream, message_id, fields)
            for stream, messages in entries or ()
            for message_id, fields in messages
        ]

    async def _consume(self, redis: Redis) -> None:
        backoff = _Backoff(self._config.backoff_initial, self._config.backoff_max)
        while not self._stopped.is_set():
            try:
                batch = await self._read_batch(redis)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self._log.warning(
                    "Reading %s failed; retrying in %.1fs (%s)",
                    self._config.stream,
                    backoff.delay,
                    exc,
                )
                await backoff.wait()
                continue
            backoff.reset()

            for message in batch:
                await self._slots.acquire()
                worker = asyncio.create_task(self._process(message))
                self._workers.add(worker)
                worker.add_done_callback(self._workers.discard)

    async def _process(self, message: RedisStreamMessage) -> None:
        try:
            try:
                acknowledge = bool(await self.handle_message(message))
            except asyncio.CancelledError:
                raise
            except Exception:
                self._log.exception("Entry %s on %s failed", message.message_id, message.stream)
                acknowledge = True
            if acknowledge:
                await self._acknowledge(message)
        finally:
            self._slots.release()

    async def _acknowledge(self, message: RedisStreamMessage) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.xack(message.stream, self._config.group, message.message_id)
            if self._delete_after_ack:
                await self._redis.xdel(message.stream, message.message_id)
        except asyncio.CancelledError:
            raise
        except Exception:
            self._log.exception("Could not acknowledge %s on %s", message.message_id, message.stream)
