from __future__ import annotations

import logging
import os
import socket
import uuid
from dataclasses import dataclass
from typing import Mapping

from scorewise.utils.redis_stream import RedisStreamConfig

_logger = logging.getLogger(__name__)

__all__ = ["AssistantStreamConfig"]

DEFAULT_COMMAND_STREAM = "assistant:messages"
DEFAULT_RESPONSE_STREAM = "assistant:events"
DEFAULT_GROUP = "scorewise-assistant"

_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(slots=True)
class AssistantStreamConfig(RedisStreamConfig):
    """Chat traffic: gateway commands on ``stream``, replies and presence on ``response_stream``."""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AssistantStreamConfig:
        env = os.environ if environ is None else environ

        redis_url = _text(env, "ASSISTANT_REDIS_URL") or _text(env, "REDIS_URL") or None
        # Without a Redis URL there is nothing to consume, whatever the flag says.
        enabled = redis_url is not None and (
            _text(env, "ASSISTANT_STREAM_ENABLED").lower() not in _FALSE_VALUES
        )

        return cls(
            enabled=enabled,
            redis_url=redis_url,
            stream=_text(env, "ASSISTANT_COMMAND_STREAM") or DEFAULT_COMMAND_STREAM,
            response_stream=_text(env, "ASSISTANT_RESPONSE_STREAM") or DEFAULT_RESPONSE_STREAM,
            group=_text(env, "ASSISTANT_STREAM_GROUP") or DEFAULT_GROUP,
            consumer_name=_text(env, "ASSISTANT_STREAM_CONSUMER") or _default_consumer_name(),
            block_ms=_positive_int(env, "ASSISTANT_STREAM_BLOCK_MS", default=10_000),
            max_concurrency=_positive_int(env, "ASSISTANT_STREAM_CONCURRENCY", default=1),
        )


def _text(env: Mapping[str, str], name: str) -> str:
    return (env.get(name) or "").strip()


def _positive_int(env: Mapping[str, str], name: str, *, default: int) -> int:
    raw = _text(env, name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        _logger.warning("Invalid %s=%s; using %s", name, raw, default)
        return default
    if value <= 0:
        _logger.warning("%s=%s must be positive; using %s", name, value, default)
        return default
    return value


def _default_consumer_name() -> str:
    hostname = socket.gethostname() or "scorewise"
    return f"{hostname}:{os.getpid()}:{uuid.uuid4().hex[:6]}"
