from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

from scorewise.assistant.config import AssistantStreamConfig
from scorewise.assistant.connections import ConnectionRegistry
from scorewise.assistant.service import FALLBACK_MESSAGE, AssistantService
from scorewise.utils.redis_stream import RedisStreamConsumer, RedisStreamMessage

_logger = logging.getLogger(__name__)

__all__ = ["AssistantStreamError", "AssistantStreamProcessor"]


class AssistantStreamError(RuntimeError):
    """Raised for malformed assistant stream payloads."""


class AssistantStreamProcessor(RedisStreamConsumer):
    """Serve chat traffic that arrives on the assistant Redis stream.

    Gateways push ``connect``, ``disconnect`` and ``message`` entries;
    replies and presence updates go out on the response stream.
    """

    def __init__(
        self,
        service: AssistantService,
        config: AssistantStreamConfig,
        *,
        registry: ConnectionRegistry | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(config, logger=_logger, delete_after_ack=True, **kwargs)
        self._service = service
        self.registry = registry if registry is not None else ConnectionRegistry()

    async def handle_message(self, message: RedisStreamMessage) -> bool:
        payload = message.fields
        ids = _PayloadIds.from_payload(payload)
        try:
            responses = await self._handle_payload(payload, ids)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            _logger.exception(
                "Assistant stream entry failed for id=%s action=%s user=%s",
                message.message_id,
                payload.get("action"),
                ids.user_id,
            )
            responses = [_format_error_response(payload, ids, exc)]

        for response in responses:
            await self.publish(response)
        return True

    async def _handle_payload(
        self,
        payload: dict[str, Any],
        ids: _PayloadIds | None = None,
    ) -> list[dict[str, str]]:
        ids = ids or _PayloadIds.from_payload(payload)
        action = str(payload.get("action") or "").lower().strip()

        if not ids.user_id:
            raise AssistantStreamError("user_id is required")
        if not action:
            raise AssistantStreamError("action is required")

        if action == "connect":
            self.registry.add(ids.user_id, ids.connection_id or ids.user_id)
            return [self._online_users_event()]

        if action == "disconnect":
            self.registry.remove(ids.user_id, ids.connection_id or None)
            return [self._online_users_event()]

        if action == "message":
            text = str(payload.get("message") or "").strip()
            if not text:
                raise AssistantStreamError("message is required")
            reply = await self._service.handle_user_message(ids.user_id, text)
            return [
                {
                    "event": "message",
                    "request_id": ids.request_id,
                    "status": "ok",
                    "user_id": ids.user_id,
                    "message": reply.content,
                    "fallback": "true" if reply.fallback else "false",
                }
            ]

        raise AssistantStreamError(f"Unknown assistant action '{action}'")

    def _online_users_event(self) -> dict[str, str]:
        return {
            "event": "online_users",
            "status": "ok",
            "users": json.dumps(self.registry.online_users()),
        }


@dataclass(slots=True, frozen=True)
class _PayloadIds:
    request_id: str
    user_id: str
    connection_id: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> _PayloadIds:
        def _first(*keys: str) -> str:
            for key in keys:
                value = payload.get(key)
                if value:
                    return str(value).strip()
            return ""

        return cls(
            request_id=_first("request_id", "requestId"),
            user_id=_first("user_id", "userId"),
            connection_id=_first("connection_id", "connectionId"),
        )


def _format_error_response(
    payload: dict[str, Any],
    ids: _PayloadIds,
    exc: Exception,
) -> dict[str, str]:
    # Non-validation failures get the generic fallback text.
    if isinstance(exc, AssistantStreamError):
        message = str(exc) or exc.__class__.__name__
    else:
        message = FALLBACK_MESSAGE
    response = {
        "event": "error",
        "request_id": ids.request_id,
        "status": "error",
        "action": str(payload.get("action") or ""),
        "error": message,
    }
    if ids.user_id:
        response["user_id"] = ids.user_id
    return response
