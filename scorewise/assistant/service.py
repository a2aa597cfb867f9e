from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Sequence

from openai import pydantic_function_tool
from pydantic import BaseModel, Field, ValidationError

from scorewise.faq import FAQAnswer, FAQCorpusStore, FAQError, VectorError
from scorewise.utils.openai_client import ProviderError

log = logging.getLogger(__name__)

__all__ = [
    "AssistantReply",
    "AssistantService",
    "ChatProvider",
    "FALLBACK_MESSAGE",
    "FAQ_TOOL",
    "FAQ_TOOL_NAME",
    "FAQToolArguments",
    "SYSTEM_PROMPT",
]

FAQ_TOOL_NAME = "faqAnswer"

SYSTEM_PROMPT = (
    "You are a financial assistant that helps people improve their Canadian credit "
    "report. You are the assistant at Scorewise. Do not answer general questions "
    "unrelated to credit. Format answers clearly."
)

FALLBACK_MESSAGE = "Sorry, I'm having trouble right now. Please try again in a moment."


class FAQToolArguments(BaseModel):
    userQuestion: str = Field(description="The user's question")


FAQ_TOOL = pydantic_function_tool(
    FAQToolArguments,
    name=FAQ_TOOL_NAME,
    description="Finds the most relevant FAQ and returns an answer",
)


class ChatProvider(Protocol):
    async def embed(self, text: str) -> list[float]: ...

    async def complete(
        self,
        messages: Sequence[Mapping[str, Any]],
        *,
        tools: Sequence[Mapping[str, Any]] | None = None,
        model: str | None = None,
    ) -> Any: ...


@dataclass(slots=True)
class AssistantReply:
    content: str
    faq: Optional[FAQAnswer] = None
    fallback: bool = False

    @property
    def used_faq(self) -> bool:
        return self.faq is not None


def _message_to_dict(message: Any) -> dict[str, Any]:
    if isinstance(message, Mapping):
        return dict(message)
    dump = getattr(message, "model_dump", None)
    if callable(dump):
        return dump(exclude_none=True)

    payload: dict[str, Any] = {
        "role": getattr(message, "role", "assistant"),
        "content": getattr(message, "content", None),
    }
    tool_calls = getattr(message, "tool_calls", None) or []
    if tool_calls:
        payload["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.function.name,
                    "arguments": call.function.arguments,
                },
            }
            for call in tool_calls
        ]
    return payload


def _parse_tool_question(arguments: Any) -> str:
    try:
        if isinstance(arguments, Mapping):
            parsed = FAQToolArguments.model_validate(arguments)
        else:
            parsed = FAQToolArguments.model_validate_json(arguments or "")
    except (ValidationError, TypeError) as exc:
        raise FAQError(f"{FAQ_TOOL_NAME} arguments are invalid: {exc}") from exc
    question = parsed.userQuestion.strip()
    if not question:
        raise FAQError(f"{FAQ_TOOL_NAME} arguments are missing userQuestion")
    return question


class AssistantService:
    """Answers chat messages, routing FAQ questions through the corpus lookup."""

    def __init__(
        self,
        provider: ChatProvider,
        store: FAQCorpusStore,
        *,
        model: str | None = None,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self._provider = provider
        self._store = store
        self._model = model
        self._system_prompt = system_prompt

    def _base_messages(self, text: str) -> list[dict[str, Any]]:
        return [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": text},
        ]

    async def handle_user_message(self, user_id: str, text: str) -> AssistantReply:
        messages = self._base_messages(text)
        try:
            response = await self._provider.complete(
                messages,
                tools=[FAQ_TOOL],
                model=self._model,
            )
            tool_calls = list(getattr(response, "tool_calls", None) or [])
            faq_call = next(
                (call for call in tool_calls if call.function.name == FAQ_TOOL_NAME),
                None,
            )
            if faq_call is None:
                return AssistantReply(content=getattr(response, "content", None) or "")

            question = _parse_tool_question(faq_call.function.arguments)
            answer = await self._store.find_best_faq(question, embedder=self._provider.embed)

            followup_messages = [*messages, _message_to_dict(response)]
            for call in tool_calls:
                if call is faq_call:
                    payload = {"answer": answer.to_dict()}
                else:
                    payload = {"error": f"unknown tool {call.function.name}"}
                followup_messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": call.id,
                        "content": json.dumps(payload),
                    }
                )

            followup = await self._provider.complete(followup_messages, model=self._model)
            return AssistantReply(content=getattr(followup, "content", None) or "", faq=answer)
        except (FAQError, VectorError, ProviderError) as exc:
            log.error(
                "Assistant reply failed for user=%s question=%r corpus_size=%s: %s",
                user_id,
                text,
                self._store.size,
                exc,
            )
            return AssistantReply(content=FALLBACK_MESSAGE, fallback=True)
