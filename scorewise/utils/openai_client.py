from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Sequence, TypeVar

import httpx
import openai
from openai import AsyncOpenAI

log = logging.getLogger(__name__)

__all__ = [
    "ProviderError",
    "ProviderTimeoutError",
    "OpenAIProvider",
    "with_retry",
    "RETRYABLE_ERRORS",
]

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.InternalServerError,
    httpx.TransportError,
)


class ProviderError(RuntimeError):
    """Raised when an embedding or completion call fails."""


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds its timeout."""


def _format_exception(exc: BaseException) -> str:
    return f"{exc.__class__.__name__}: {exc}"


async def with_retry(
    call: Callable[[], Awaitable[T]],
    *,
    timeout: float,
    attempts: int = 2,
    backoff: float = 0.5,
    label: str = "provider call",
) -> T:
    """Run ``call`` with a timeout, retrying transient failures.

    ``attempts`` counts the first try, so the default retries once. Timeouts
    surface as :class:`ProviderTimeoutError` and everything else as
    :class:`ProviderError` once the attempts are exhausted. Non-transient
    API errors (bad request, authentication) are not retried.
    """

    max_attempts = max(1, attempts)
    last_error: ProviderError | None = None
    for attempt_index in range(max_attempts):
        attempt_number = attempt_index + 1
        try:
            return await asyncio.wait_for(call(), timeout=timeout)
        except asyncio.CancelledError:
            raise
        except (asyncio.TimeoutError, openai.APITimeoutError, httpx.TimeoutException) as exc:
            log.warning(
                "%s timed out on attempt %s/%s (%.1fs)",
                label,
                attempt_number,
                max_attempts,
                timeout,
            )
            last_error = ProviderTimeoutError(f"{label} timed out after {timeout:.1f}s")
            last_error.__cause__ = exc
        except RETRYABLE_ERRORS as exc:
            log.warning(
                "%s failed on attempt %s/%s: %s",
                label,
                attempt_number,
                max_attempts,
                _format_exception(exc),
            )
            last_error = ProviderError(f"{label} failed: {_format_exception(exc)}")
            last_error.__cause__ = exc
        except openai.OpenAIError as exc:
            raise ProviderError(f"{label} failed: {_format_exception(exc)}") from exc

        if attempt_index < max_attempts - 1:
            await asyncio.sleep(min(backoff * (2**attempt_index), 5.0))

    assert last_error is not None
    raise last_error


class OpenAIProvider:
    """Embedding and chat completion calls against the OpenAI API."""

    def __init__(
        self,
        api_key: str,
        *,
        embedding_model: str = "text-embedding-3-small",
        chat_model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        attempts: int = 2,
        client: AsyncOpenAI | None = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise RuntimeError("Missing OPENAI_API_KEY")
            client = AsyncOpenAI(
                api_key=api_key,
                timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
                # Retries are handled by with_retry so the call-level timeout holds.
                max_retries=0,
            )
        self.client = client
        self.embedding_model = embedding_model
        self.chat_model = chat_model
        self.timeout = timeout
        self.attempts = attempts

    async def embed(self, text: str) -> list[float]:
        async def _call():
            return await self.client.embeddings.create(
                model=self.embedding_model,
                input=text,
            )

        response = await with_retry(
            _call,
            timeout=self.timeout,
            attempts=self.attempts,
            label="embedding request",
        )
        try:
            return [float(value) for value in response.data[0].embedding]
        except (AttributeError, IndexError, TypeError) as exc:
            raise ProviderError("embedding response did not contain a vector") from exc

    async def complete(
        self,
        messages: Sequence[Mapping[str, Any]],
        *,
        tools: Sequence[Mapping[str, Any]] | None = None,
        tool_choice: Any = None,
        model: str | None = None,
    ) -> Any:
        """Return the first choice's message from a chat completion."""

        kwargs: dict[str, Any] = {
            "model": model or self.chat_model,
            "messages": list(messages),
        }
        if tools:
            kwargs["tools"] = list(tools)
        if tool_choice is not None:
            kwargs["tool_choice"] = tool_choice

        async def _call():
            return await self.client.chat.completions.create(**kwargs)

        completion = await with_retry(
            _call,
            timeout=self.timeout,
            attempts=self.attempts,
            label="chat completion",
        )
        try:
            return completion.choices[0].message
        except (AttributeError, IndexError) as exc:
            raise ProviderError("chat completion returned no choices") from exc

    async def upload_file(self, path: str | Path, *, purpose: str = "user_data") -> str:
        """Upload a local file and return the provider's file id."""

        file_path = Path(path)

        async def _call():
            return await self.client.files.create(file=file_path, purpose=purpose)

        uploaded = await with_retry(
            _call,
            timeout=self.timeout,
            attempts=self.attempts,
            label="file upload",
        )
        return uploaded.id
