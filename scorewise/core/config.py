from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from scorewise.faq.constants import DEFAULT_CORPUS_FILENAME, DEFAULT_SOURCE_FILENAME

_logger = logging.getLogger(__name__)

TRUE_VALUES = {"1", "true", "yes", "on"}

DEFAULT_CHAT_MODEL = "gpt-4o-mini"
DEFAULT_REPORT_MODEL = "gpt-4.1"
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"


def _parse_float(
    raw: str | None,
    *,
    default: float,
    minimum: float | None = None,
    name: str = "value",
) -> float:
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        _logger.warning("Invalid %s=%s; using %s", name, raw, default)
        return default
    if value != value:  # NaN check
        _logger.warning("Invalid %s=%s; using %s", name, raw, default)
        return default
    if minimum is not None and value < minimum:
        _logger.warning("%s=%s below minimum %s; clamping", name, value, minimum)
        return minimum
    return value


def _parse_bool(raw: str | None, *, default: bool) -> bool:
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in TRUE_VALUES


@dataclass(slots=True)
class OpenAISettings:
    api_key: str
    chat_model: str
    report_model: str
    embedding_model: str
    timeout: float


@dataclass(slots=True)
class FAQSettings:
    source_path: str
    corpus_path: str
    precompute_on_start: bool


@dataclass(slots=True)
class RuntimeConfig:
    log_level: str
    openai: OpenAISettings
    faq: FAQSettings


def load_runtime_config() -> RuntimeConfig:
    load_dotenv()

    log_level = os.getenv("LOG_LEVEL", "WARNING").upper()

    openai_settings = OpenAISettings(
        api_key=os.getenv("OPENAI_API_KEY", ""),
        chat_model=os.getenv("OPENAI_CHAT_MODEL", "").strip() or DEFAULT_CHAT_MODEL,
        report_model=os.getenv("OPENAI_REPORT_MODEL", "").strip() or DEFAULT_REPORT_MODEL,
        embedding_model=(
            os.getenv("OPENAI_EMBEDDING_MODEL", "").strip() or DEFAULT_EMBEDDING_MODEL
        ),
        timeout=_parse_float(
            os.getenv("OPENAI_TIMEOUT"),
            default=30.0,
            minimum=1.0,
            name="OPENAI_TIMEOUT",
        ),
    )

    faq_settings = FAQSettings(
        source_path=os.getenv("FAQ_SOURCE_PATH", "").strip() or DEFAULT_SOURCE_FILENAME,
        corpus_path=(
            os.getenv("FAQ_CORPUS_PATH", "").strip() or DEFAULT_CORPUS_FILENAME
        ),
        precompute_on_start=_parse_bool(
            os.getenv("FAQ_PRECOMPUTE_ON_START"),
            default=True,
        ),
    )

    return RuntimeConfig(
        log_level=log_level,
        openai=openai_settings,
        faq=faq_settings,
    )
