"""Parsing and validation of persisted FAQ corpora.

A corpus arrives in one of three shapes: a plain list of entries, an
envelope object with a ``faqs`` list, or JSON text encoding either of
those, possibly encoded more than once. Parsing is lenient and records
why an input was not recognised; :func:`assert_corpus` is the strict
step callers use before matching.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

from scorewise.faq.errors import EmptyOrInvalidCorpusError
from scorewise.faq.models import FAQEntry

log = logging.getLogger(__name__)

__all__ = [
    "CorpusShape",
    "ParsedCorpus",
    "parse_corpus",
    "normalize_corpus",
    "assert_corpus",
    "load_corpus_file",
]


class CorpusShape(enum.Enum):
    LIST = "list"
    ENVELOPE = "envelope"
    TEXT = "text"
    UNRECOGNIZED = "unrecognized"


@dataclass(slots=True)
class ParsedCorpus:
    shape: CorpusShape
    entries: list[Any] = field(default_factory=list)
    reason: str | None = None

    @property
    def recognized(self) -> bool:
        return self.shape is not CorpusShape.UNRECOGNIZED


def _unrecognized(reason: str) -> ParsedCorpus:
    return ParsedCorpus(shape=CorpusShape.UNRECOGNIZED, reason=reason)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def parse_corpus(raw: Any) -> ParsedCorpus:
    if raw is None or (isinstance(raw, (str, bytes, bytearray)) and not raw.strip()):
        return _unrecognized("empty input")

    if _is_sequence(raw):
        return ParsedCorpus(shape=CorpusShape.LIST, entries=list(raw))

    if isinstance(raw, (str, bytes, bytearray)):
        try:
            decoded = json.loads(raw)
        except (TypeError, ValueError):
            return _unrecognized("invalid JSON text")
        # Double-encoded text is unwrapped until it decodes to a non-string.
        inner = parse_corpus(decoded)
        if not inner.recognized:
            return inner
        return ParsedCorpus(shape=CorpusShape.TEXT, entries=inner.entries)

    if isinstance(raw, Mapping):
        faqs = raw.get("faqs")
        if _is_sequence(faqs):
            return ParsedCorpus(shape=CorpusShape.ENVELOPE, entries=list(faqs))
        return _unrecognized("mapping without a 'faqs' list")

    return _unrecognized(f"unsupported type {type(raw).__name__}")


def normalize_corpus(raw: Any) -> list[Any]:
    """Return the corpus entries, or an empty list for unrecognised input."""
    return parse_corpus(raw).entries


def _coerce_entry(item: Any) -> FAQEntry | None:
    if isinstance(item, FAQEntry):
        return item
    if isinstance(item, Mapping):
        return FAQEntry.from_mapping(item)
    return None


def assert_corpus(raw: Any) -> list[FAQEntry]:
    parsed = parse_corpus(raw)
    if not parsed.entries:
        raise EmptyOrInvalidCorpusError(parsed.reason)

    entries: list[FAQEntry] = []
    for position, item in enumerate(parsed.entries):
        entry = _coerce_entry(item)
        if entry is None:
            log.debug("Skipping FAQ corpus item %s of type %s", position, type(item).__name__)
            continue
        entries.append(entry)

    if not entries:
        raise EmptyOrInvalidCorpusError("no entries are objects")
    return entries


def load_corpus_file(path: str | Path) -> list[FAQEntry]:
    corpus_path = Path(path)
    try:
        text = corpus_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise EmptyOrInvalidCorpusError(f"{corpus_path} does not exist") from exc
    return assert_corpus(text)
