from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock

from scorewise.faq.corpus import load_corpus_file
from scorewise.faq.errors import EmptyOrInvalidCorpusError
from scorewise.faq.matcher import Embedder, find_best_faq
from scorewise.faq.models import FAQAnswer, FAQEntry

log = logging.getLogger(__name__)

__all__ = ["FAQCorpusStore"]


class FAQCorpusStore:
    """File-backed FAQ corpus, re-read whenever the file changes on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = Lock()
        self._signature: tuple[int, int] | None = None
        self._entries: list[FAQEntry] = []

    def _current_signature(self) -> tuple[int, int]:
        try:
            stat = self.path.stat()
        except FileNotFoundError as exc:
            raise EmptyOrInvalidCorpusError(f"{self.path} does not exist") from exc
        return stat.st_mtime_ns, stat.st_size

    def load(self) -> list[FAQEntry]:
        signature = self._current_signature()
        with self._lock:
            if signature != self._signature:
                entries = load_corpus_file(self.path)
                log.debug("Loaded %s FAQ entries from %s", len(entries), self.path)
                self._entries = entries
                self._signature = signature
            return list(self._entries)

    @property
    def size(self) -> int:
        """Number of cached entries; 0 before the first successful load."""
        return len(self._entries)

    def invalidate(self) -> None:
        with self._lock:
            self._signature = None
            self._entries = []

    async def find_best_faq(self, question: str, *, embedder: Embedder) -> FAQAnswer:
        return await find_best_faq(question, self.load(), embedder=embedder)
