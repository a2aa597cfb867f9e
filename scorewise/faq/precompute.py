from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from scorewise.faq.corpus import assert_corpus
from scorewise.faq.matcher import Embedder

log = logging.getLogger(__name__)

__all__ = ["embed_faqs", "write_corpus_atomic"]


def write_corpus_atomic(path: str | Path, entries: list[dict[str, Any]]) -> None:
    """Write ``entries`` as JSON and move the file into place in one step."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=".tmp",
        dir=target.parent,
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(entries, handle, indent=2, ensure_ascii=False)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


async def embed_faqs(
    source_path: str | Path,
    target_path: str | Path,
    *,
    embedder: Embedder,
) -> bool:
    """Embed every FAQ question from ``source_path`` into ``target_path``.

    Returns ``False`` without calling ``embedder`` when the target already
    exists. The check is existence only: adding FAQs to the source file
    requires deleting the target so it is rebuilt. Nothing is written until
    every entry has an embedding.
    """

    target = Path(target_path)
    if target.exists():
        log.info("%s already exists; skipping FAQ embedding", target)
        return False

    entries = assert_corpus(Path(source_path).read_text(encoding="utf-8"))

    embedded: list[dict[str, Any]] = []
    for entry in entries:
        vector = await embedder(entry.question)
        entry.embedding = [float(value) for value in vector]
        embedded.append(entry.to_dict())

    write_corpus_atomic(target, embedded)
    log.info("Embedded %s FAQ entries into %s", len(embedded), target)
    return True
