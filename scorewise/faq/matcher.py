from __future__ import annotations

import logging
from numbers import Real
from typing import Any, Awaitable, Callable, Optional, Sequence

from scorewise.faq.corpus import assert_corpus
from scorewise.faq.errors import DegenerateVectorError, NoEmbeddedEntriesError, NonFiniteVectorError
from scorewise.faq.models import FAQAnswer, FAQEntry, FAQMatch
from scorewise.faq.similarity import as_vector, cosine_similarity, unit_direction

log = logging.getLogger(__name__)

__all__ = ["Embedder", "select_best_entry", "find_best_faq"]

Embedder = Callable[[str], Awaitable[Sequence[float]]]


def _usable_embedding(entry: FAQEntry) -> Optional[Sequence[float]]:
    embedding = entry.embedding
    if not isinstance(embedding, (list, tuple)) or not embedding:
        return None
    if not all(isinstance(value, Real) and not isinstance(value, bool) for value in embedding):
        return None
    return embedding


def select_best_entry(query_embedding: Sequence[float], entries: Sequence[FAQEntry]) -> FAQMatch:
    query = as_vector(query_embedding, name="query embedding")
    # A zero or non-finite query is an error, not a skipped candidate.
    unit_direction(query, name="query embedding")

    best: FAQMatch | None = None
    for index, entry in enumerate(entries):
        embedding = _usable_embedding(entry)
        if embedding is None:
            continue
        try:
            similarity = cosine_similarity(query, embedding)
        except DegenerateVectorError:
            log.warning("Skipping FAQ entry %s with a zero embedding", index)
            continue
        except NonFiniteVectorError:
            log.warning("Skipping FAQ entry %s with a non-finite embedding", index)
            continue
        # Strict comparison keeps the earliest entry on ties.
        if best is None or similarity > best.similarity:
            best = FAQMatch(entry=entry, similarity=similarity, index=index)

    if best is None:
        raise NoEmbeddedEntriesError(len(entries))
    return best


async def find_best_faq(
    question: str,
    corpus: Any,
    *,
    embedder: Embedder,
) -> FAQAnswer:
    """Return the FAQ pair closest to ``question``.

    The corpus is validated before the embedding request so malformed
    state fails without a provider call.
    """

    entries = assert_corpus(corpus)
    query_embedding = await embedder(question)
    match = select_best_entry(query_embedding, entries)
    log.debug(
        "Matched FAQ entry %s (similarity=%.4f) out of %s entries",
        match.index,
        match.similarity,
        len(entries),
    )
    return match.to_answer()
