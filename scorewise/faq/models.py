from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence


@dataclass(slots=True)
class FAQEntry:
    """Question/answer pair from the persisted FAQ corpus."""

    question: str
    answer: str
    embedding: Optional[Sequence[float]] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "FAQEntry":
        return cls(
            question=str(raw.get("question") or ""),
            answer=str(raw.get("answer") or ""),
            embedding=raw.get("embedding"),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"question": self.question, "answer": self.answer}
        if self.embedding is not None:
            payload["embedding"] = [float(value) for value in self.embedding]
        return payload


@dataclass(slots=True)
class FAQAnswer:
    """Caller-facing match result. Never carries the embedding vector."""

    question: str
    answer: str

    def to_dict(self) -> dict[str, str]:
        return {"question": self.question, "answer": self.answer}


@dataclass(slots=True)
class FAQMatch:
    """Entry selected by a similarity lookup."""

    entry: FAQEntry
    similarity: float
    index: int

    def to_answer(self) -> FAQAnswer:
        return FAQAnswer(question=self.entry.question, answer=self.entry.answer)
