from __future__ import annotations

__all__ = [
    "FAQError",
    "EmptyOrInvalidCorpusError",
    "NoEmbeddedEntriesError",
    "VectorError",
    "DimensionMismatchError",
    "DegenerateVectorError",
    "NonFiniteVectorError",
]


class FAQError(RuntimeError):
    """Base exception for FAQ lookups."""


class EmptyOrInvalidCorpusError(FAQError):
    """Raised when the corpus is missing, empty or has an unrecognised shape."""

    def __init__(self, reason: str | None = None) -> None:
        message = "FAQ corpus is empty or not a list"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.reason = reason


class NoEmbeddedEntriesError(FAQError):
    """Raised when no corpus entry carries a usable embedding."""

    def __init__(self, corpus_size: int) -> None:
        super().__init__(
            f"None of the {corpus_size} FAQ entries have embeddings; run the precompute step first"
        )
        self.corpus_size = corpus_size


class VectorError(ValueError):
    """Base exception for invalid similarity inputs."""


class DimensionMismatchError(VectorError):
    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"Vector dimensions differ: {left} != {right}")
        self.left = left
        self.right = right


class DegenerateVectorError(VectorError):
    """Raised when a vector has zero norm and has no direction to compare."""


class NonFiniteVectorError(VectorError):
    """Raised when a vector holds NaN or infinite components, or scoring overflows."""
