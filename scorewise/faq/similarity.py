from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from scorewise.faq.errors import DegenerateVectorError, DimensionMismatchError, NonFiniteVectorError

__all__ = ["as_vector", "unit_direction", "cosine_similarity"]


def as_vector(values: Sequence[float], *, name: str = "vector") -> np.ndarray:
    vector = np.asarray(values, dtype=np.float64)
    if vector.ndim != 1:
        raise ValueError(f"{name} must be one-dimensional, got shape {vector.shape}")
    return vector


def unit_direction(vector: np.ndarray, *, name: str = "vector") -> np.ndarray:
    """Return ``vector`` scaled to unit length.

    Components are divided by the largest magnitude first so very large or
    very small embeddings neither overflow nor underflow the norm.
    """
    if not np.isfinite(vector).all():
        raise NonFiniteVectorError(f"{name} contains NaN or infinite components")
    scale = float(np.max(np.abs(vector))) if vector.size else 0.0
    if scale == 0.0:
        raise DegenerateVectorError(f"Cannot compute cosine similarity of a zero vector ({name})")
    scaled = vector / scale
    return scaled / float(np.linalg.norm(scaled))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``.

    Raises:
        DimensionMismatchError: if the vectors differ in length.
        DegenerateVectorError: if either vector has zero norm.
        NonFiniteVectorError: if either vector holds NaN or infinity.
    """
    left = as_vector(a, name="a")
    right = as_vector(b, name="b")
    if left.shape[0] != right.shape[0]:
        raise DimensionMismatchError(left.shape[0], right.shape[0])

    similarity = float(np.dot(unit_direction(left, name="a"), unit_direction(right, name="b")))
    if not math.isfinite(similarity):
        raise NonFiniteVectorError("Cosine similarity is not a finite number")
    # Rounding can push identical vectors just past 1.0.
    return max(-1.0, min(1.0, similarity))
