"""
Cosine similarity between embedding vectors.

Every failure mode here is recoverable: a missing vector, a length mismatch,
an empty vector, a NaN/inf component, or a zero-norm vector all score 0.0.
The ranking loop calls this once per catalog entry and must keep going when
a single entry is poisoned, so nothing in this module raises.
"""

import logging

import numpy as np

from .vectors import as_vector, VectorLike

logger = logging.getLogger(__name__)


def _paired(a: VectorLike, b: VectorLike):
    """Coerce both inputs; return (a, b) arrays, or None if they can't be compared."""
    va = as_vector(a)
    vb = as_vector(b)
    if va is None or vb is None:
        return None
    if va.size != vb.size:
        logger.debug(f"Dimension mismatch: {va.size} vs {vb.size}")
        return None
    if va.size == 0:
        return None
    if not (np.all(np.isfinite(va)) and np.all(np.isfinite(vb))):
        logger.debug("Non-finite component in vector pair")
        return None
    return va, vb


def _clamp(value: float) -> float:
    if not np.isfinite(value):
        return 0.0
    return float(max(-1.0, min(1.0, value)))


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """
    Cosine similarity of two equal-length vectors, in [-1, 1].

    Both norms are recomputed, so inputs need not be pre-normalized.

    Returns 0.0 when either input is missing or not a vector, the lengths
    differ, either vector is empty, any component is non-finite, or either
    norm is zero or overflows. The result is clamped to [-1, 1] to absorb
    floating-point drift.
    """
    pair = _paired(a, b)
    if pair is None:
        return 0.0
    va, vb = pair

    with np.errstate(over="ignore", invalid="ignore"):
        dot = float(np.dot(va, vb))
        norm_a = float(np.sqrt(np.dot(va, va)))
        norm_b = float(np.sqrt(np.dot(vb, vb)))

        if norm_a == 0 or norm_b == 0:
            return 0.0
        if not (np.isfinite(norm_a) and np.isfinite(norm_b)):
            return 0.0

        # Product of two tiny norms can underflow to zero.
        denom = norm_a * norm_b
        if denom == 0:
            return 0.0

        return _clamp(dot / denom)


def cosine_similarity_normalized(a: VectorLike, b: VectorLike) -> float:
    """
    Fast path for vectors the caller guarantees are already unit length.

    Skips both norm computations; the result is just the dot product,
    clamped to [-1, 1]. Same 0.0 sentinel for invalid input as
    cosine_similarity(). Passing non-unit vectors gives a wrong score,
    not an error.
    """
    pair = _paired(a, b)
    if pair is None:
        return 0.0
    va, vb = pair

    with np.errstate(over="ignore", invalid="ignore"):
        return _clamp(float(np.dot(va, vb)))
