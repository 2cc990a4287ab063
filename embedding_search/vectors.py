"""
Embedding vector helpers: coercion, validation, and L2 normalization.

Embeddings arrive from the producer as plain numeric sequences. Everything
downstream works on 1-D float64 numpy arrays, so this module is the single
place where loose input (lists, tuples, float32 arrays) is turned into that
form, or rejected.

Normalization happens once, when an embedding is produced or stored. The
scorer never re-normalizes; see similarity.cosine_similarity.
"""

import os
import logging
from typing import Optional, Sequence, Union

import numpy as np

logger = logging.getLogger(__name__)

VectorLike = Union[Sequence[float], np.ndarray]

# Max deviation of ||v|| from 1.0 for a vector to count as unit length.
UNIT_NORM_TOLERANCE = float(os.environ.get("UNIT_NORM_TOLERANCE", "1e-6"))


def as_vector(value) -> Optional[np.ndarray]:
    """
    Coerce a 1-D numeric sequence to a float64 array.

    Returns None for anything that is not a proper vector: None itself,
    scalars, nested/ragged sequences, strings, or non-numeric items.
    Non-finite values are kept; callers decide what to do with them.
    """
    if value is None or isinstance(value, (str, bytes)):
        return None
    try:
        arr = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError, OverflowError):
        return None
    if arr.ndim != 1:
        return None
    return arr


def is_valid_vector(value, dim: Optional[int] = None) -> bool:
    """True if value is a non-empty, all-finite 1-D vector (of length dim, if given)."""
    arr = as_vector(value)
    if arr is None or arr.size == 0:
        return False
    if dim is not None and arr.size != dim:
        return False
    return bool(np.all(np.isfinite(arr)))


def normalize(vector: VectorLike) -> np.ndarray:
    """
    L2-normalize a vector: v / ||v||.

    An all-zero vector has no direction, so it comes back unchanged rather
    than producing a division by zero. The input is never modified; a new
    array is always returned.

    Args:
        vector: 1-D numeric sequence.

    Returns:
        New float64 array of the same length. Empty if the input was not
        a vector.
    """
    arr = as_vector(vector)
    if arr is None:
        logger.debug("normalize() got a non-vector input")
        return np.array([], dtype=np.float64)

    norm = float(np.sqrt(np.dot(arr, arr)))
    if norm == 0 or not np.isfinite(norm):
        return arr.copy()

    return arr / norm


def is_unit(vector: VectorLike, tol: float = UNIT_NORM_TOLERANCE) -> bool:
    """True if the vector's L2 norm is within tol of 1.0."""
    arr = as_vector(vector)
    if arr is None or arr.size == 0:
        return False
    norm = float(np.linalg.norm(arr))
    return bool(np.isfinite(norm) and abs(norm - 1.0) <= tol)
