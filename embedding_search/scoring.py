"""
Confidence scoring and result ranking for embedding search.

Similarity is the raw cosine score in [-1, 1]. Confidence is the
user-facing percentage derived from it: similarity * 100, clamped to
[0, 100] and rounded. Negative similarities all map to 0 — the display
doesn't distinguish "dissimilar" from "very dissimilar".

Ranking is a stable sort on similarity alone, so products with equal
scores keep their catalog order and results stay deterministic.
"""

import os
import math
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)

# Default number of results and minimum similarity for a search.
# Configure via environment or pass explicitly to search().
# The default threshold drops negative similarities; pass -1.0 to keep all.
DEFAULT_TOP_K = int(os.environ.get("SEARCH_TOP_K", "5"))
DEFAULT_THRESHOLD = float(os.environ.get("SEARCH_THRESHOLD", "0.0"))


def compute_confidence(similarity: float) -> int:
    """
    Map a cosine similarity to an integer confidence percentage (0-100).

    Non-finite input maps to 0. Halves round up (72.5 -> 73), not to even.
    """
    if similarity is None or not math.isfinite(similarity):
        return 0
    percent = max(0.0, min(100.0, similarity * 100))
    return int(math.floor(percent + 0.5))


def clamp_top_k(top_k: Optional[int], available: int) -> int:
    """
    Number of results to keep: at least 1, at most what's available.

    A top_k of 0 or below is treated as 1, never as "return nothing".
    None falls back to DEFAULT_TOP_K.
    """
    if top_k is None:
        top_k = DEFAULT_TOP_K
    return min(max(1, int(top_k)), available)


def rank_results(results: list, top_k: Optional[int] = None) -> list:
    """
    Drop non-finite scores, sort by similarity (highest first), and trim.

    Python's sort is stable, so ties keep their input (catalog) order.

    Args:
        results: ScoredResult-like objects with a 'similarity' attribute.
        top_k: Maximum results to return; see clamp_top_k().

    Returns:
        New sorted list, at most top_k long. The input is not modified.
    """
    valid = [
        r for r in results
        if r is not None
        and r.similarity is not None
        and math.isfinite(r.similarity)
    ]

    dropped = len(results) - len(valid)
    if dropped:
        logger.warning(f"Dropped {dropped} results with non-finite similarity")

    ranked = sorted(valid, key=lambda r: -r.similarity)
    return ranked[:clamp_top_k(top_k, len(ranked))]


def filter_by_threshold(results: List, threshold: float = DEFAULT_THRESHOLD) -> List:
    """Keep results whose similarity is at least threshold."""
    return [r for r in results if r.similarity >= threshold]
