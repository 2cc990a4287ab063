"""
Embedding similarity search engine.

Linear scan over a catalog snapshot:
    1. Validate the query embedding
    2. Score every catalog entry with cosine similarity
    3. Attach a 0-100 confidence to each score
    4. Drop entries under the threshold, sort, keep the top K

Search never raises. A bad query or an empty catalog gives an empty list;
a poisoned catalog entry scores 0 and the scan carries on.
"""

import time
import logging
from typing import Callable, Iterable, List, Optional, Union

import numpy as np

from .catalog import CatalogEntry, CatalogStore, ScoredResult
from .exceptions import EmbeddingError
from .scoring import (
    DEFAULT_THRESHOLD, DEFAULT_TOP_K, compute_confidence,
    filter_by_threshold, rank_results,
)
from .similarity import cosine_similarity, cosine_similarity_normalized
from .vectors import as_vector

logger = logging.getLogger(__name__)

Embedder = Callable[[np.ndarray], np.ndarray]
CatalogSource = Union[CatalogStore, Iterable[CatalogEntry]]


class SearchEngine:
    """
    Ranks catalog products by embedding similarity to a query.

    The engine reads the catalog through a snapshot taken at the start of
    each call and never writes to it, so one engine can serve concurrent
    callers while the store is reloaded underneath it.
    """

    def __init__(self,
                 catalog: CatalogSource,
                 embedder: Optional[Embedder] = None,
                 default_top_k: int = DEFAULT_TOP_K,
                 assume_normalized: bool = False):
        """
        Args:
            catalog: CatalogStore, or any iterable of CatalogEntry (wrapped
                in a store).
            embedder: Optional callable turning an RGB image into a query
                embedding; required only for search_image().
            default_top_k: Result count when search() isn't given one.
            assume_normalized: Score with the unit-vector fast path. Only
                safe when both query and catalog embeddings are L2-normalized.
        """
        if not isinstance(catalog, CatalogStore):
            catalog = CatalogStore(() if catalog is None else catalog)
        self.catalog = catalog
        self.embedder = embedder
        self.default_top_k = default_top_k
        self.assume_normalized = assume_normalized
        self._score = cosine_similarity_normalized if assume_normalized else cosine_similarity

    def search(self,
               query_embedding,
               top_k: Optional[int] = None,
               threshold: float = DEFAULT_THRESHOLD) -> List[ScoredResult]:
        """
        Find the catalog products most similar to a query embedding.

        Args:
            query_embedding: 1-D numeric sequence, same length as the
                catalog embeddings.
            top_k: Maximum results. Values below 1 are treated as 1.
                Defaults to the engine's default_top_k.
            threshold: Minimum similarity to include a result.

        Returns:
            ScoredResult list, highest similarity first, ties in catalog
            order. Empty if the query is invalid or the catalog is empty.
        """
        start = time.perf_counter()

        query = as_vector(query_embedding)
        if query is None or query.size == 0:
            logger.warning("Invalid query embedding")
            return []

        entries = self.catalog.snapshot()
        if not entries:
            logger.warning("Empty catalog")
            return []

        if top_k is None:
            top_k = self.default_top_k

        results = []
        for entry in entries:
            similarity = self._score(query, entry.embedding)
            results.append(ScoredResult(
                entry=entry,
                similarity=similarity,
                confidence=compute_confidence(similarity),
            ))

        results = rank_results(filter_by_threshold(results, threshold), top_k)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"Search complete: {len(entries)} products scored -> "
            f"{len(results)} results in {elapsed_ms:.2f}ms"
        )
        return results

    def search_image(self,
                     image: np.ndarray,
                     top_k: Optional[int] = None,
                     threshold: float = DEFAULT_THRESHOLD) -> List[ScoredResult]:
        """
        Embed an image with the configured embedder, then search().

        Returns an empty list when no embedder is configured or it fails
        on this image.
        """
        if self.embedder is None:
            logger.error("search_image() called without an embedder")
            return []

        try:
            query_embedding = self.embedder(image)
        except EmbeddingError as e:
            logger.error(f"Query embedding failed: {e}")
            return []

        return self.search(query_embedding, top_k=top_k, threshold=threshold)


def search_similar_products(query_embedding,
                            catalog: CatalogSource,
                            top_k: int = DEFAULT_TOP_K,
                            threshold: float = DEFAULT_THRESHOLD) -> List[dict]:
    """
    One-shot search returning flat result dicts.

    Each dict has id, name, category, image, similarity, and confidence.
    """
    engine = SearchEngine(catalog, default_top_k=top_k)
    return [r.to_dict() for r in engine.search(query_embedding, top_k=top_k, threshold=threshold)]
