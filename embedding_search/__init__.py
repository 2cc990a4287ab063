"""
embedding_search — Product similarity search over image embeddings.

Scores a query embedding against every product in a catalog with cosine
similarity, then filters, ranks, and trims the matches. Embeddings come
from a pluggable producer; an OpenCV colour-histogram producer is included.

Modules:
    engine          SearchEngine class and one-shot search helper
    similarity      Cosine similarity scorer (fail-soft)
    vectors         Vector coercion, validation, L2 normalization
    scoring         Confidence mapping and stable top-K ranking
    catalog         Catalog records, JSON loader, snapshot store
    histograms      HSV histogram embedding producer
    preprocessing   Image loading, conversion and centering
    index_builder   Batch catalog construction from an image directory
    exceptions      Errors raised outside the search path
"""

from .catalog import CatalogEntry, CatalogStore, ScoredResult, load_catalog, save_catalog
from .engine import SearchEngine, search_similar_products
from .exceptions import CatalogError, EmbeddingError, EmbeddingSearchError
from .histograms import HistogramEmbedder
from .similarity import cosine_similarity, cosine_similarity_normalized
from .vectors import normalize

__version__ = "1.0.0"
