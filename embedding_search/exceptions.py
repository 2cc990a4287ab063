"""
Exceptions raised outside the search core.

The search path itself never raises: invalid queries and poisoned catalog
entries degrade to a zero similarity or an empty result list. These types
cover the collaborators around it: reading a catalog file and turning an
image into an embedding.
"""


class EmbeddingSearchError(Exception):
    """Base class for errors raised by this package."""


class CatalogError(EmbeddingSearchError):
    """Catalog file is missing, unreadable, or not in the expected format."""


class EmbeddingError(EmbeddingSearchError):
    """Embedding producer could not turn an image into a vector."""
