"""
Product catalog records and the read-only snapshot store.

The catalog file is JSON, one record per product:

    {"products": [
        {"id": "item_001", "name": "Item 001", "category": "Footwear",
         "brand": "Various", "image": "images/item_001.jpg",
         "embedding": [0.012, -0.094, ...]},
        ...
    ]}

A bare top-level list of product records is accepted as well. All
embeddings in one catalog must share a single dimension; records that
don't are skipped on load.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np

from .exceptions import CatalogError
from .vectors import as_vector, is_valid_vector

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "name", "embedding")


@dataclass(frozen=True)
class CatalogEntry:
    """
    One product in the catalog.

    The embedding is stored as a read-only float64 array so a search can
    hold a reference to it without any risk of modifying the catalog.
    """
    id: str
    name: str
    category: str
    image_ref: str
    embedding: np.ndarray = field(compare=False, repr=False)
    brand: str = ""

    def __post_init__(self):
        arr = as_vector(self.embedding)
        arr = np.array([], dtype=np.float64) if arr is None else arr.copy()
        arr.setflags(write=False)
        object.__setattr__(self, "embedding", arr)

    @property
    def dim(self) -> int:
        return int(self.embedding.size)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "brand": self.brand,
            "image": self.image_ref,
            "embedding": [float(x) for x in self.embedding],
        }


@dataclass(frozen=True)
class ScoredResult:
    """A catalog entry paired with its similarity to one query."""
    entry: CatalogEntry
    similarity: float
    confidence: int

    @property
    def id(self) -> str:
        return self.entry.id

    def to_dict(self) -> Dict[str, Any]:
        """Flat result record: id, name, category, image, similarity, confidence."""
        return {
            "id": self.entry.id,
            "name": self.entry.name,
            "category": self.entry.category,
            "image": self.entry.image_ref,
            "similarity": self.similarity,
            "confidence": self.confidence,
        }


def entry_from_record(record: Dict[str, Any]) -> CatalogEntry:
    """
    Build a CatalogEntry from one JSON product record.

    Raises:
        CatalogError: If a required field is missing or the embedding is
            not a finite numeric vector.
    """
    if not isinstance(record, dict):
        raise CatalogError(f"Product record must be an object, got {type(record).__name__}")

    missing = [k for k in REQUIRED_FIELDS if k not in record]
    if missing:
        raise CatalogError(f"Product record missing fields: {', '.join(missing)}")

    if not is_valid_vector(record["embedding"]):
        raise CatalogError(f"Product {record['id']!r} has an invalid embedding")

    return CatalogEntry(
        id=str(record["id"]),
        name=str(record["name"]),
        category=str(record.get("category", "")),
        image_ref=str(record.get("image", "")),
        embedding=record["embedding"],
        brand=str(record.get("brand", "")),
    )


def load_catalog(path: str, dim: Optional[int] = None) -> List[CatalogEntry]:
    """
    Load catalog entries from a JSON file.

    Malformed records, duplicate ids, and embeddings whose length differs
    from dim (or, if dim is None, from the first valid record) are logged
    and skipped.

    Args:
        path: Catalog JSON file.
        dim: Expected embedding dimension, if known.

    Returns:
        Entries in file order.

    Raises:
        CatalogError: If the file can't be read or isn't a product list.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CatalogError(f"Could not read catalog {path}: {e}") from e

    records = data.get("products") if isinstance(data, dict) else data
    if not isinstance(records, list):
        raise CatalogError(f"Catalog {path} has no product list")

    entries = []
    seen_ids = set()
    skipped = 0

    for i, record in enumerate(records):
        try:
            entry = entry_from_record(record)
        except CatalogError as e:
            logger.warning(f"Skipping record {i}: {e}")
            skipped += 1
            continue

        if entry.id in seen_ids:
            logger.warning(f"Skipping record {i}: duplicate id {entry.id!r}")
            skipped += 1
            continue

        if dim is None:
            dim = entry.dim
        elif entry.dim != dim:
            logger.warning(
                f"Skipping record {i} ({entry.id}): dimension {entry.dim}, "
                f"expected {dim}"
            )
            skipped += 1
            continue

        seen_ids.add(entry.id)
        entries.append(entry)

    logger.info(
        f"Loaded catalog {path}: {len(entries)} products, "
        f"{dim or 0}d embeddings, {skipped} skipped"
    )
    return entries


def save_catalog(entries: Iterable[CatalogEntry], path: str) -> int:
    """Write entries to a JSON catalog file. Returns the number written."""
    products = [e.to_dict() for e in entries]

    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        json.dump({"products": products}, f, indent=2)

    return len(products)


class CatalogStore:
    """
    Holds the current catalog and hands out point-in-time snapshots.

    A snapshot is an immutable tuple. replace() swaps in a whole new tuple,
    so a search already iterating an older snapshot is unaffected by a
    reload that happens mid-flight.
    """

    def __init__(self, entries: Iterable[CatalogEntry] = ()):
        self._entries: Tuple[CatalogEntry, ...] = tuple(entries)

    @classmethod
    def from_file(cls, path: str, dim: Optional[int] = None) -> "CatalogStore":
        return cls(load_catalog(path, dim=dim))

    def snapshot(self) -> Tuple[CatalogEntry, ...]:
        return self._entries

    def replace(self, entries: Iterable[CatalogEntry]) -> None:
        # Single reference assignment; readers see the old or the new tuple.
        new_entries = tuple(entries)
        self._entries = new_entries
        logger.info(f"Catalog replaced: {len(new_entries)} products")

    def get(self, entry_id: str) -> Optional[CatalogEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    @property
    def dim(self) -> Optional[int]:
        entries = self._entries
        return entries[0].dim if entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)
