"""Shared test fixtures for embedding search tests."""

import json

import numpy as np
import cv2
import pytest

from embedding_search.catalog import CatalogEntry, CatalogStore


def make_entry(entry_id, embedding, category="Footwear"):
    return CatalogEntry(
        id=entry_id,
        name=f"Product {entry_id}",
        category=category,
        image_ref=f"/assets/{entry_id}.jpg",
        embedding=embedding,
    )


@pytest.fixture
def abc_catalog():
    """Three 2-d products: a matches [1, 0], b is close, c is opposite."""
    return [
        make_entry("a", [1.0, 0.0]),
        make_entry("b", [0.9, 0.1]),
        make_entry("c", [-1.0, 0.0]),
    ]


@pytest.fixture
def abc_store(abc_catalog):
    return CatalogStore(abc_catalog)


@pytest.fixture
def catalog_records():
    """Raw JSON product records in the on-disk catalog format."""
    return [
        {"id": "shoe_001", "name": "Shoe 1", "category": "Footwear",
         "brand": "Various", "image": "/assets/shoes/shoe1.jpg",
         "embedding": [0.6, 0.8, 0.0]},
        {"id": "shoe_002", "name": "Shoe 2", "category": "Footwear",
         "brand": "Various", "image": "/assets/shoes/shoe2.jpg",
         "embedding": [0.0, 0.6, 0.8]},
    ]


@pytest.fixture
def catalog_file(tmp_path, catalog_records):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({"products": catalog_records}), encoding="utf-8")
    return str(path)


@pytest.fixture
def red_square_image():
    """Generate a 200x200 red square on white background."""
    img = np.ones((200, 200, 3), dtype=np.uint8) * 255
    img[40:160, 40:160] = [200, 30, 30]
    return img


@pytest.fixture
def blue_circle_image():
    """Generate a 200x200 blue circle on white background."""
    img = np.ones((200, 200, 3), dtype=np.uint8) * 255
    cv2.circle(img, (100, 100), 60, (30, 30, 200), -1)
    return img


@pytest.fixture
def noise_image():
    """Generate a 200x200 random noise image."""
    rng = np.random.RandomState(42)
    return rng.randint(0, 255, (200, 200, 3), dtype=np.uint8)
