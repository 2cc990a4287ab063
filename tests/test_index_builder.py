"""Tests for batch catalog construction."""

import json
import os

import cv2
import numpy as np
import pytest

from embedding_search.catalog import load_catalog
from embedding_search.engine import SearchEngine
from embedding_search.histograms import HistogramEmbedder
from embedding_search.index_builder import build_catalog, display_name, main


@pytest.fixture
def image_dir(tmp_path, red_square_image, blue_circle_image):
    """Directory with two product images and one non-image file."""
    directory = tmp_path / "images"
    directory.mkdir()
    cv2.imwrite(str(directory / "red_sneaker.png"),
                cv2.cvtColor(red_square_image, cv2.COLOR_RGB2BGR))
    cv2.imwrite(str(directory / "blue-boot.png"),
                cv2.cvtColor(blue_circle_image, cv2.COLOR_RGB2BGR))
    (directory / "notes.txt").write_text("not a product", encoding="utf-8")
    return str(directory)


@pytest.fixture
def embedder():
    return HistogramEmbedder(h_bins=8, s_bins=8).load()


class TestDisplayName:

    @pytest.mark.parametrize("filename,expected", [
        ("red_sneaker.jpg", "Red Sneaker"),
        ("blue-boot-02.png", "Blue Boot 02"),
        ("shoe1.webp", "Shoe1"),
    ])
    def test_from_filename(self, filename, expected):
        assert display_name(filename) == expected


class TestBuildCatalog:
    """Tests for catalog construction."""

    def test_builds_catalog(self, tmp_path, image_dir, embedder):
        out = str(tmp_path / "catalog.json")
        summary = build_catalog(image_dir, out, embedder, category="Footwear")

        assert summary["success"]
        assert summary["processed"] == 2
        assert summary["dimensions"] == 64
        assert os.path.exists(out)

        with open(out, encoding="utf-8") as f:
            products = json.load(f)["products"]
        # Sorted filename order: blue-boot.png, red_sneaker.png
        assert [p["id"] for p in products] == ["item_001", "item_002"]
        assert products[0]["name"] == "Blue Boot"
        assert products[0]["category"] == "Footwear"
        assert products[0]["brand"] == "Various"
        assert products[0]["image"].endswith("/blue-boot.png")

    def test_embeddings_normalized(self, tmp_path, image_dir):
        out = str(tmp_path / "catalog.json")
        # Raw, unnormalized producer
        build_catalog(image_dir, out, lambda image: [3.0, 4.0])
        for entry in load_catalog(out):
            assert np.allclose(entry.embedding, [0.6, 0.8])

    def test_image_prefix(self, tmp_path, image_dir, embedder):
        out = str(tmp_path / "catalog.json")
        build_catalog(image_dir, out, embedder, image_prefix="/assets/shoes")
        refs = [e.image_ref for e in load_catalog(out)]
        assert refs == ["/assets/shoes/blue-boot.png", "/assets/shoes/red_sneaker.png"]

    def test_skips_unreadable(self, tmp_path, image_dir, embedder):
        with open(os.path.join(image_dir, "broken.jpg"), "wb") as f:
            f.write(b"garbage")
        summary = build_catalog(image_dir, str(tmp_path / "c.json"), embedder)
        assert summary["processed"] == 2
        assert summary["errors"] == 1

    def test_skips_dimension_change(self, tmp_path, image_dir):
        sizes = iter([[1.0, 0.0], [1.0, 0.0, 0.0]])
        summary = build_catalog(image_dir, str(tmp_path / "c.json"), lambda image: next(sizes))
        assert summary["processed"] == 1
        assert summary["errors"] == 1

    def test_missing_directory(self, tmp_path, embedder):
        summary = build_catalog(str(tmp_path / "nope"), str(tmp_path / "c.json"), embedder)
        assert not summary["success"]

    def test_empty_directory(self, tmp_path, embedder):
        empty = tmp_path / "empty"
        empty.mkdir()
        summary = build_catalog(str(empty), str(tmp_path / "c.json"), embedder)
        assert not summary["success"]
        assert "No valid images" in summary["error"]

    def test_built_catalog_is_searchable(self, tmp_path, image_dir, embedder,
                                         red_square_image):
        out = str(tmp_path / "catalog.json")
        build_catalog(image_dir, out, embedder)

        engine = SearchEngine(load_catalog(out), embedder=embedder)
        results = engine.search_image(red_square_image, top_k=2)

        assert results[0].entry.name == "Red Sneaker"
        assert results[0].similarity == pytest.approx(1.0, abs=1e-6)


class TestMain:

    def test_cli(self, tmp_path, image_dir):
        out = str(tmp_path / "cli.json")
        assert main([image_dir, out, "--category", "Footwear", "--h-bins", "4"]) == 0
        entries = load_catalog(out)
        assert len(entries) == 2
        assert entries[0].dim == 32

    def test_cli_failure(self, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        assert main([str(empty), str(tmp_path / "out.json")]) == 1
