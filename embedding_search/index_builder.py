"""
Batch catalog construction from a directory of product images.

Decodes every image in a directory, runs it through an embedding producer,
L2-normalizes the result, and writes a JSON catalog that CatalogStore can
load. Images that fail to decode or embed are logged and skipped.

Run as a script:

    python -m embedding_search.index_builder images/ catalog.json --category Footwear
"""

import os
import re
import sys
import argparse
import logging
from typing import Callable, Optional

import numpy as np

from .catalog import CatalogEntry, save_catalog
from .exceptions import EmbeddingError
from .histograms import H_BINS, S_BINS, HistogramEmbedder
from .preprocessing import load_image
from .vectors import is_valid_vector, normalize

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.bmp', '.webp'}


def display_name(filename: str) -> str:
    """'red_sneaker-02.jpg' -> 'Red Sneaker 02'."""
    stem = os.path.splitext(os.path.basename(filename))[0]
    words = re.split(r"[\s_\-]+", stem)
    return " ".join(w.capitalize() for w in words if w) or stem


def build_catalog(image_dir: str,
                  output_path: str,
                  embedder: Callable[[np.ndarray], np.ndarray],
                  category: str = "Uncategorized",
                  brand: str = "Various",
                  image_prefix: Optional[str] = None) -> dict:
    """
    Build a JSON catalog from a directory of product images.

    Images are processed in sorted filename order and given ids item_001,
    item_002, ... in that order. The first embedding fixes the catalog
    dimension; later images producing a different length are skipped.

    Args:
        image_dir: Directory containing product images.
        output_path: Catalog JSON file to write.
        embedder: Callable turning an RGB uint8 image into a vector.
        category: Category assigned to every product.
        brand: Brand assigned to every product.
        image_prefix: Prefix for each product's image reference. Defaults
            to image_dir.

    Returns:
        Dict with 'success', 'processed', 'errors', 'dimensions' and
        'output_path'; on failure 'success' is False and 'error' says why.
    """
    if not os.path.isdir(image_dir):
        return {"success": False, "error": f"Not a directory: {image_dir}"}

    prefix = image_dir if image_prefix is None else image_prefix
    filenames = sorted(
        f for f in os.listdir(image_dir)
        if os.path.splitext(f)[1].lower() in IMAGE_EXTENSIONS
    )

    logger.info(f"Building catalog from {len(filenames)} images in {image_dir}")

    entries = []
    dim = None
    errors = 0

    for i, filename in enumerate(filenames):
        try:
            image = load_image(os.path.join(image_dir, filename))
            embedding = normalize(embedder(image))
        except (EmbeddingError, ValueError) as e:
            logger.warning(f"Failed to process {filename}: {e}")
            errors += 1
            continue

        if not is_valid_vector(embedding, dim):
            logger.warning(
                f"Skipping {filename}: invalid embedding "
                f"({embedding.size}d, expected {dim or 'any'})"
            )
            errors += 1
            continue
        dim = embedding.size

        entries.append(CatalogEntry(
            id=f"item_{len(entries) + 1:03d}",
            name=display_name(filename),
            category=category,
            image_ref=f"{prefix.rstrip('/')}/{filename}" if prefix else filename,
            embedding=embedding,
            brand=brand,
        ))

        if (i + 1) % 100 == 0:
            logger.info(f"Processed {i + 1}/{len(filenames)} images")

    if not entries:
        return {"success": False, "error": "No valid images processed", "errors": errors}

    save_catalog(entries, output_path)

    logger.info(
        f"Catalog built: {len(entries)} products, {dim}d embeddings, "
        f"{errors} errors -> {output_path}"
    )

    return {
        "success": True,
        "processed": len(entries),
        "errors": errors,
        "dimensions": dim,
        "output_path": output_path,
    }


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Build a product catalog with image embeddings.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("image_dir", help="Directory of product images.")
    parser.add_argument("output", help="Catalog JSON file to write.")
    parser.add_argument("--category", default="Uncategorized")
    parser.add_argument("--brand", default="Various")
    parser.add_argument("--image-prefix", default=None,
                        help="Prefix for image references (defaults to image_dir).")
    parser.add_argument("--h-bins", type=int, default=H_BINS)
    parser.add_argument("--s-bins", type=int, default=S_BINS)
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )

    embedder = HistogramEmbedder(h_bins=args.h_bins, s_bins=args.s_bins).load()

    summary = build_catalog(
        args.image_dir, args.output, embedder,
        category=args.category, brand=args.brand,
        image_prefix=args.image_prefix,
    )

    if not summary["success"]:
        logger.error(f"Catalog build failed: {summary['error']}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
