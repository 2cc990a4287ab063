"""
HSV colour-histogram embedding producer.

Turns a product image into a fixed-length, L2-normalized vector: a
Hue x Saturation histogram of the centered object, with CLAHE applied to
the Value channel to even out lighting. It is a lightweight stand-in for a
neural feature extractor — anything with the same produce(image) -> vector
shape can be passed to SearchEngine or build_catalog() instead.

Bin counts are configurable via environment variables (HSV_H_BINS,
HSV_S_BINS) or per instance. The embedding dimension is h_bins * s_bins
and must match the catalog the embeddings are searched against.
"""

import os
import cv2
import numpy as np
import logging

from .exceptions import EmbeddingError
from .preprocessing import to_rgb_uint8, center_object_vertically, extract_center_patch
from .vectors import normalize

logger = logging.getLogger(__name__)

# Higher bin counts discriminate colours more finely but give longer vectors.
H_BINS = int(os.environ.get("HSV_H_BINS", "8"))
S_BINS = int(os.environ.get("HSV_S_BINS", "8"))


class HistogramEmbedder:
    """
    Embedding producer backed by OpenCV HSV histograms.

    Constructed explicitly and passed to whatever needs it; call load()
    before produce(). Loading only prepares the CLAHE operator here, but
    keeping the lifecycle explicit lets a heavier model-backed producer
    drop into the same slot.
    """

    def __init__(self, h_bins: int = H_BINS, s_bins: int = S_BINS,
                 clip_limit: float = 2.0):
        if h_bins < 1 or s_bins < 1:
            raise ValueError(f"Bin counts must be positive, got {h_bins}x{s_bins}")
        self.h_bins = h_bins
        self.s_bins = s_bins
        self.clip_limit = clip_limit
        self._clahe = None

    @property
    def dim(self) -> int:
        return self.h_bins * self.s_bins

    @property
    def is_loaded(self) -> bool:
        return self._clahe is not None

    def load(self) -> "HistogramEmbedder":
        if self._clahe is None:
            self._clahe = cv2.createCLAHE(clipLimit=self.clip_limit,
                                          tileGridSize=(8, 8))
            logger.info(f"Histogram embedder ready: {self.h_bins}x{self.s_bins} bins, {self.dim}d")
        return self

    def produce(self, image_np: np.ndarray) -> np.ndarray:
        """
        Extract an L2-normalized HSV histogram from an image.

        Process:
            1. Convert to uint8 RGB and center the object vertically
            2. Crop a central patch
            3. Convert to HSV and apply CLAHE to the V channel
            4. Compute the H x S histogram
            5. L2-normalize

        Args:
            image_np: Image array (grayscale, RGB, or RGBA).

        Returns:
            Float64 vector of length self.dim. A featureless image gives
            an all-zero vector, which scores 0 against everything.

        Raises:
            EmbeddingError: If not loaded, or the input isn't an image.
        """
        if not self.is_loaded:
            raise EmbeddingError("HistogramEmbedder.load() must be called before produce()")

        rgb = to_rgb_uint8(image_np)
        patch = extract_center_patch(center_object_vertically(rgb))

        try:
            hsv = cv2.cvtColor(patch, cv2.COLOR_RGB2HSV)
            h_ch, s_ch, v_ch = cv2.split(hsv)
            hsv = cv2.merge((h_ch, s_ch, self._clahe.apply(v_ch)))

            # Hue spans 0-180 in OpenCV, saturation 0-256
            hist = cv2.calcHist([hsv], [0, 1], None,
                                [self.h_bins, self.s_bins], [0, 180, 0, 256])
        except cv2.error as e:
            raise EmbeddingError(f"Histogram extraction failed: {e}") from e

        return normalize(hist.flatten())

    __call__ = produce
