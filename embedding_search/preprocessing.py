"""
Image preparation ahead of embedding extraction.

Brings arbitrary decoded images to a consistent uint8 RGB form, centers
the main object, and crops a central patch, so the same product photographed
with different framing yields a similar embedding.
"""

import cv2
import numpy as np
import logging

from .exceptions import EmbeddingError

logger = logging.getLogger(__name__)


def load_image(path: str) -> np.ndarray:
    """
    Read an image file as RGB uint8.

    Raises:
        EmbeddingError: If OpenCV can't decode the file.
    """
    image = cv2.imread(path, cv2.IMREAD_COLOR)
    if image is None:
        raise EmbeddingError(f"Could not read image: {path}")
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def to_rgb_uint8(image_np: np.ndarray) -> np.ndarray:
    """
    Convert an image array to 3-channel uint8 RGB.

    Accepts grayscale (H, W), single-channel (H, W, 1), RGB, and RGBA
    input. Float images in [0, 1] are scaled to [0, 255].

    Raises:
        EmbeddingError: If the array isn't an image.
    """
    if not isinstance(image_np, np.ndarray) or image_np.size == 0:
        raise EmbeddingError("Image must be a non-empty numpy array")

    if image_np.dtype != np.uint8:
        if image_np.max() <= 1.0:
            image_np = (image_np * 255).astype(np.uint8)
        else:
            image_np = np.clip(image_np, 0, 255).astype(np.uint8)

    if image_np.ndim == 2:
        return cv2.cvtColor(image_np, cv2.COLOR_GRAY2RGB)
    if image_np.ndim == 3:
        channels = image_np.shape[2]
        if channels == 1:
            return cv2.cvtColor(image_np, cv2.COLOR_GRAY2RGB)
        if channels == 3:
            return image_np
        if channels == 4:
            return cv2.cvtColor(image_np, cv2.COLOR_RGBA2RGB)

    raise EmbeddingError(f"Unsupported image shape {image_np.shape}")


def center_object_vertically(image_np: np.ndarray) -> np.ndarray:
    """
    Shift the image so the main object's centroid sits on the vertical center.

    The object is found with Otsu thresholding on a blurred grayscale copy.
    If nothing stands out from the background, the image is returned as-is.

    Args:
        image_np: RGB uint8 image.

    Returns:
        Image of the same dimensions.
    """
    try:
        h, w = image_np.shape[:2]

        gray = cv2.cvtColor(image_np, cv2.COLOR_RGB2GRAY)
        blurred = cv2.GaussianBlur(gray, (5, 5), 0)
        _, binary = cv2.threshold(blurred, 0, 255,
                                  cv2.THRESH_BINARY_INV + cv2.THRESH_OTSU)

        # Background dominates the mask: flip it
        if np.mean(binary) > 127:
            binary = cv2.bitwise_not(binary)

        contours, _ = cv2.findContours(binary, cv2.RETR_EXTERNAL,
                                       cv2.CHAIN_APPROX_SIMPLE)
        if not contours:
            return image_np

        moments = cv2.moments(max(contours, key=cv2.contourArea))
        if moments["m00"] == 0:
            return image_np

        cy = int(moments["m01"] / moments["m00"])
        shift_y = h // 2 - cy

        m = np.float32([[1, 0, 0], [0, 1, shift_y]])
        return cv2.warpAffine(image_np, m, (w, h),
                              borderMode=cv2.BORDER_REFLECT_101)

    except cv2.error as e:
        logger.warning(f"Object centering failed, using original: {e}")
        return image_np


def extract_center_patch(image_np: np.ndarray, patch_size: int = None) -> np.ndarray:
    """
    Crop a square patch around the image center.

    patch_size defaults to the shorter side, capped at 500 px. The crop is
    clamped to the image bounds, so small images come back whole.
    """
    h, w = image_np.shape[:2]

    if patch_size is None:
        patch_size = min(w, h, 500)

    half = max(1, patch_size // 2)
    cx, cy = w // 2, h // 2

    x1, x2 = max(0, cx - half), min(w, cx + half)
    y1, y2 = max(0, cy - half), min(h, cy + half)

    return image_np[y1:y2, x1:x2]
