"""Grayscale, contrast enhancement, and Otsu binarization.

Implements the intensity-domain steps of the preprocessing pipeline:
luminance reduction, a linear contrast rescale, and global thresholding
with a threshold chosen by Otsu's method.
"""

import cv2
import numpy as np

from bookkeeping_ocr.utils.logger import get_logger

logger = get_logger(__name__)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an image to single-channel grayscale.

    Args:
        image: Input image (grayscale, BGR, or BGRA).

    Returns:
        Grayscale ``uint8`` image.
    """
    if image.ndim == 3:
        if image.shape[2] == 4:
            gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        elif image.shape[2] == 1:
            gray = image[:, :, 0]
        else:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    else:
        gray = image

    if gray.dtype != np.uint8:
        gray = np.clip(gray, 0, 255).astype(np.uint8)
    return gray


def enhance_contrast(
    image: np.ndarray, scale: float = 1.2, offset: float = 10.0
) -> np.ndarray:
    """Apply a linear rescale ``clamp(pixel * scale + offset)``.

    Args:
        image: Grayscale input image.
        scale: Multiplicative contrast factor.
        offset: Additive brightness offset.

    Returns:
        Rescaled ``uint8`` image clamped to [0, 255].
    """
    result = image.astype(np.float32) * scale + offset
    result = np.clip(result, 0, 255).astype(np.uint8)
    logger.debug("Applied contrast rescale (scale=%.2f, offset=%.1f)", scale, offset)
    return result


def intensity_histogram(image: np.ndarray) -> np.ndarray:
    """Build a 256-bin intensity histogram of a grayscale image."""
    return np.bincount(image.ravel(), minlength=256)[:256]


def otsu_threshold(histogram: np.ndarray) -> int:
    """Select the binarization threshold with Otsu's method.

    For every candidate threshold ``t`` the pixels with intensity ``<= t``
    form the background class. The between-class variance
    ``wB * wF * (mB - mF) ** 2`` is evaluated and the first ``t`` reaching
    the maximum is returned.

    Args:
        histogram: 256-bin pixel intensity histogram.

    Returns:
        Threshold in ``[0, 255]``; ``0`` for empty or single-level input.
    """
    hist = np.asarray(histogram, dtype=np.float64)
    total = hist.sum()
    if total == 0:
        return 0

    weighted_total = float(np.dot(np.arange(hist.size), hist))
    sum_background = 0.0
    weight_background = 0.0
    max_variance = 0.0
    threshold = 0

    for t in range(hist.size):
        weight_background += hist[t]
        if weight_background == 0:
            continue
        weight_foreground = total - weight_background
        if weight_foreground == 0:
            break

        sum_background += t * hist[t]
        mean_background = sum_background / weight_background
        mean_foreground = (weighted_total - sum_background) / weight_foreground
        variance = (
            weight_background
            * weight_foreground
            * (mean_background - mean_foreground) ** 2
        )

        if variance > max_variance:
            max_variance = variance
            threshold = t

    return threshold


def binarize_otsu(image: np.ndarray) -> np.ndarray:
    """Binarize an image with a global Otsu threshold.

    Pixels strictly below the threshold become black (0), all others
    white (255).

    Args:
        image: Input image (grayscale or color).

    Returns:
        Binary image with pixel values 0 or 255.
    """
    gray = to_gray(image)
    threshold = otsu_threshold(intensity_histogram(gray))
    binary = np.where(gray < threshold, 0, 255).astype(np.uint8)
    logger.debug("Applied Otsu binarization (threshold=%d)", threshold)
    return binary
