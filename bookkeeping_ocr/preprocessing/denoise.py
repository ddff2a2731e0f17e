"""Noise reduction for document images.

Applies a fixed 3x3 Gaussian-like convolution to smooth scanner
noise before thresholding.
"""

import cv2
import numpy as np

from bookkeeping_ocr.utils.logger import get_logger

logger = get_logger(__name__)

GAUSSIAN_KERNEL_3X3 = (
    np.array(
        [
            [1, 2, 1],
            [2, 4, 2],
            [1, 2, 1],
        ],
        dtype=np.float32,
    )
    / 16.0
)


def denoise_gaussian3(image: np.ndarray) -> np.ndarray:
    """Convolve a grayscale image with the 3x3 smoothing kernel.

    The one-pixel border is left untouched (no extension or wrap), so
    only interior pixels are filtered.

    Args:
        image: Grayscale ``uint8`` image.

    Returns:
        Denoised image with the same shape and dtype.
    """
    result = image.copy()
    if image.shape[0] < 3 or image.shape[1] < 3:
        return result

    filtered = cv2.filter2D(image.astype(np.float32), -1, GAUSSIAN_KERNEL_3X3)
    interior = np.clip(np.rint(filtered[1:-1, 1:-1]), 0, 255)
    result[1:-1, 1:-1] = interior.astype(image.dtype)
    logger.debug("Applied 3x3 Gaussian denoise")
    return result
