"""Skew estimation and rotation for scanned document images.

Skew estimation is a pluggable strategy. ``NoSkewEstimator`` never
rotates; ``HoughSkewEstimator`` measures near-horizontal text lines
with a probabilistic Hough transform.
"""

import math
from abc import ABC, abstractmethod

import cv2
import numpy as np

from bookkeeping_ocr.utils.logger import get_logger

logger = get_logger(__name__)


class SkewEstimator(ABC):
    """Strategy that estimates the rotation angle of a page, in degrees."""

    @abstractmethod
    def estimate(self, image: np.ndarray) -> float:
        """Return the estimated skew angle of a grayscale image."""


class NoSkewEstimator(SkewEstimator):
    """Reports every page as straight, so deskew never rotates."""

    def estimate(self, image: np.ndarray) -> float:
        return 0.0


class HoughSkewEstimator(SkewEstimator):
    """Estimate skew from the median angle of detected text lines.

    Args:
        max_angle: Lines steeper than this (in degrees) are ignored,
            which keeps vertical rules and table borders out of the median.
        min_line_length: Minimum segment length passed to HoughLinesP.
    """

    def __init__(self, max_angle: float = 45.0, min_line_length: int = 100) -> None:
        self.max_angle = max_angle
        self.min_line_length = min_line_length

    def estimate(self, image: np.ndarray) -> float:
        edges = cv2.Canny(image, 50, 150, apertureSize=3)
        lines = cv2.HoughLinesP(
            edges,
            1,
            np.pi / 180,
            100,
            minLineLength=self.min_line_length,
            maxLineGap=10,
        )

        if lines is None:
            logger.debug("No lines detected for skew estimation")
            return 0.0

        angles = [
            float(np.degrees(np.arctan2(y2 - y1, x2 - x1)))
            for x1, y1, x2, y2 in lines[:, 0]
        ]
        angles = [a for a in angles if abs(a) <= self.max_angle]
        if not angles:
            return 0.0

        median_angle = float(np.median(angles))
        logger.debug("Detected skew angle: %.2f degrees", median_angle)
        return median_angle


def create_skew_estimator(method: str) -> SkewEstimator:
    """Create a skew estimator by name (``"none"`` or ``"hough"``).

    Raises:
        ValueError: If an unsupported method is specified.
    """
    if method == "none":
        return NoSkewEstimator()
    if method == "hough":
        return HoughSkewEstimator()
    raise ValueError(f"Unsupported deskew method: {method}")


def rotate_expanded(
    image: np.ndarray, angle: float, fill_value: int = 255
) -> np.ndarray:
    """Rotate an image about its centre, growing the canvas to fit.

    The output size is the bounding box of the rotated input, so no
    content is clipped. Uncovered corners are filled with ``fill_value``.

    Args:
        image: Input image.
        angle: Rotation in degrees, counter-clockwise.
        fill_value: Intensity used for newly exposed pixels.

    Returns:
        Rotated image.
    """
    h, w = image.shape[:2]
    radians = math.radians(angle)
    sin = abs(math.sin(radians))
    cos = abs(math.cos(radians))
    new_w = int(math.floor(w * cos + h * sin))
    new_h = int(math.floor(h * cos + w * sin))

    matrix = cv2.getRotationMatrix2D((w / 2.0, h / 2.0), angle, 1.0)
    matrix[0, 2] += new_w / 2.0 - w / 2.0
    matrix[1, 2] += new_h / 2.0 - h / 2.0

    return cv2.warpAffine(
        image,
        matrix,
        (new_w, new_h),
        flags=cv2.INTER_CUBIC,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=fill_value,
    )


def deskew(
    image: np.ndarray,
    estimator: SkewEstimator,
    angle_threshold: float = 0.5,
) -> np.ndarray:
    """Correct rotational skew in a document image.

    Args:
        image: Grayscale input image.
        estimator: Strategy used to measure the skew angle.
        angle_threshold: Rotation only happens when ``|angle|`` exceeds this.

    Returns:
        The input image, or a rotated copy on an expanded canvas.
    """
    angle = estimator.estimate(image)

    if abs(angle) <= angle_threshold:
        logger.debug("Skew angle %.2f within threshold, skipping correction", angle)
        return image

    result = rotate_expanded(image, angle)
    logger.info("Applied deskew correction: %.2f degrees", angle)
    return result
