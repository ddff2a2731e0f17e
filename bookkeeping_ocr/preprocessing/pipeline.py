"""Image preprocessing pipeline for document OCR.

Runs grayscale, denoise, deskew, contrast enhancement, and Otsu
binarization in a fixed order, with quality metrics for logging.
"""

from dataclasses import dataclass

import cv2
import numpy as np

from bookkeeping_ocr.utils.config import PreprocessingConfig
from bookkeeping_ocr.utils.logger import get_logger

from .binarize import binarize_otsu, enhance_contrast, to_gray
from .denoise import denoise_gaussian3
from .deskew import SkewEstimator, create_skew_estimator, deskew

logger = get_logger(__name__)


@dataclass
class QualityMetrics:
    """Before/after image quality measurements."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


def calculate_sharpness(image: np.ndarray) -> float:
    """Calculate image sharpness using Laplacian variance.

    Args:
        image: Input image (color or grayscale).

    Returns:
        Sharpness score (higher means sharper).
    """
    return float(cv2.Laplacian(to_gray(image), cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Calculate image contrast as the standard deviation of pixel intensities.

    Args:
        image: Input image (color or grayscale).

    Returns:
        Contrast score (higher means more contrast).
    """
    return float(to_gray(image).std())


class ImagePreprocessor:
    """Turns a raw bitmap into an OCR-ready binary image.

    The pipeline is deterministic for identical pixels as long as the
    skew estimator is.

    Args:
        config: Preprocessing configuration.
        skew_estimator: Overrides the estimator selected by
            ``config.deskew_method``.
    """

    def __init__(
        self,
        config: PreprocessingConfig | None = None,
        skew_estimator: SkewEstimator | None = None,
    ) -> None:
        self.config = config or PreprocessingConfig()
        self.skew_estimator = skew_estimator or create_skew_estimator(
            self.config.deskew_method
        )

    def preprocess(self, image: np.ndarray) -> np.ndarray:
        """Run the full preprocessing pipeline on an image.

        Args:
            image: Input document image (color or grayscale).

        Returns:
            Binary image with pixel values 0 or 255.
        """
        logger.debug("Starting image preprocessing. Original shape: %s", image.shape)

        result = to_gray(image)
        result = denoise_gaussian3(result)
        result = deskew(
            result,
            self.skew_estimator,
            angle_threshold=self.config.deskew_angle_threshold,
        )
        result = enhance_contrast(
            result,
            scale=self.config.contrast_scale,
            offset=self.config.contrast_offset,
        )
        result = binarize_otsu(result)

        logger.debug("Image preprocessing complete. Final shape: %s", result.shape)
        return result

    def preprocess_with_metrics(
        self, image: np.ndarray
    ) -> tuple[np.ndarray, QualityMetrics]:
        """Preprocess an image and measure quality before and after.

        Args:
            image: Input document image.

        Returns:
            Tuple of (processed_image, quality_metrics).
        """
        result = self.preprocess(image)
        metrics = QualityMetrics(
            sharpness_before=calculate_sharpness(image),
            sharpness_after=calculate_sharpness(result),
            contrast_before=calculate_contrast(image),
            contrast_after=calculate_contrast(result),
        )

        logger.info(
            "Preprocessing complete: sharpness %.1f->%.1f, contrast %.1f->%.1f",
            metrics.sharpness_before,
            metrics.sharpness_after,
            metrics.contrast_before,
            metrics.contrast_after,
        )
        return result, metrics
