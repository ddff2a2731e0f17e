"""Quality-gated OCR fallback across registered providers.

The image is preprocessed once, then providers are tried in priority
order until one reaches the confidence threshold. The free local engine
runs first so the paid vision model is only called when needed.
"""

import numpy as np

from bookkeeping_ocr.ai.base import VisionTranscriber
from bookkeeping_ocr.exceptions import OCRProcessingError
from bookkeeping_ocr.preprocessing.pipeline import ImagePreprocessor
from bookkeeping_ocr.utils.config import AppConfig
from bookkeeping_ocr.utils.logger import get_logger

from .base import OcrProvider, OcrResult
from .tesseract_engine import TesseractOcrProvider
from .vision_provider import VisionOcrProvider

logger = get_logger(__name__)

MIN_CONFIDENCE_THRESHOLD = 0.7


class OcrOrchestrator:
    """Runs the OCR provider fallback chain.

    Args:
        preprocessor: Image preprocessor applied once per image.
        providers: Registered providers; sorted by priority on every call.
        confidence_threshold: Minimum confidence accepted without fallback.
    """

    def __init__(
        self,
        preprocessor: ImagePreprocessor,
        providers: list[OcrProvider],
        confidence_threshold: float = MIN_CONFIDENCE_THRESHOLD,
    ) -> None:
        self.preprocessor = preprocessor
        self.providers = list(providers)
        self.confidence_threshold = confidence_threshold

    def process(self, image: np.ndarray) -> OcrResult:
        """Extract text from an image with quality-gated fallback.

        Args:
            image: Original document image.

        Returns:
            The first result meeting the threshold, otherwise the last
            provider's result when it carries any text.

        Raises:
            OCRProcessingError: If no providers are registered or every
                provider returned empty text.
        """
        logger.info("OCR orchestrator starting. Image shape: %s", image.shape)

        if not self.providers:
            raise OCRProcessingError("No OCR providers configured")

        processed, _ = self.preprocessor.preprocess_with_metrics(image)
        ordered = sorted(self.providers, key=lambda p: p.priority)
        logger.info(
            "Found %d OCR providers: %s",
            len(ordered),
            ", ".join(f"{p.name}(priority={p.priority})" for p in ordered),
        )

        last_result: OcrResult | None = None
        for provider in ordered:
            logger.info(
                "Trying OCR provider: %s (priority=%d)", provider.name, provider.priority
            )
            try:
                result = provider.extract_text(processed)
            except Exception:
                logger.exception("Provider %s failed", provider.name)
                continue

            last_result = result
            logger.info(
                "Provider %s completed: confidence=%.2f, text_length=%d",
                result.provider_name,
                result.confidence,
                len(result.text),
            )

            if result.confidence >= self.confidence_threshold:
                logger.info("Sufficient confidence achieved. OCR complete.")
                return result

            logger.warning(
                "Low confidence (%.2f), trying next provider", result.confidence
            )

        if last_result is not None and last_result.text:
            logger.warning(
                "All providers returned low confidence. Returning last result: "
                "confidence=%.2f",
                last_result.confidence,
            )
            return last_result

        raise OCRProcessingError("All OCR providers failed to extract text")


def build_default_providers(
    config: AppConfig, transcriber: VisionTranscriber | None
) -> list[OcrProvider]:
    """Create the standard Tesseract and vision-model providers."""
    return [
        TesseractOcrProvider(
            tesseract_cmd=config.ocr.tesseract_cmd,
            languages=config.ocr.languages,
            psm=config.ocr.psm,
            oem=config.ocr.oem,
        ),
        VisionOcrProvider(transcriber, model_name=config.ai.vision_model),
    ]
