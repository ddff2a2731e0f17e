"""Vision-model OCR provider used as the paid fallback."""

import time

import numpy as np

from bookkeeping_ocr.ai.base import VisionTranscriber
from bookkeeping_ocr.utils.logger import get_logger

from .base import OcrProvider, OcrResult

logger = get_logger(__name__)

VISION_CONFIDENCE = 0.95


class VisionOcrProvider(OcrProvider):
    """Transcribes images with a vision-capable chat model.

    Args:
        transcriber: Vision client; ``None`` when no credential is configured.
        model_name: Reported in the result metadata.
    """

    def __init__(
        self, transcriber: VisionTranscriber | None, model_name: str = "vision"
    ) -> None:
        self.transcriber = transcriber
        self.model_name = model_name

    @property
    def name(self) -> str:
        return "Vision Model"

    @property
    def priority(self) -> int:
        return 2

    def extract_text(self, image: np.ndarray) -> OcrResult:
        if self.transcriber is None:
            logger.warning("AI API key not configured, skipping vision OCR")
            return self.failure("API key not configured")

        logger.info("Starting vision model OCR processing")
        start = time.monotonic()
        try:
            text = self.transcriber.transcribe(image)
        except Exception as exc:
            logger.error("Vision OCR failed: %s", exc)
            return self.failure(str(exc))

        duration_ms = int((time.monotonic() - start) * 1000)
        text = text or ""
        logger.info(
            "Vision OCR completed. Duration: %dms, Text length: %d",
            duration_ms,
            len(text),
        )
        return OcrResult(
            text=text,
            confidence=VISION_CONFIDENCE if text.strip() else 0.0,
            provider_name=self.name,
            metadata={
                "duration_ms": duration_ms,
                "text_length": len(text),
                "model": self.model_name,
            },
        )
