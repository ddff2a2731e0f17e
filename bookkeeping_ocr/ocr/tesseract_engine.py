"""Tesseract OCR provider with text-based confidence estimation.

Runs Tesseract locally and scores the result from the shape of the
recognized text, since document text that carries words, digits,
dates, and amounts is more likely to be a clean read.
"""

import re
import time

import numpy as np
import pytesseract
from PIL import Image

from bookkeeping_ocr.utils.logger import get_logger

from .base import OcrProvider, OcrResult

logger = get_logger(__name__)

_DATE_PATTERN = re.compile(r"\d{2}/\d{2}/\d{4}")
_AMOUNT_PATTERN = re.compile(r"\d+[.,]\d{2}")
_NUMBER_PATTERN = re.compile(r"\d")

_SPECIAL_CHAR_RATIO_LIMIT = 0.3
_SPECIAL_CHAR_PENALTY = 0.7


def estimate_text_confidence(text: str | None) -> float:
    """Estimate OCR quality from the recognized text alone.

    Args:
        text: Text returned by the OCR engine.

    Returns:
        Confidence in ``[0, 1]``.
    """
    if not text or not text.strip():
        return 0.0

    score = 0.0

    word_count = len(text.split())
    if word_count >= 10:
        score += 0.3
    elif word_count >= 5:
        score += 0.15

    if _NUMBER_PATTERN.search(text):
        score += 0.2
    if _DATE_PATTERN.search(text):
        score += 0.25
    if _AMOUNT_PATTERN.search(text):
        score += 0.25

    special_chars = sum(1 for c in text if not c.isalnum() and not c.isspace())
    if special_chars / len(text) > _SPECIAL_CHAR_RATIO_LIMIT:
        score *= _SPECIAL_CHAR_PENALTY

    return min(1.0, max(0.0, score))


class TesseractOcrProvider(OcrProvider):
    """Free, offline OCR via Tesseract.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        languages: Tesseract language codes, e.g. ``"tur+eng"``.
        psm: Page segmentation mode (1 = automatic with OSD).
        oem: Engine mode (1 = LSTM neural net only).
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        languages: str = "tur+eng",
        psm: int = 1,
        oem: int = 1,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.languages = languages
        self.psm = psm
        self.oem = oem

    @property
    def name(self) -> str:
        return "Tesseract"

    @property
    def priority(self) -> int:
        return 1

    def extract_text(self, image: np.ndarray) -> OcrResult:
        logger.info("Starting Tesseract OCR processing")
        start = time.monotonic()

        try:
            text = pytesseract.image_to_string(
                Image.fromarray(image),
                lang=self.languages,
                config=f"--psm {self.psm} --oem {self.oem}",
            )
        except (
            pytesseract.TesseractError,
            pytesseract.TesseractNotFoundError,
            RuntimeError,
            OSError,
        ) as exc:
            logger.error("Tesseract OCR failed: %s", exc)
            return self.failure(str(exc))

        duration_ms = int((time.monotonic() - start) * 1000)
        confidence = estimate_text_confidence(text)

        logger.info(
            "Tesseract OCR completed. Duration: %dms, Confidence: %.2f, Text length: %d",
            duration_ms,
            confidence,
            len(text),
        )
        return OcrResult(
            text=text,
            confidence=confidence,
            provider_name=self.name,
            metadata={"duration_ms": duration_ms, "text_length": len(text)},
        )
