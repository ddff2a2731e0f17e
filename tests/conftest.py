"""Shared test fixtures for the bookkeeping OCR test suite."""

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from bookkeeping_ocr.ocr.base import OcrProvider, OcrResult

INVOICE_TEXT = (
    "ACME Ltd. FATURA No: INV-2024-001\n"
    "Tarih: 15/03/2024\n"
    "Toplam: 1250.00 TRY KDV: 225.00"
)


class FakeProvider(OcrProvider):
    """Scripted OCR provider that records every call."""

    def __init__(
        self,
        name: str,
        priority: int,
        text: str = "",
        confidence: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self._name = name
        self._priority = priority
        self.text = text
        self.confidence = confidence
        self.error = error
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def priority(self) -> int:
        return self._priority

    def extract_text(self, image: np.ndarray) -> OcrResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return OcrResult(self.text, self.confidence, self._name)


class FakeAIClient:
    """Deterministic text and vision client with canned responses."""

    def __init__(
        self,
        responses: list[str] | None = None,
        transcription: str = "",
        error: Exception | None = None,
    ) -> None:
        self.responses = list(responses or [])
        self.transcription = transcription
        self.error = error
        self.prompts: list[str] = []
        self.transcribed = 0

    def complete(self, prompt: str, *, temperature: float = 0.0) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.responses.pop(0) if self.responses else ""

    def transcribe(self, image: np.ndarray) -> str:
        self.transcribed += 1
        if self.error is not None:
            raise self.error
        return self.transcription


def make_png_bytes(width: int = 200, height: int = 100) -> bytes:
    """Encode a small white page with a dark band as PNG bytes."""
    pixels = np.full((height, width, 3), 255, dtype=np.uint8)
    pixels[height // 3 : height // 2, 10 : width - 10] = 20
    buf = io.BytesIO()
    Image.fromarray(pixels).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic grayscale test image."""
    image = np.zeros((200, 300), dtype=np.uint8)
    image[50:150, 50:250] = 255
    return image


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a simple synthetic BGR test image."""
    image = np.zeros((200, 300, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    return image


@pytest.fixture
def png_bytes() -> bytes:
    return make_png_bytes()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
