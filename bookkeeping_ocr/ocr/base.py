"""OCR provider contract and result type."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import numpy as np


@dataclass
class OcrResult:
    """Text recognized from one image by one provider."""

    text: str
    confidence: float
    provider_name: str
    metadata: dict[str, Any] = field(default_factory=dict)


class OcrProvider(ABC):
    """A text-recognition strategy tried by the OCR orchestrator.

    Providers with a lower ``priority`` are tried first. Implementations
    should report failures through a zero-confidence result rather than
    raising.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name stored with the result."""

    @property
    @abstractmethod
    def priority(self) -> int:
        """Position in the fallback chain (lower = earlier)."""

    @abstractmethod
    def extract_text(self, image: np.ndarray) -> OcrResult:
        """Recognize text in a preprocessed image."""

    def failure(self, error: str) -> OcrResult:
        """Build the empty, zero-confidence result for a failed attempt."""
        return OcrResult(
            text="",
            confidence=0.0,
            provider_name=self.name,
            metadata={"error": error},
        )
