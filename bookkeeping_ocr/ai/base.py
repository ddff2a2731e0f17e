"""Narrow contracts for the AI collaborators.

Classification, field extraction, and vision OCR depend only on these
interfaces, so tests can substitute deterministic doubles.
"""

from abc import ABC, abstractmethod

import numpy as np


class TextCompletionClient(ABC):
    """Sends a text prompt to a language model and returns its reply."""

    @abstractmethod
    def complete(self, prompt: str, *, temperature: float = 0.0) -> str:
        """Return the model response as plain text.

        Callers treat any exception as a failed call; implementations
        wrap provider errors in ``AIClientError``.
        """


class VisionTranscriber(ABC):
    """Transcribes the visible text of an image with a vision model."""

    @abstractmethod
    def transcribe(self, image: np.ndarray) -> str:
        """Return all text visible in the image.

        Raises:
            AIClientError: If the provider call fails.
        """
