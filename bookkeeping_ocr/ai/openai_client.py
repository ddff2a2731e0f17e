"""OpenAI-compatible chat client for text completion and vision OCR."""

import base64

import cv2
import httpx
import numpy as np
import openai

from bookkeeping_ocr.exceptions import AIClientError
from bookkeeping_ocr.utils.config import AIConfig, resolve_api_key
from bookkeeping_ocr.utils.logger import get_logger

from .base import TextCompletionClient, VisionTranscriber

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are an expert at extracting structured data from business documents."
)

TRANSCRIBE_PROMPT = """This image is a business document (invoice, receipt, or contract).
Read ALL text visible in the image and return it as it appears.

RULES:
- Write the text verbatim, never invent anything
- Read numbers and dates carefully
- Include every line and field
- Only write the visible text, do not add commentary
"""


def encode_image_base64(image: np.ndarray) -> str:
    """Encode an image as base64 JPEG.

    Raises:
        AIClientError: If OpenCV cannot encode the image.
    """
    ok, buffer = cv2.imencode(".jpg", image)
    if not ok:
        raise AIClientError("Failed to encode image as JPEG")
    return base64.b64encode(buffer.tobytes()).decode("ascii")


class OpenAIChatClient(TextCompletionClient, VisionTranscriber):
    """Chat-completions client for OpenAI and compatible endpoints.

    Args:
        api_key: Provider credential.
        text_model: Model used for text completion.
        vision_model: Model used for image transcription.
        timeout_seconds: Per-request timeout.
        base_url: Optional OpenAI-compatible endpoint.
        vision_max_tokens: Response token cap for transcription.
    """

    def __init__(
        self,
        *,
        api_key: str,
        text_model: str,
        vision_model: str,
        timeout_seconds: float,
        base_url: str | None = None,
        vision_max_tokens: int = 1000,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )
        self.text_model = text_model
        self.vision_model = vision_model
        self.vision_max_tokens = vision_max_tokens

    def complete(self, prompt: str, *, temperature: float = 0.0) -> str:
        return self._create(
            model=self.text_model,
            temperature=temperature,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        )

    def transcribe(self, image: np.ndarray) -> str:
        encoded = encode_image_base64(image)
        return self._create(
            model=self.vision_model,
            temperature=0.0,
            max_tokens=self.vision_max_tokens,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": TRANSCRIBE_PROMPT},
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": f"data:image/jpeg;base64,{encoded}",
                                "detail": "high",
                            },
                        },
                    ],
                }
            ],
        )

    def _create(self, *, model: str, messages: list, **kwargs: object) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                messages=messages,
                **kwargs,
            )
        except (
            openai.APIConnectionError,
            httpx.ConnectError,
            httpx.TimeoutException,
        ) as exc:
            raise AIClientError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise AIClientError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise AIClientError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise AIClientError("AI returned empty response")
        return content


def create_openai_client(config: AIConfig) -> OpenAIChatClient | None:
    """Build a client from configuration.

    Returns:
        The client, or ``None`` when no credential is available.
    """
    api_key = resolve_api_key(config.api_key)
    if not api_key:
        logger.warning("AI API key not configured, AI features disabled")
        return None
    return OpenAIChatClient(
        api_key=api_key,
        text_model=config.text_model,
        vision_model=config.vision_model,
        timeout_seconds=config.timeout_seconds,
        base_url=config.base_url,
        vision_max_tokens=config.vision_max_tokens,
    )
