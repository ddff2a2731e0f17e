"""Tests for the OpenAI chat client (mocked SDK)."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import numpy as np
import openai
import pytest

from bookkeeping_ocr.ai.openai_client import (
    OpenAIChatClient,
    create_openai_client,
    encode_image_base64,
)
from bookkeeping_ocr.exceptions import AIClientError
from bookkeeping_ocr.utils.config import AIConfig

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _completion(content: str | None) -> SimpleNamespace:
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def sdk() -> MagicMock:
    with patch("bookkeeping_ocr.ai.openai_client.openai.OpenAI") as mock_cls:
        yield mock_cls


def _client() -> OpenAIChatClient:
    return OpenAIChatClient(
        api_key="sk-test",
        text_model="gpt-4o-mini",
        vision_model="gpt-4o",
        timeout_seconds=30.0,
    )


class TestOpenAIChatClient:
    """Tests for completion, transcription, and error wrapping."""

    def test_sdk_configured_with_timeout(self, sdk: MagicMock) -> None:
        _client()
        sdk.assert_called_once_with(api_key="sk-test", timeout=30.0, base_url=None)

    def test_complete(self, sdk: MagicMock) -> None:
        create = sdk.return_value.chat.completions.create
        create.return_value = _completion("INVOICE")

        assert _client().complete("classify this", temperature=0.0) == "INVOICE"

        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.0
        assert kwargs["messages"][-1] == {"role": "user", "content": "classify this"}

    def test_transcribe_sends_data_uri(self, sdk: MagicMock) -> None:
        create = sdk.return_value.chat.completions.create
        create.return_value = _completion("FATURA")

        text = _client().transcribe(np.full((20, 20), 255, dtype=np.uint8))

        assert text == "FATURA"
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 1000
        image_part = kwargs["messages"][0]["content"][1]
        assert image_part["image_url"]["url"].startswith("data:image/jpeg;base64,")

    def test_connection_error_wrapped(self, sdk: MagicMock) -> None:
        sdk.return_value.chat.completions.create.side_effect = (
            openai.APIConnectionError(request=_REQUEST)
        )
        with pytest.raises(AIClientError, match="network error"):
            _client().complete("hi")

    def test_api_error_wrapped(self, sdk: MagicMock) -> None:
        sdk.return_value.chat.completions.create.side_effect = openai.APIError(
            "rate limited", _REQUEST, body=None
        )
        with pytest.raises(AIClientError, match="API error"):
            _client().complete("hi")

    def test_empty_content(self, sdk: MagicMock) -> None:
        sdk.return_value.chat.completions.create.return_value = _completion(None)
        with pytest.raises(AIClientError, match="empty response"):
            _client().complete("hi")

    def test_no_choices(self, sdk: MagicMock) -> None:
        sdk.return_value.chat.completions.create.return_value = SimpleNamespace(
            choices=[]
        )
        with pytest.raises(AIClientError, match="no choices"):
            _client().complete("hi")


class TestCreateOpenAIClient:
    """Tests for the configuration factory."""

    def test_no_key_returns_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        assert create_openai_client(AIConfig()) is None

    def test_builds_client(self, sdk: MagicMock) -> None:
        client = create_openai_client(
            AIConfig(api_key="Bearer sk-x", base_url="http://localhost:8080/v1")
        )
        assert isinstance(client, OpenAIChatClient)
        sdk.assert_called_once_with(
            api_key="sk-x", timeout=60.0, base_url="http://localhost:8080/v1"
        )


def test_encode_image_base64() -> None:
    encoded = encode_image_base64(np.zeros((8, 8, 3), dtype=np.uint8))
    assert isinstance(encoded, str)
    assert len(encoded) > 0
