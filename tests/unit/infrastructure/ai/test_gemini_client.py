"""
Unit tests for the Gemini client.

HTTP is mocked at aiohttp.ClientSession.post.
"""

import asyncio
import base64
import io
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest
from PIL import Image

from foodlens.domain.shared.errors import (
    InvalidImageError,
    ModelResponseError,
    RequestTimeoutError,
    TransportError,
)
from foodlens.domain.shared.inference import CHAT_GENERATION, IInferenceClient
from foodlens.infrastructure.ai.gemini_client import GeminiClient

API_KEY = "test-secret-key"


def make_response(status: int, body: Optional[Any] = None) -> MagicMock:
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=body)
    return response


def text_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}]}


class TestGeminiClient:
    """Test Gemini generateContent client."""

    async def test_generate_text(self) -> None:
        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.return_value = make_response(200, text_body("Hello"))

            async with GeminiClient(api_key=API_KEY) as client:
                text = await client.generate("Say hello")

        assert text == "Hello"

        call = mock_post.call_args
        assert call.args[0] == (
            "https://generativelanguage.googleapis.com/v1beta/models/"
            "gemini-2.0-flash-exp:generateContent"
        )
        assert call.kwargs["params"] == {"key": API_KEY}
        assert call.kwargs["json"]["contents"] == [{"parts": [{"text": "Say hello"}]}]
        assert call.kwargs["json"]["generationConfig"] == {
            "temperature": 0.3,
            "maxOutputTokens": 1000,
        }

    async def test_settings_forwarded(self) -> None:
        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.return_value = make_response(200, text_body("ok"))

            async with GeminiClient(api_key=API_KEY, model="gemini-1.5-pro") as client:
                await client.generate("Hi", settings=CHAT_GENERATION)

        assert mock_post.call_args.args[0].endswith("/gemini-1.5-pro:generateContent")
        assert mock_post.call_args.kwargs["json"]["generationConfig"]["topK"] == 40

    async def test_image_attached_as_jpeg(self) -> None:
        image = Image.new("RGBA", (8, 8), (255, 0, 0, 128))

        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.return_value = make_response(200, text_body("{}"))

            async with GeminiClient(api_key=API_KEY) as client:
                await client.generate("Analyze", image=image)

        parts = mock_post.call_args.kwargs["json"]["contents"][0]["parts"]
        assert parts[0] == {"text": "Analyze"}
        inline = parts[1]["inline_data"]
        assert inline["mime_type"] == "image/jpeg"
        assert base64.b64decode(inline["data"]).startswith(b"\xff\xd8")

    async def test_png_bytes_reencoded(self) -> None:
        buffer = io.BytesIO()
        Image.new("RGB", (4, 4), "white").save(buffer, format="PNG")

        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.return_value = make_response(200, text_body("{}"))

            async with GeminiClient(api_key=API_KEY) as client:
                await client.generate("Analyze", image=buffer.getvalue())

        inline = mock_post.call_args.kwargs["json"]["contents"][0]["parts"][1]["inline_data"]
        assert base64.b64decode(inline["data"]).startswith(b"\xff\xd8")

    async def test_invalid_image_not_sent(self) -> None:
        with patch("aiohttp.ClientSession.post") as mock_post:
            async with GeminiClient(api_key=API_KEY) as client:
                with pytest.raises(InvalidImageError) as exc_info:
                    await client.generate("Analyze", image=b"not an image")

        assert not isinstance(exc_info.value, TransportError)
        mock_post.assert_not_called()

    async def test_oversized_image_not_sent(self) -> None:
        buffer = io.BytesIO()
        Image.new("RGB", (30, 30), "white").save(buffer, format="PNG")

        with patch("aiohttp.ClientSession.post") as mock_post, patch.object(
            Image, "MAX_IMAGE_PIXELS", 100
        ):
            async with GeminiClient(api_key=API_KEY) as client:
                with pytest.raises(InvalidImageError, match="too large"):
                    await client.generate("Analyze", image=buffer.getvalue())

        mock_post.assert_not_called()

    async def test_no_candidates(self) -> None:
        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.return_value = make_response(200, {"candidates": []})

            async with GeminiClient(api_key=API_KEY) as client:
                with pytest.raises(ModelResponseError):
                    await client.generate("Analyze")

    async def test_blocked_candidate_without_parts(self) -> None:
        body = {"candidates": [{"content": {"parts": []}, "finishReason": "SAFETY"}]}

        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.return_value = make_response(200, body)

            async with GeminiClient(api_key=API_KEY) as client:
                with pytest.raises(ModelResponseError):
                    await client.generate("Analyze")

    async def test_unexpected_shape(self) -> None:
        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.return_value = make_response(
                200, {"candidates": "nope"}
            )

            async with GeminiClient(api_key=API_KEY) as client:
                with pytest.raises(ModelResponseError):
                    await client.generate("Analyze")

    async def test_server_error_retried(self) -> None:
        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.side_effect = [
                make_response(500),
                make_response(200, text_body("recovered")),
            ]

            async with GeminiClient(api_key=API_KEY, backoff_seconds=0) as client:
                text = await client.generate("Analyze")

        assert text == "recovered"
        assert mock_post.call_count == 2

    async def test_server_error_exhausts_retries(self) -> None:
        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.return_value = make_response(503)

            async with GeminiClient(api_key=API_KEY, backoff_seconds=0) as client:
                with pytest.raises(TransportError) as exc_info:
                    await client.generate("Analyze")

        assert exc_info.value.status == 503
        assert mock_post.call_count == 2

    async def test_bad_request_not_retried(self) -> None:
        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.return_value = make_response(400)

            async with GeminiClient(api_key=API_KEY, backoff_seconds=0) as client:
                with pytest.raises(TransportError) as exc_info:
                    await client.generate("Analyze")

        assert exc_info.value.status == 400
        assert mock_post.call_count == 1

    async def test_timeout(self) -> None:
        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.side_effect = asyncio.TimeoutError()

            async with GeminiClient(api_key=API_KEY, backoff_seconds=0) as client:
                with pytest.raises(RequestTimeoutError):
                    await client.generate("Analyze")

        assert mock_post.call_count == 2

    async def test_client_error_hides_key(self) -> None:
        error = aiohttp.ClientConnectionError(
            f"Cannot connect to host for url ...?key={API_KEY}"
        )

        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.side_effect = error

            async with GeminiClient(api_key=API_KEY, backoff_seconds=0) as client:
                with pytest.raises(TransportError) as exc_info:
                    await client.generate("Analyze")

        assert API_KEY not in str(exc_info.value)
        assert exc_info.value.__cause__ is None
        assert "ClientConnectionError" in str(exc_info.value)

    async def test_not_initialized(self) -> None:
        client = GeminiClient(api_key=API_KEY)

        with pytest.raises(TransportError, match="not initialized"):
            await client.generate("Analyze")

    def test_repr_hides_key(self) -> None:
        client = GeminiClient(api_key=API_KEY)

        assert API_KEY not in repr(client)

    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ValueError):
            GeminiClient(api_key="")

    def test_implements_inference_port(self) -> None:
        assert isinstance(GeminiClient(api_key=API_KEY), IInferenceClient)
