"""
Gemini API client for product analysis and chat.

Async REST client for the ``generateContent`` endpoint with bounded
timeout and a single retry on transient failures.
"""

from __future__ import annotations

import asyncio
import base64
import json
from typing import Any, Optional

import aiohttp
import structlog
from pydantic import ValidationError as PydanticValidationError

from foodlens.domain.shared.errors import (
    InvalidImageError,
    ModelResponseError,
    RequestTimeoutError,
    TransportError,
)
from foodlens.domain.shared.inference import (
    ANALYSIS_GENERATION,
    GenerationSettings,
    ImageInput,
)
from foodlens.infrastructure.ai.gemini_models import (
    GenerateContentRequest,
    GenerateContentResponse,
)
from foodlens.infrastructure.vision.images import encode_jpeg

logger = structlog.get_logger(__name__)


class GeminiClient:
    """
    Async Gemini client implementing the IInferenceClient port.

    Sends one prompt (optionally with an image re-encoded as JPEG) and
    returns the first candidate's text.

    Features:
    - Typed request/response bodies
    - Bounded timeout per attempt
    - One retry on timeouts, connection errors and 5xx
    - Credential sent as query parameter, never logged

    Example:
        >>> async with GeminiClient(api_key=key) as client:
        ...     text = await client.generate("Say hello", settings=CHAT_GENERATION)
    """

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
    DEFAULT_MODEL = "gemini-2.0-flash-exp"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        timeout_seconds: float = 10,
        max_attempts: int = 2,
        backoff_seconds: float = 1.0,
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key
            model: Model name, e.g. "gemini-2.0-flash-exp"
            base_url: Models endpoint base, without trailing slash
            timeout_seconds: Request timeout per attempt
            max_attempts: Total attempts for retryable failures
            backoff_seconds: Wait before the first retry, doubled after

        Raises:
            ValueError: If api_key is empty or max_attempts < 1
        """
        if not api_key:
            raise ValueError("Gemini API key is required")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self._api_key = api_key
        self.model = model
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    def __repr__(self) -> str:
        return f"GeminiClient(model={self.model!r}, base_url={self.base_url!r})"

    async def __aenter__(self) -> GeminiClient:
        """Async context manager entry."""
        self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        if self._session:
            await self._session.close()
            self._session = None

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.model}:generateContent"

    async def generate(
        self,
        prompt: str,
        image: Optional[ImageInput] = None,
        settings: Optional[GenerationSettings] = None,
    ) -> str:
        """
        Run one generateContent call.

        Args:
            prompt: Instruction text
            image: Image attached as inline JPEG, if any
            settings: Sampling parameters (analysis defaults if None)

        Returns:
            Text of the first candidate's first part

        Raises:
            RequestTimeoutError: If every attempt timed out
            TransportError: On connection failure, HTTP error or bad body
            InvalidImageError: If the image cannot be encoded for upload
            ModelResponseError: If no candidate text came back
        """
        if not self._session:
            raise TransportError("Client not initialized, use async with")

        image_base64 = await self._encode_image(image) if image is not None else None
        request = GenerateContentRequest.single_turn(
            prompt,
            settings=settings or ANALYSIS_GENERATION,
            image_base64=image_base64,
        )
        body = await self._post(request.to_payload())

        try:
            response = GenerateContentResponse.model_validate(body)
        except PydanticValidationError as e:
            raise ModelResponseError(f"Unexpected Gemini response shape: {e}") from e

        text = response.first_text()
        if text is None:
            finish_reason = (
                response.candidates[0].finish_reason if response.candidates else None
            )
            logger.warning(
                "Gemini returned no candidate text",
                model=self.model,
                candidates=len(response.candidates),
                finish_reason=finish_reason,
            )
            raise ModelResponseError("No candidate text in Gemini response")

        logger.info("Gemini response received", model=self.model, chars=len(text))
        return text

    async def _encode_image(self, image: ImageInput) -> str:
        jpeg = await asyncio.to_thread(encode_jpeg, image)
        return base64.b64encode(jpeg).decode("ascii")

    async def _post(self, payload: dict[str, Any]) -> Any:
        assert self._session is not None

        for attempt in range(self.max_attempts):
            last_attempt = attempt == self.max_attempts - 1

            try:
                async with self._session.post(
                    self.endpoint,
                    params={"key": self._api_key},
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                ) as response:
                    status = response.status
                    if status < 400:
                        try:
                            return await response.json(content_type=None)
                        except (json.JSONDecodeError, UnicodeDecodeError) as e:
                            raise TransportError(
                                "Gemini returned a malformed body", status=status
                            ) from e

            except asyncio.TimeoutError as e:
                if last_attempt:
                    msg = f"Gemini API timeout after {self.timeout_seconds}s"
                    raise RequestTimeoutError(msg) from e
                await self._backoff(attempt, reason="timeout")
                continue

            except aiohttp.ClientError as e:
                if last_attempt:
                    # aiohttp errors may embed the request URL, which carries the key
                    raise TransportError(f"Gemini API client error: {type(e).__name__}") from None
                await self._backoff(attempt, reason="client_error")
                continue

            if status >= 500 and not last_attempt:
                await self._backoff(attempt, reason=f"http_{status}")
                continue

            logger.warning("Gemini API error", model=self.model, status=status)
            raise TransportError(f"Gemini API error: {status}", status=status)

        raise TransportError("Gemini API unreachable")

    async def _backoff(self, attempt: int, reason: str) -> None:
        wait = self.backoff_seconds * 2**attempt
        logger.warning(
            "Gemini request failed, retrying",
            model=self.model,
            attempt=attempt + 1,
            reason=reason,
            wait_seconds=wait,
        )
        await asyncio.sleep(wait)
