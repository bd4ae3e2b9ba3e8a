"""
OpenFoodFacts API client.

Handles HTTP requests to the OpenFoodFacts product database.
"""

import asyncio
import json
from typing import Any, Optional
from urllib.parse import quote

import aiohttp
import structlog

from foodlens.domain.scan.product.models import ProductRecord
from foodlens.domain.scan.product.openfoodfacts_mapper import (
    PRODUCT_FIELDS,
    OpenFoodFactsMapper,
)
from foodlens.domain.shared.errors import RequestTimeoutError, TransportError
from foodlens.domain.shared.value_objects import Barcode

logger = structlog.get_logger(__name__)


class OpenFoodFactsClient:
    """OpenFoodFacts API client.

    Implements the IProductCatalog port.
    """

    BASE_URL = "https://world.openfoodfacts.org/api/v0/product"
    USER_AGENT = "FoodLens/1.0"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: float = 10,
        max_attempts: int = 2,
        backoff_seconds: float = 1.0,
    ) -> None:
        """Initialize API client.

        Args:
            base_url: Product endpoint base, without trailing slash
            timeout_seconds: Request timeout
            max_attempts: Total attempts for retryable failures
            backoff_seconds: Wait before the first retry, doubled after
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "OpenFoodFactsClient":
        """Async context manager entry."""
        self._session = aiohttp.ClientSession(headers={"User-Agent": self.USER_AGENT})
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        if self._session:
            await self._session.close()
            self._session = None

    async def fetch(self, barcode: Barcode) -> Optional[ProductRecord]:
        """Get product by barcode.

        Args:
            barcode: Product barcode

        Returns:
            ProductRecord, or None if the product is not in the database

        Raises:
            RequestTimeoutError: If every attempt timed out
            TransportError: On connection failure, HTTP error or bad body

        Example:
            >>> async def lookup():
            ...     async with OpenFoodFactsClient() as client:
            ...         return await client.fetch(Barcode(value="5000112637922"))
        """
        if not self._session:
            raise TransportError("Client not initialized, use async with")

        # matrix codes can carry URLs; keep the payload in one path segment
        url = f"{self.base_url}/{quote(barcode.value, safe='')}.json"

        for attempt in range(self.max_attempts):
            last_attempt = attempt == self.max_attempts - 1

            try:
                status, data = await self._get(url)

            except asyncio.TimeoutError as e:
                if last_attempt:
                    msg = f"OpenFoodFacts API timeout after {self.timeout_seconds}s"
                    raise RequestTimeoutError(msg) from e
                await self._backoff(attempt, barcode, reason="timeout")
                continue

            except aiohttp.ClientError as e:
                if last_attempt:
                    msg = f"OpenFoodFacts API client error: {e}"
                    raise TransportError(msg) from e
                await self._backoff(attempt, barcode, reason="client_error")
                continue

            if status == 404:
                logger.info("Barcode not found in OFF", barcode=barcode.value)
                return None

            if status >= 500 and not last_attempt:
                await self._backoff(attempt, barcode, reason=f"http_{status}")
                continue

            if status >= 400:
                raise TransportError(f"OpenFoodFacts API error: {status}", status=status)

            try:
                product = OpenFoodFactsMapper.parse_product_response(barcode.value, data)
            except ValueError as e:
                raise TransportError(f"OpenFoodFacts returned a malformed body: {e}") from e

            if product is None:
                logger.info("Product not found in OFF", barcode=barcode.value)
                return None

            logger.info(
                "Product found in OFF",
                barcode=barcode.value,
                name=product.name,
                nutrients=not product.nutriments.is_empty(),
            )
            return product

        # max_attempts >= 1, every iteration returns, raises or continues
        raise TransportError("OpenFoodFacts API unreachable")

    async def _get(self, url: str) -> tuple[int, Any]:
        assert self._session is not None

        async with self._session.get(
            url,
            params={"fields": PRODUCT_FIELDS},
            timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
        ) as response:
            if response.status >= 400:
                return response.status, None
            try:
                # OFF sometimes answers with a text/plain content type
                data = await response.json(content_type=None)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise TransportError(
                    "OpenFoodFacts returned a malformed body", status=response.status
                ) from e
            return response.status, data

    async def _backoff(self, attempt: int, barcode: Barcode, reason: str) -> None:
        wait = self.backoff_seconds * 2**attempt
        logger.warning(
            "OFF request failed, retrying",
            barcode=barcode.value,
            attempt=attempt + 1,
            reason=reason,
            wait_seconds=wait,
        )
        await asyncio.sleep(wait)
