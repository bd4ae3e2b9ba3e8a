"""
Composition root.

Wires the OpenFoodFacts and Gemini clients, the barcode detector and
the repositories into an AnalysisOrchestrator and a ChatService.

Example:
    >>> settings = PipelineSettings.from_env()
    >>> async with ScanPipeline.from_settings(settings) as pipeline:
    ...     record = await pipeline.orchestrator.analyze_image(
    ...         "user_123", profile, jpeg_bytes
    ...     )
"""

from __future__ import annotations

from contextlib import AsyncExitStack
from typing import Any, Optional

import structlog

from foodlens.application.chat.chat_service import ChatService
from foodlens.application.scan.orchestration_service import AnalysisOrchestrator
from foodlens.domain.chat.conversation_repository import IConversationRepository
from foodlens.domain.scan.orchestration.ports import IBarcodeDetector
from foodlens.domain.scan.persistence.scan_repository import IScanRepository
from foodlens.domain.shared.clock import Clock
from foodlens.infrastructure.ai.gemini_client import GeminiClient
from foodlens.infrastructure.config import PipelineSettings
from foodlens.infrastructure.logging import configure_logging
from foodlens.infrastructure.openfoodfacts.api_client import OpenFoodFactsClient
from foodlens.infrastructure.persistence.in_memory.conversation_repository import (
    InMemoryConversationRepository,
)
from foodlens.infrastructure.persistence.in_memory.scan_repository import (
    InMemoryScanRepository,
)
from foodlens.infrastructure.vision.barcode_detector import BarcodeDetector

logger = structlog.get_logger(__name__)


class ScanPipeline:
    """
    Owns the HTTP clients for the lifetime of an ``async with`` block.

    ``orchestrator`` and ``chat`` are available only inside the block.
    Repositories default to in-memory stores when not injected.
    """

    def __init__(
        self,
        settings: PipelineSettings,
        scans: Optional[IScanRepository] = None,
        conversations: Optional[IConversationRepository] = None,
        detector: Optional[IBarcodeDetector] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.settings = settings
        self.scans = scans if scans is not None else InMemoryScanRepository()
        self.conversations = (
            conversations if conversations is not None else InMemoryConversationRepository()
        )
        self.detector = detector if detector is not None else BarcodeDetector()
        self.clock = clock

        self._stack: Optional[AsyncExitStack] = None
        self._orchestrator: Optional[AnalysisOrchestrator] = None
        self._chat: Optional[ChatService] = None

    @classmethod
    def from_settings(
        cls, settings: Optional[PipelineSettings] = None, **overrides: Any
    ) -> ScanPipeline:
        """Build from settings (environment if None) and configure logging."""
        settings = settings or PipelineSettings.from_env()
        configure_logging(settings.log_level, settings.log_json)
        return cls(settings, **overrides)

    @property
    def orchestrator(self) -> AnalysisOrchestrator:
        if self._orchestrator is None:
            raise RuntimeError("Pipeline not started, use async with")
        return self._orchestrator

    @property
    def chat(self) -> ChatService:
        if self._chat is None:
            raise RuntimeError("Pipeline not started, use async with")
        return self._chat

    async def __aenter__(self) -> ScanPipeline:
        settings = self.settings
        api_key = settings.require_gemini_key()

        stack = AsyncExitStack()
        try:
            catalog = await stack.enter_async_context(
                OpenFoodFactsClient(
                    base_url=settings.openfoodfacts_base_url,
                    timeout_seconds=settings.http_timeout_seconds,
                    max_attempts=settings.http_max_attempts,
                )
            )
            inference = await stack.enter_async_context(
                GeminiClient(
                    api_key=api_key,
                    model=settings.gemini_model,
                    base_url=settings.gemini_base_url,
                    timeout_seconds=settings.http_timeout_seconds,
                    max_attempts=settings.http_max_attempts,
                )
            )
        except BaseException:
            await stack.aclose()
            raise

        self._stack = stack
        self._orchestrator = AnalysisOrchestrator(
            detector=self.detector,
            catalog=catalog,
            inference=inference,
            repository=self.scans,
            clock=self.clock,
            generation=settings.analysis_generation(),
        )
        self._chat = ChatService(
            inference=inference,
            conversations=self.conversations,
            clock=self.clock,
            generation=settings.chat_generation(),
        )
        logger.info("Scan pipeline started", model=settings.gemini_model)
        return self

    async def __aexit__(self, *args: object) -> None:
        self._orchestrator = None
        self._chat = None
        if self._stack is not None:
            await self._stack.aclose()
            self._stack = None
        logger.info("Scan pipeline stopped")
