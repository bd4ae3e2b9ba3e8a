"""
Scan Analysis Orchestration Service.

Coordinates one analysis from a captured image or a decoded barcode:
barcode detection, catalog lookup, prompt building, inference, parsing
and persistence, strictly in that order.

Design Pattern: Service Layer + Dependency Injection + State Machine
"""

import asyncio
from typing import Awaitable, Callable, Dict, Optional

import structlog

from foodlens.domain.profile.models import HealthProfile
from foodlens.domain.scan.analysis.models import AnalysisMode
from foodlens.domain.scan.analysis.prompts import (
    build_catalog_prompt,
    build_vision_prompt,
)
from foodlens.domain.scan.analysis.response_parser import parse_analysis_response
from foodlens.domain.scan.orchestration.models import AnalysisOutcome, AnalysisState
from foodlens.domain.scan.orchestration.ports import (
    IBarcodeDetector,
    IInferenceClient,
    IProductCatalog,
)
from foodlens.domain.scan.persistence.models import NewScanRecord, ScanRecord
from foodlens.domain.scan.persistence.scan_repository import IScanRepository
from foodlens.domain.shared.clock import Clock, utc_now
from foodlens.domain.shared.errors import (
    AnalysisFailedError,
    AnalysisInProgressError,
    FailureReason,
    InvalidImageError,
    ModelResponseError,
    ParseError,
    PersistenceError,
    TransportError,
)
from foodlens.domain.shared.inference import (
    ANALYSIS_GENERATION,
    GenerationSettings,
    ImageInput,
)
from foodlens.domain.shared.value_objects import Barcode

logger = structlog.get_logger(__name__)

MAX_TRACKED_STATES = 1024


class AnalysisOrchestrator:
    """
    Orchestrates scan analysis for one user at a time per key.

    Responsibilities:
    - Route to catalog mode (barcode found) or vision mode (no barcode)
    - Reject a second invocation for a key that is still in flight
    - Map every fatal error to one AnalysisFailedError
    - Persist exactly one ScanRecord per successful analysis

    Dependencies (injected via Ports/Interfaces):
    - detector: IBarcodeDetector - barcode decoding (sync, run in a thread)
    - catalog: IProductCatalog - nutrition database lookup
    - inference: IInferenceClient - generative model
    - repository: IScanRepository - scan history store

    Nothing is retried here; the HTTP clients own their retry policy.

    Example:
        >>> orchestrator = AnalysisOrchestrator(
        ...     detector=BarcodeDetector(),
        ...     catalog=off_client,
        ...     inference=gemini_client,
        ...     repository=InMemoryScanRepository(),
        ... )
        >>> record = await orchestrator.analyze_image("user_123", profile, jpeg_bytes)
        >>> print(f"{record.product_name}: {record.nutri_score.value}")
    """

    def __init__(
        self,
        detector: IBarcodeDetector,
        catalog: IProductCatalog,
        inference: IInferenceClient,
        repository: IScanRepository,
        clock: Optional[Clock] = None,
        generation: GenerationSettings = ANALYSIS_GENERATION,
        max_tracked_states: int = MAX_TRACKED_STATES,
    ):
        """
        Initialize orchestrator with dependencies.

        Args:
            detector: Barcode detector
            catalog: Product catalog client
            inference: Inference client
            repository: Scan repository
            clock: Timestamp source for scanned_at (UTC now if None)
            generation: Sampling parameters for analysis calls
            max_tracked_states: Keys whose last state is remembered; the
                least recently updated idle key is forgotten first
        """
        self.detector = detector
        self.catalog = catalog
        self.inference = inference
        self.repository = repository
        self.clock = clock or utc_now
        self.generation = generation
        self.max_tracked_states = max_tracked_states

        self._in_flight: Dict[str, "asyncio.Task[ScanRecord]"] = {}
        self._states: Dict[str, AnalysisState] = {}

    # ═══════════════════════════════════════════════════════════
    # PUBLIC OPERATIONS
    # ═══════════════════════════════════════════════════════════

    async def analyze_image(
        self,
        user_id: str,
        profile: HealthProfile,
        image: ImageInput,
        *,
        image_ref: Optional[str] = None,
        key: Optional[str] = None,
    ) -> ScanRecord:
        """
        Analyze a captured image.

        Workflow:
        1. Detect a barcode in the image (worker thread)
        2. Barcode found → catalog lookup → catalog-mode prompt
        3. No barcode → vision-mode prompt with the image attached
        4. Inference → parse → persist

        Args:
            user_id: Owner of the scan
            profile: Health profile to personalize against
            image: Encoded bytes or Pillow image
            image_ref: Stored image reference to keep on the record
            key: Single-flight key (defaults to user_id)

        Returns:
            Persisted ScanRecord

        Raises:
            AnalysisInProgressError: If an analysis for key is in flight
            AnalysisFailedError: On any fatal step failure
        """
        flight_key = key or user_id

        async def job() -> ScanRecord:
            self._transition(flight_key, AnalysisState.DETECTING_BARCODE)
            barcode = await asyncio.to_thread(self.detector.detect, image)

            if barcode is None:
                self._transition(flight_key, AnalysisState.NO_BARCODE)
                return await self._vision_path(flight_key, user_id, profile, image, image_ref)

            self._transition(flight_key, AnalysisState.HAS_BARCODE, barcode=barcode.value)
            return await self._catalog_path(flight_key, user_id, profile, barcode, image_ref)

        return await self._single_flight(flight_key, job)

    async def analyze_barcode(
        self,
        user_id: str,
        profile: HealthProfile,
        barcode: Barcode,
        *,
        image_ref: Optional[str] = None,
        key: Optional[str] = None,
    ) -> ScanRecord:
        """
        Analyze a barcode the host already decoded (live scanning).

        Skips detection and always runs in catalog mode.

        Raises:
            AnalysisInProgressError: If an analysis for key is in flight
            AnalysisFailedError: On any fatal step failure
        """
        flight_key = key or user_id

        async def job() -> ScanRecord:
            self._transition(flight_key, AnalysisState.HAS_BARCODE, barcode=barcode.value)
            return await self._catalog_path(flight_key, user_id, profile, barcode, image_ref)

        return await self._single_flight(flight_key, job)

    async def run(
        self,
        user_id: str,
        profile: HealthProfile,
        *,
        image: Optional[ImageInput] = None,
        barcode: Optional[Barcode] = None,
        image_ref: Optional[str] = None,
        key: Optional[str] = None,
    ) -> AnalysisOutcome:
        """
        Run one analysis and fold the result into an AnalysisOutcome.

        A barcode takes precedence over the image. AnalysisFailedError
        becomes a failed outcome; AnalysisInProgressError and
        cancellation still propagate.

        Raises:
            ValueError: If neither image nor barcode is given
        """
        try:
            if barcode is not None:
                record = await self.analyze_barcode(
                    user_id, profile, barcode, image_ref=image_ref, key=key
                )
            elif image is not None:
                record = await self.analyze_image(
                    user_id, profile, image, image_ref=image_ref, key=key
                )
            else:
                raise ValueError("Either image or barcode is required")
        except AnalysisFailedError as e:
            return AnalysisOutcome.failed(e)

        return AnalysisOutcome.success(record)

    def cancel(self, key: str) -> bool:
        """
        Cancel the in-flight analysis for key.

        Returns:
            True if a running analysis was cancelled
        """
        task = self._in_flight.get(key)
        if task is None or task.done():
            return False
        logger.info("Cancelling analysis", key=key)
        return task.cancel()

    def state(self, key: str) -> AnalysisState:
        """Current (or last terminal) state for key, IDLE once forgotten."""
        return self._states.get(key, AnalysisState.IDLE)

    def is_running(self, key: str) -> bool:
        return key in self._in_flight

    # ═══════════════════════════════════════════════════════════
    # PIPELINE STEPS
    # ═══════════════════════════════════════════════════════════

    async def _single_flight(
        self, key: str, job: Callable[[], Awaitable[ScanRecord]]
    ) -> ScanRecord:
        if key in self._in_flight:
            raise AnalysisInProgressError(f"Analysis already running for key {key}")

        task: "asyncio.Task[ScanRecord]" = asyncio.ensure_future(job())
        self._in_flight[key] = task
        try:
            return await task
        except asyncio.CancelledError:
            self._transition(key, AnalysisState.IDLE, cancelled=True)
            raise
        finally:
            if self._in_flight.get(key) is task:
                del self._in_flight[key]

    async def _catalog_path(
        self,
        key: str,
        user_id: str,
        profile: HealthProfile,
        barcode: Barcode,
        image_ref: Optional[str],
    ) -> ScanRecord:
        try:
            product = await self.catalog.fetch(barcode)
        except TransportError as e:
            raise self._failed(key, FailureReason.TRANSPORT, e) from e

        if product is None:
            logger.info("Product not in catalog, analyzing barcode only", barcode=barcode.value)

        self._transition(key, AnalysisState.BUILDING_PROMPT, mode=AnalysisMode.CATALOG.value)
        prompt = build_catalog_prompt(profile, product, barcode=barcode.value)

        return await self._infer_and_persist(
            key,
            user_id,
            prompt,
            image=None,
            mode=AnalysisMode.CATALOG,
            barcode=barcode.value,
            image_ref=image_ref,
            fallback_name=product.name if product else None,
        )

    async def _vision_path(
        self,
        key: str,
        user_id: str,
        profile: HealthProfile,
        image: ImageInput,
        image_ref: Optional[str],
    ) -> ScanRecord:
        self._transition(key, AnalysisState.BUILDING_PROMPT, mode=AnalysisMode.VISION.value)
        prompt = build_vision_prompt(profile)

        return await self._infer_and_persist(
            key,
            user_id,
            prompt,
            image=image,
            mode=AnalysisMode.VISION,
            barcode=None,
            image_ref=image_ref,
            fallback_name=None,
        )

    async def _infer_and_persist(
        self,
        key: str,
        user_id: str,
        prompt: str,
        image: Optional[ImageInput],
        mode: AnalysisMode,
        barcode: Optional[str],
        image_ref: Optional[str],
        fallback_name: Optional[str],
    ) -> ScanRecord:
        self._transition(key, AnalysisState.AWAITING_MODEL)
        try:
            text = await self.inference.generate(prompt, image=image, settings=self.generation)
        except TransportError as e:
            raise self._failed(key, FailureReason.TRANSPORT, e) from e
        except InvalidImageError as e:
            raise self._failed(key, FailureReason.INVALID_IMAGE, e) from e
        except ModelResponseError as e:
            raise self._failed(key, FailureReason.MODEL_RESPONSE, e) from e

        self._transition(key, AnalysisState.PARSING_RESPONSE)
        try:
            result = parse_analysis_response(text)
        except ParseError as e:
            raise self._failed(key, FailureReason.PARSE, e) from e

        new_record = NewScanRecord.from_analysis(
            user_id=user_id,
            result=result,
            mode=mode,
            scanned_at=self.clock(),
            barcode=barcode,
            image_ref=image_ref,
            fallback_name=fallback_name,
        )

        self._transition(key, AnalysisState.PERSISTING)
        try:
            record = await self.repository.create(new_record)
        except PersistenceError as e:
            raise self._failed(key, FailureReason.PERSISTENCE, e) from e

        self._transition(
            key,
            AnalysisState.DONE,
            scan_id=record.scan_id.value,
            nutri_score=record.nutri_score.value,
        )
        return record

    def _transition(self, key: str, state: AnalysisState, **fields: object) -> None:
        # re-insert so dict order tracks recency
        self._states.pop(key, None)
        self._states[key] = state
        if len(self._states) > self.max_tracked_states:
            self._forget_oldest_idle()
        logger.debug("Analysis state", key=key, state=state.value, **fields)

    def _forget_oldest_idle(self) -> None:
        for stale in self._states:
            if stale not in self._in_flight:
                del self._states[stale]
                return

    def _failed(
        self, key: str, reason: FailureReason, error: Exception
    ) -> AnalysisFailedError:
        parse_kind = error.kind if isinstance(error, ParseError) else None
        failure = AnalysisFailedError(reason, str(error) or type(error).__name__, parse_kind)

        self._transition(key, AnalysisState.FAILED)
        logger.warning(
            "Analysis failed",
            key=key,
            reason=reason.value,
            parse_kind=parse_kind.value if parse_kind else None,
            error=failure.message,
        )
        return failure
