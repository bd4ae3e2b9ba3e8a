"""
Domain exceptions.

Typed exceptions for explicit error handling across the scan pipeline.
Fatal errors surface to the orchestrator's caller as AnalysisFailedError;
non-fatal ones (DetectionError) only ever degrade the analysis path.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class DomainError(Exception):
    """
    Base exception for all domain errors.

    All domain-specific exceptions inherit from this.
    Allows catching all domain errors with single except clause.
    """

    pass


# ═══════════════════════════════════════════════════════════
# SCAN DOMAIN EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ScanDomainError(DomainError):
    """Base exception for scan domain."""

    pass


class DetectionError(ScanDomainError):
    """
    Barcode decoder failed internally.

    Non-fatal: BarcodeDetector.detect() swallows it and reports
    "no barcode", which routes the orchestrator to vision mode.

    Example:
        >>> raise DetectionError("zbar failed on 4000x3000 image")
    """

    pass


class InvalidImageError(ScanDomainError):
    """
    Image bytes cannot be decoded or re-encoded.

    Raised when:
    - bytes are not a known image format or are truncated
    - the image exceeds Pillow's decompression bomb limit

    Retrying with the same input never helps.

    Example:
        >>> raise InvalidImageError("Image could not be decoded: truncated")
    """

    pass


class ModelResponseError(ScanDomainError):
    """
    Inference service replied without usable candidate text.

    Raised when:
    - candidates list is empty
    - first candidate has no parts
    - first part has no text

    Example:
        >>> raise ModelResponseError("No candidates in response")
    """

    pass


class ParseErrorKind(str, Enum):
    """Distinguishes the three ways a model reply can be unusable."""

    NO_JSON_FOUND = "no_json_found"
    SCHEMA_MISMATCH = "schema_mismatch"
    INVALID_SCORE = "invalid_score"


class ParseError(ScanDomainError):
    """
    Model reply could not be turned into an AnalysisResult.

    Base class; catch it to handle any parse failure, or inspect
    ``kind`` to tell them apart.
    """

    kind: ParseErrorKind = ParseErrorKind.SCHEMA_MISMATCH


class NoJsonFoundError(ParseError):
    """
    Reply has no ``{ ... }`` object to decode.

    Example:
        >>> raise NoJsonFoundError("I cannot read this label, sorry.")
    """

    kind = ParseErrorKind.NO_JSON_FOUND


class SchemaMismatchError(ParseError):
    """
    JSON decoded but does not fit the AnalysisResult shape.

    Raised when:
    - JSON is malformed or not an object
    - nutriScore, analysisPoints or citations missing
    - a field has the wrong type or is out of range
    """

    kind = ParseErrorKind.SCHEMA_MISMATCH


class InvalidScoreError(ParseError):
    """
    nutriScore is not one of A, B, C, D, E.

    Example:
        >>> raise InvalidScoreError("Invalid nutriScore: 'Z'")
    """

    kind = ParseErrorKind.INVALID_SCORE


class FailureReason(str, Enum):
    """Terminal failure categories reported to the orchestrator's caller."""

    TRANSPORT = "transport"
    INVALID_IMAGE = "invalid_image"
    MODEL_RESPONSE = "model_response"
    PARSE = "parse"
    PERSISTENCE = "persistence"


class AnalysisFailedError(ScanDomainError):
    """
    Single typed terminal failure of one analysis invocation.

    Always raised ``from`` the underlying error so the cause stays
    available, while ``reason`` lets callers tell "service unreachable"
    from "service replied nonsense".

    Example:
        >>> raise AnalysisFailedError(
        ...     FailureReason.PARSE, "Invalid nutriScore: 'Z'"
        ... )
    """

    def __init__(
        self,
        reason: FailureReason,
        message: str,
        parse_kind: Optional[ParseErrorKind] = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.parse_kind = parse_kind

    def __str__(self) -> str:
        return f"{self.reason.value}: {self.message}"


# ═══════════════════════════════════════════════════════════
# RESOURCE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class NotFoundError(DomainError):
    """
    Resource not found.

    Generic not found error. Prefer specific types like
    ScanNotFoundError or ConversationNotFoundError.
    """

    pass


class ScanNotFoundError(NotFoundError):
    """
    Scan record not found.

    Example:
        >>> raise ScanNotFoundError("Scan scan_abc123def456 not found")
    """

    pass


class ConversationNotFoundError(NotFoundError):
    """
    Conversation not found or owned by another user.

    Example:
        >>> raise ConversationNotFoundError("Conversation conv_1 not found")
    """

    pass


class ConflictError(DomainError):
    """
    Resource conflict detected.

    Raised when:
    - Duplicate resource
    - Concurrent modification
    - State conflict
    """

    pass


class AnalysisInProgressError(ConflictError):
    """
    An analysis is already in flight for this invocation key.

    Example:
        >>> raise AnalysisInProgressError(
        ...     "Analysis already running for key user_123"
        ... )
    """

    pass


class ConfigurationError(DomainError):
    """
    Required configuration missing or invalid.

    Example:
        >>> raise ConfigurationError("GEMINI_API_KEY not set")
    """

    pass


# ═══════════════════════════════════════════════════════════
# EXTERNAL SERVICE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ExternalServiceError(DomainError):
    """
    External service call failed.

    Base class for all external service errors.
    """

    pass


class TransportError(ExternalServiceError):
    """
    Network or HTTP failure talking to an external service.

    Raised when:
    - Connection refused or reset
    - Non-2xx status (other than a catalog "not found")
    - Body is not the JSON we expect

    Example:
        >>> raise TransportError("OpenFoodFacts API error: 503")
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class RequestTimeoutError(TransportError):
    """
    API call timed out.

    Example:
        >>> raise RequestTimeoutError("Gemini API timeout after 10s")
    """

    pass


# ═══════════════════════════════════════════════════════════
# INFRASTRUCTURE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class InfrastructureError(DomainError):
    """
    Infrastructure layer error.

    Base class for storage errors.
    """

    pass


class PersistenceError(InfrastructureError):
    """
    Storage operation failed.

    Example:
        >>> raise PersistenceError("scan store unavailable")
    """

    pass
