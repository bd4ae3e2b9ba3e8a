"""
Orchestration state and outcome models.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from foodlens.domain.scan.persistence.models import ScanRecord
from foodlens.domain.shared.errors import AnalysisFailedError, FailureReason


class AnalysisState(str, Enum):
    """Steps of one analysis invocation."""

    IDLE = "IDLE"
    DETECTING_BARCODE = "DETECTING_BARCODE"
    HAS_BARCODE = "HAS_BARCODE"
    NO_BARCODE = "NO_BARCODE"
    BUILDING_PROMPT = "BUILDING_PROMPT"
    AWAITING_MODEL = "AWAITING_MODEL"
    PARSING_RESPONSE = "PARSING_RESPONSE"
    PERSISTING = "PERSISTING"
    DONE = "DONE"
    FAILED = "FAILED"


class AnalysisOutcome(BaseModel):
    """
    Terminal outcome of one invocation, for display.

    Exactly one of ``record`` and ``failure_reason`` is set, so a
    caller swapping its displayed result to a new outcome never shows
    an error and a result together.

    Example:
        >>> outcome = AnalysisOutcome.failed(
        ...     AnalysisFailedError(FailureReason.TRANSPORT, "timeout")
        ... )
        >>> assert not outcome.succeeded
    """

    model_config = ConfigDict(frozen=True)

    record: Optional[ScanRecord] = Field(None, description="Stored scan on success")
    failure_reason: Optional[FailureReason] = Field(None, description="Failure category")
    error_message: Optional[str] = Field(None, description="Human-readable reason")

    @model_validator(mode="after")
    def exactly_one(self) -> AnalysisOutcome:
        """Success and failure are mutually exclusive."""
        if (self.record is None) == (self.failure_reason is None):
            raise ValueError("Outcome must carry either a record or a failure")
        if self.failure_reason is not None and not self.error_message:
            raise ValueError("Failed outcome needs an error message")
        if self.record is not None and self.error_message is not None:
            raise ValueError("Successful outcome cannot carry an error message")
        return self

    @property
    def succeeded(self) -> bool:
        return self.record is not None

    @classmethod
    def success(cls, record: ScanRecord) -> AnalysisOutcome:
        return cls(record=record)

    @classmethod
    def failed(cls, error: AnalysisFailedError) -> AnalysisOutcome:
        return cls(failure_reason=error.reason, error_message=error.message)
