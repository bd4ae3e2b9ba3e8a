"""
Domain models for scan persistence.

A ScanRecord is the durable outcome of one completed analysis. It is
created once and never modified afterwards, only deleted.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from foodlens.domain.scan.analysis.models import (
    AnalysisMode,
    AnalysisResult,
    NutriScore,
)
from foodlens.domain.shared.value_objects import ScanId

UNKNOWN_PRODUCT = "Unknown Product"


class NewScanRecord(BaseModel):
    """
    Scan outcome handed to persistence, before it has an identity.

    Attributes:
        user_id: Owner of the scan
        product_name: Display name
        nutri_score: Canonical A-E grade
        analysis_points: Personalized findings
        citations: Health sources
        ingredients: Ingredient explanations, if the model gave any
        confidence: Model's self-reported confidence
        barcode: Barcode the analysis started from, if any
        image_ref: Reference to the captured image, if stored
        analysis_mode: Prompt path that produced the result
        scanned_at: Capture timestamp
    """

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1, description="User identifier")
    product_name: str = Field(..., min_length=1, description="Product display name")
    nutri_score: NutriScore = Field(..., description="A-E grade")
    analysis_points: List[str] = Field(..., min_length=1, description="Findings")
    citations: List[str] = Field(default_factory=list, description="Sources")
    ingredients: Optional[List[str]] = Field(None, description="Ingredient explanations")
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0, description="Model confidence")
    barcode: Optional[str] = Field(None, description="Originating barcode")
    image_ref: Optional[str] = Field(None, description="Captured image reference")
    analysis_mode: AnalysisMode = Field(..., description="catalog or vision")
    scanned_at: datetime = Field(..., description="Capture timestamp")

    @classmethod
    def from_analysis(
        cls,
        user_id: str,
        result: AnalysisResult,
        mode: AnalysisMode,
        scanned_at: datetime,
        barcode: Optional[str] = None,
        image_ref: Optional[str] = None,
        fallback_name: Optional[str] = None,
    ) -> NewScanRecord:
        """Build from a validated AnalysisResult.

        The product name comes from the model, then from the catalog
        (fallback_name), then defaults to "Unknown Product".
        """
        return cls(
            user_id=user_id,
            product_name=result.product_name or fallback_name or UNKNOWN_PRODUCT,
            nutri_score=result.nutri_score,
            analysis_points=list(result.analysis_points),
            citations=list(result.citations),
            ingredients=(
                list(result.ingredient_explanations)
                if result.ingredient_explanations is not None
                else None
            ),
            confidence=result.confidence,
            barcode=barcode,
            image_ref=image_ref,
            analysis_mode=mode,
            scanned_at=scanned_at,
        )


class ScanRecord(NewScanRecord):
    """
    Persisted scan with the identity assigned by the repository.

    Example:
        >>> record = ScanRecord.from_new(ScanId.generate(), new_record)
        >>> assert record.nutri_score == new_record.nutri_score
    """

    scan_id: ScanId = Field(..., description="Assigned by persistence")

    @classmethod
    def from_new(cls, scan_id: ScanId, new_record: NewScanRecord) -> ScanRecord:
        """Attach an identity to a new record."""
        return cls(scan_id=scan_id, **new_record.model_dump())

    def summary(self) -> str:
        """One-line summary used in chat context."""
        return f"{self.product_name}: NutriScore {self.nutri_score.value}"
