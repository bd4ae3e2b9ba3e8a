"""
Domain models for nutrition analysis.

AnalysisResult is the typed value the response parser produces from a
model reply. Field aliases are the JSON keys the model is asked to emit.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NutriScore(str, Enum):
    """Nutrition-quality grade, A best."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"

    @classmethod
    def parse(cls, raw: Any) -> NutriScore:
        """Canonicalize a grade, case-insensitively.

        Raises:
            ValueError: If raw is not one of A-E
        """
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            try:
                return cls(raw.strip().upper())
            except ValueError:
                pass
        raise ValueError(f"Invalid nutriScore: {raw!r}")


class AnalysisMode(str, Enum):
    """Which prompt path produced an analysis."""

    CATALOG = "catalog"  # barcode resolved, structured product data
    VISION = "vision"  # no barcode, model reads the label image


class AnalysisResult(BaseModel):
    """
    Personalized assessment of one product.

    Attributes:
        nutri_score: Canonical A-E grade
        analysis_points: Personalized findings, in order
        citations: Health sources backing the findings
        product_name: Product name as the model understood it
        confidence: Model's self-reported confidence (0.0 - 1.0)
        ingredient_explanations: Plain-language ingredient notes

    Example:
        >>> result = AnalysisResult.model_validate(
        ...     {
        ...         "nutriScore": "e",
        ...         "analysisPoints": ["High sugar content"],
        ...         "citations": [],
        ...     }
        ... )
        >>> assert result.nutri_score == NutriScore.E
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    nutri_score: NutriScore = Field(..., alias="nutriScore")
    analysis_points: List[str] = Field(..., min_length=1, alias="analysisPoints")
    citations: List[str] = Field(..., alias="citations")
    product_name: Optional[str] = Field(None, alias="productName")
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0, alias="confidence")
    ingredient_explanations: Optional[List[str]] = Field(None, alias="ingredients")

    @field_validator("nutri_score", mode="before")
    @classmethod
    def canonical_score(cls, v: Any) -> NutriScore:
        """Accept any case, store uppercase."""
        return NutriScore.parse(v)

    @field_validator("analysis_points")
    @classmethod
    def points_not_blank(cls, v: List[str]) -> List[str]:
        """Every point must carry text."""
        if any(not point.strip() for point in v):
            raise ValueError("analysis points cannot be blank")
        return v

    @field_validator("product_name")
    @classmethod
    def blank_name_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty product name as absent."""
        if v is None or not v.strip():
            return None
        return v

    def to_wire(self) -> dict[str, Any]:
        """Serialize with the JSON keys the model emits."""
        return self.model_dump(by_alias=True, mode="json")
