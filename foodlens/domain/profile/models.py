"""
Consumer health profile.

Immutable snapshot supplied by the caller for each analysis or chat
request. The pipeline reads it and never mutates it.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_conditions(value: Any) -> Tuple[str, ...]:
    """Turn a set or sequence of condition names into a stable tuple.

    Sets have no order, so they are sorted to keep prompts deterministic.
    Sequences keep first-seen order. Blank entries and case-insensitive
    duplicates are dropped.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if isinstance(value, (set, frozenset)):
        value = sorted(value, key=lambda s: str(s).lower())

    seen: set[str] = set()
    normalized = []
    for item in value:
        text = str(item).strip()
        if not text or text.lower() in seen:
            continue
        seen.add(text.lower())
        normalized.append(text)
    return tuple(normalized)


class HealthProfile(BaseModel):
    """
    Health profile used to personalize assessments.

    Attributes:
        age: Age in years
        height_cm: Height in centimetres
        weight_kg: Weight in kilograms
        medical_conditions: Conditions picked from a predefined list
        custom_conditions: Conditions the user typed in
        health_goals: Free-text goals
        additional_concerns: Free-text concerns
        name: Display name, only used by the chat assistant

    Example:
        >>> profile = HealthProfile(
        ...     age=34,
        ...     height_cm=172.0,
        ...     weight_kg=70.5,
        ...     medical_conditions={"Type 2 Diabetes"},
        ... )
        >>> profile.all_conditions()
        ('Type 2 Diabetes',)
    """

    model_config = ConfigDict(frozen=True)

    age: int = Field(..., gt=0, description="Age in years")
    height_cm: float = Field(..., gt=0, description="Height in cm")
    weight_kg: float = Field(..., gt=0, description="Weight in kg")
    medical_conditions: Tuple[str, ...] = Field(default=(), description="Predefined conditions")
    custom_conditions: Tuple[str, ...] = Field(default=(), description="User-entered conditions")
    health_goals: Optional[str] = Field(None, description="Personal health goals")
    additional_concerns: Optional[str] = Field(None, description="Other health concerns")
    name: Optional[str] = Field(None, description="Display name")

    @field_validator("medical_conditions", "custom_conditions", mode="before")
    @classmethod
    def normalize_conditions(cls, v: Any) -> Tuple[str, ...]:
        """Accept sets, lists or tuples; store a deterministic tuple."""
        return _normalize_conditions(v)

    @field_validator("health_goals", "additional_concerns", "name")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat whitespace-only text as absent."""
        if v is None or not v.strip():
            return None
        return v.strip()

    def all_conditions(self) -> Tuple[str, ...]:
        """Structured and custom conditions merged, duplicates removed."""
        return _normalize_conditions(self.medical_conditions + self.custom_conditions)
