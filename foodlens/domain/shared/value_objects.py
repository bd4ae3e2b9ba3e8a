"""
Shared value objects.

Immutable, validated domain primitives.
Following DDD value object pattern.
"""

from __future__ import annotations

import re
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Symbology(str, Enum):
    """Barcode formats the detector is allowed to decode."""

    EAN13 = "EAN13"
    EAN8 = "EAN8"
    UPCA = "UPCA"
    UPCE = "UPCE"
    CODE128 = "CODE128"
    CODE39 = "CODE39"
    CODE93 = "CODE93"
    QRCODE = "QRCODE"


_RETAIL_CODE = re.compile(r"^\d{8,14}$")


class Barcode(BaseModel):
    """
    Decoded barcode value object.

    Carries the raw payload and, when known, the symbology it was
    decoded from. Matrix codes may carry non-numeric payloads, so only
    emptiness is rejected here; use is_retail_code() to check for a
    catalog-style EAN/UPC number.

    Example:
        >>> barcode = Barcode(value="5000112637922", symbology=Symbology.EAN13)
        >>> assert barcode.is_retail_code()
    """

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., min_length=1, description="Barcode payload")
    symbology: Optional[Symbology] = Field(None, description="Decoded format")

    @field_validator("value")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """Strip whitespace and reject blank payloads."""
        if not v.strip():
            raise ValueError("Barcode cannot be empty or whitespace")
        return v.strip()

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"Barcode('{self.value}')"

    def __hash__(self) -> int:
        return hash(self.value)

    def is_retail_code(self) -> bool:
        """
        Check for an EAN/UPC/GTIN style payload.

        Returns:
            True if the payload is 8-14 digits
        """
        return bool(_RETAIL_CODE.match(self.value))

    @classmethod
    def from_string(cls, s: str) -> Barcode:
        """Create from string."""
        return cls(value=s)


class ScanId(BaseModel):
    """
    Scan record ID value object.

    Assigned by the persistence layer when a ScanRecord is created.
    Format: "scan_<12_hex_chars>"

    Example:
        >>> scan_id = ScanId.generate()
        >>> assert scan_id.value.startswith("scan_")
    """

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., min_length=1, description="Scan identifier")

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"ScanId('{self.value}')"

    def __hash__(self) -> int:
        return hash(self.value)

    @classmethod
    def generate(cls) -> ScanId:
        """Generate new scan ID with a random suffix."""
        return cls(value=f"scan_{uuid.uuid4().hex[:12]}")

    @classmethod
    def from_string(cls, s: str) -> ScanId:
        """Create from string."""
        return cls(value=s)


class ConversationId(BaseModel):
    """
    Conversation ID value object.

    Example:
        >>> conversation_id = ConversationId.generate()
        >>> assert conversation_id.value.startswith("conv_")
    """

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., min_length=1, description="Conversation identifier")

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"ConversationId('{self.value}')"

    def __hash__(self) -> int:
        return hash(self.value)

    @classmethod
    def generate(cls) -> ConversationId:
        """Generate new conversation ID."""
        return cls(value=f"conv_{uuid.uuid4().hex[:12]}")

    @classmethod
    def from_string(cls, s: str) -> ConversationId:
        """Create from string."""
        return cls(value=s)
