"""
Shared fixtures for foodlens tests.

Real-world test case used throughout:
Product: Coca-Cola Original Taste 330ml, Barcode: 5000112637922
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from foodlens.domain.profile.models import HealthProfile
from foodlens.domain.scan.analysis.models import AnalysisMode, NutriScore
from foodlens.domain.scan.persistence.models import NewScanRecord, ScanRecord
from foodlens.domain.scan.product.models import Ingredient, Nutriments, ProductRecord
from foodlens.domain.shared.value_objects import Barcode, ScanId, Symbology
from foodlens.infrastructure.persistence.in_memory.conversation_repository import (
    InMemoryConversationRepository,
)
from foodlens.infrastructure.persistence.in_memory.scan_repository import (
    InMemoryScanRepository,
)

COCA_COLA_BARCODE = "5000112637922"

COCA_COLA_REPLY = (
    "```json\n"
    '{"nutriScore":"E","analysisPoints":["High sugar content"],'
    '"citations":["WHO sugar guidance"]}\n'
    "```"
)


# ═══════════════════════════════════════════════════════════
# DOMAIN MODEL FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 14, 12, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now: datetime) -> Callable[[], datetime]:
    return lambda: fixed_now


@pytest.fixture
def profile() -> HealthProfile:
    """Adult with type 2 diabetes and a custom condition."""
    return HealthProfile(
        age=34,
        height_cm=172.0,
        weight_kg=70.5,
        medical_conditions={"Type 2 Diabetes"},
        custom_conditions=["Lactose intolerance"],
        health_goals="Lose 5kg",
        name="Alex",
    )


@pytest.fixture
def coca_cola_barcode() -> Barcode:
    return Barcode(value=COCA_COLA_BARCODE, symbology=Symbology.EAN13)


@pytest.fixture
def coca_cola_product() -> ProductRecord:
    """Coca-Cola product as returned by OpenFoodFacts."""
    return ProductRecord(
        barcode=COCA_COLA_BARCODE,
        name="Coca-Cola",
        brand="Coca-Cola",
        nutriments=Nutriments(
            energy_kcal=42.0,
            fat=0.0,
            saturated_fat=0.0,
            carbohydrates=10.6,
            sugars=10.6,
            proteins=0.0,
            salt=0.0,
        ),
        ingredients=[
            Ingredient(text="Sugar", rank=2, id="en:sugar"),
            Ingredient(text="Carbonated water", rank=1, id="en:carbonated-water"),
            Ingredient(text="Natural flavourings including caffeine", rank=5),
            Ingredient(text="Colour (caramel E150d)", rank=3, id="en:e150d"),
            Ingredient(text="Phosphoric acid", rank=4, id="en:e338"),
        ],
        nutrition_grade="e",
    )


@pytest.fixture
def coca_cola_reply() -> str:
    """Fenced model reply for the Coca-Cola scenario."""
    return COCA_COLA_REPLY


@pytest.fixture
def make_scan_record(fixed_now: datetime) -> Callable[..., ScanRecord]:
    """Factory for stored scan records."""

    def _make(
        product_name: str = "Coca-Cola",
        nutri_score: NutriScore = NutriScore.E,
        user_id: str = "user_123",
        scanned_at: Optional[datetime] = None,
        points: Optional[List[str]] = None,
    ) -> ScanRecord:
        new_record = NewScanRecord(
            user_id=user_id,
            product_name=product_name,
            nutri_score=nutri_score,
            analysis_points=points or ["High sugar content"],
            citations=["WHO sugar guidance"],
            analysis_mode=AnalysisMode.CATALOG,
            scanned_at=scanned_at or fixed_now,
        )
        return ScanRecord.from_new(ScanId.generate(), new_record)

    return _make


# ═══════════════════════════════════════════════════════════
# COLLABORATOR FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def mock_detector(coca_cola_barcode: Barcode) -> MagicMock:
    """Detector that finds the Coca-Cola barcode."""
    detector = MagicMock()
    detector.detect.return_value = coca_cola_barcode
    return detector


@pytest.fixture
def mock_catalog(coca_cola_product: ProductRecord) -> AsyncMock:
    """Catalog that knows the Coca-Cola product."""
    catalog = AsyncMock()
    catalog.fetch.return_value = coca_cola_product
    return catalog


@pytest.fixture
def mock_inference(coca_cola_reply: str) -> AsyncMock:
    """Inference client replying with the Coca-Cola analysis."""
    inference = AsyncMock()
    inference.generate.return_value = coca_cola_reply
    return inference


@pytest.fixture
def scan_repository() -> InMemoryScanRepository:
    return InMemoryScanRepository()


@pytest.fixture
def conversation_repository() -> InMemoryConversationRepository:
    return InMemoryConversationRepository()
