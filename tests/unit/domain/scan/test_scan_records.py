"""Unit tests for scan records and analysis outcomes."""

from datetime import datetime
from typing import Callable

import pytest
from pydantic import ValidationError

from foodlens.domain.scan.analysis.models import AnalysisMode, AnalysisResult, NutriScore
from foodlens.domain.scan.orchestration.models import AnalysisOutcome
from foodlens.domain.scan.persistence.models import (
    UNKNOWN_PRODUCT,
    NewScanRecord,
    ScanRecord,
)
from foodlens.domain.shared.errors import AnalysisFailedError, FailureReason
from foodlens.domain.shared.value_objects import ScanId


@pytest.fixture
def analysis_result() -> AnalysisResult:
    return AnalysisResult(
        nutri_score=NutriScore.E,
        analysis_points=["High sugar content"],
        citations=["WHO sugar guidance"],
        ingredient_explanations=["Sugar - sweetener"],
        confidence=0.8,
    )


class TestAnalysisResult:
    def test_wire_aliases(self) -> None:
        result = AnalysisResult.model_validate(
            {
                "nutriScore": "b",
                "analysisPoints": ["Good fiber"],
                "citations": [],
                "productName": "Oats",
                "ingredients": ["Oats - whole grain"],
            }
        )

        assert result.nutri_score == NutriScore.B
        assert result.to_wire() == {
            "nutriScore": "B",
            "analysisPoints": ["Good fiber"],
            "citations": [],
            "productName": "Oats",
            "confidence": None,
            "ingredients": ["Oats - whole grain"],
        }

    def test_blank_product_name_is_none(self) -> None:
        result = AnalysisResult(
            nutri_score=NutriScore.A, analysis_points=["x"], citations=[], product_name="  "
        )

        assert result.product_name is None


class TestNewScanRecord:
    """Test building records from analysis results."""

    def test_from_analysis(self, analysis_result: AnalysisResult, fixed_now: datetime) -> None:
        record = NewScanRecord.from_analysis(
            user_id="user_123",
            result=analysis_result,
            mode=AnalysisMode.CATALOG,
            scanned_at=fixed_now,
            barcode="5000112637922",
            fallback_name="Coca-Cola",
        )

        assert record.product_name == "Coca-Cola"
        assert record.nutri_score == NutriScore.E
        assert record.ingredients == ["Sugar - sweetener"]
        assert record.confidence == 0.8
        assert record.barcode == "5000112637922"
        assert record.analysis_mode == AnalysisMode.CATALOG
        assert record.scanned_at == fixed_now

    def test_model_name_wins_over_fallback(self, fixed_now: datetime) -> None:
        result = AnalysisResult(
            nutri_score=NutriScore.E,
            analysis_points=["x"],
            citations=[],
            product_name="Coke Zero",
        )

        record = NewScanRecord.from_analysis(
            "user_123", result, AnalysisMode.CATALOG, fixed_now, fallback_name="Coca-Cola"
        )

        assert record.product_name == "Coke Zero"

    def test_unknown_product_default(
        self, analysis_result: AnalysisResult, fixed_now: datetime
    ) -> None:
        record = NewScanRecord.from_analysis(
            "user_123", analysis_result, AnalysisMode.VISION, fixed_now
        )

        assert record.product_name == UNKNOWN_PRODUCT
        assert record.barcode is None

    def test_scan_record_identity_and_summary(
        self, make_scan_record: Callable[..., ScanRecord]
    ) -> None:
        record = make_scan_record(product_name="Nutella", nutri_score=NutriScore.E)

        assert record.scan_id.value.startswith("scan_")
        assert record.summary() == "Nutella: NutriScore E"

    def test_from_new_keeps_fields(self, analysis_result: AnalysisResult, fixed_now: datetime) -> None:
        new_record = NewScanRecord.from_analysis(
            "user_123", analysis_result, AnalysisMode.VISION, fixed_now, image_ref="img/1.jpg"
        )

        record = ScanRecord.from_new(ScanId.from_string("scan_000000000001"), new_record)

        assert record.image_ref == "img/1.jpg"
        assert record.analysis_points == new_record.analysis_points


class TestAnalysisOutcome:
    """Test success and failure exclusivity."""

    def test_success(self, make_scan_record: Callable[..., ScanRecord]) -> None:
        outcome = AnalysisOutcome.success(make_scan_record())

        assert outcome.succeeded
        assert outcome.failure_reason is None
        assert outcome.error_message is None

    def test_failure(self) -> None:
        outcome = AnalysisOutcome.failed(AnalysisFailedError(FailureReason.TRANSPORT, "timeout"))

        assert not outcome.succeeded
        assert outcome.record is None
        assert outcome.failure_reason == FailureReason.TRANSPORT
        assert outcome.error_message == "timeout"

    def test_both_rejected(self, make_scan_record: Callable[..., ScanRecord]) -> None:
        with pytest.raises(ValidationError):
            AnalysisOutcome(
                record=make_scan_record(),
                failure_reason=FailureReason.PARSE,
                error_message="bad",
            )

    def test_neither_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AnalysisOutcome()
