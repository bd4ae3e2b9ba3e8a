"""Unit tests for structlog configuration."""

import json
from typing import Iterator

import pytest
import structlog

from foodlens.infrastructure.logging import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_json_lines(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(level="INFO", json_logs=True)

        structlog.get_logger("test").info("Product found in OFF", barcode="5000112637922")

        line = capsys.readouterr().out.strip()
        event = json.loads(line)
        assert event["event"] == "Product found in OFF"
        assert event["barcode"] == "5000112637922"
        assert event["level"] == "info"
        assert "timestamp" in event

    def test_level_filtering(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(level="warning", json_logs=True)
        logger = structlog.get_logger("test")

        logger.info("hidden")
        logger.warning("shown")

        lines = capsys.readouterr().out.strip().splitlines()
        assert [json.loads(line)["event"] for line in lines] == ["shown"]

    def test_console_renderer(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(level="DEBUG")

        structlog.get_logger("test").debug("Barcode detected", barcode="96385074")

        out = capsys.readouterr().out
        assert "Barcode detected" in out
        assert "96385074" in out

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(level="chatty")
