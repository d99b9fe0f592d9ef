"""Tests for structured logging setup."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import structlog

from cloudlink.logging_config import get_logger, setup_logging


class TestLoggingConfig:
    """Tests for setup_logging and get_logger."""

    def teardown_method(self) -> None:
        structlog.reset_defaults()

    def test_production_renders_json(self, capsys) -> None:
        """Production logs are one JSON object per event."""
        settings = MagicMock(cloudlink_log_level="INFO", is_production=True)
        with patch("cloudlink.logging_config.get_settings", return_value=settings):
            setup_logging()
        get_logger("test").info("credentials_loaded", account_name="a_b")

        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["event"] == "credentials_loaded"
        assert record["account_name"] == "a_b"
        assert record["level"] == "info"

    def test_level_filters_events(self, capsys) -> None:
        """Events below the configured level are dropped."""
        settings = MagicMock(cloudlink_log_level="WARNING", is_production=True)
        with patch("cloudlink.logging_config.get_settings", return_value=settings):
            setup_logging()
        get_logger("test").info("endpoint_resolved")
        assert "endpoint_resolved" not in capsys.readouterr().out
