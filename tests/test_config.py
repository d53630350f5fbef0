"""Tests for environment-driven settings, errors and logger setup."""

import logging
from pathlib import Path

import pytest

from delivery_rate.config import EngineSettings
from delivery_rate.errors import ConfigError, DataError, DeliveryRateError, SchemaValidationError
from delivery_rate.ingestion import (
    extract_count_value,
    extract_multi_select_values,
    extract_text_value,
    extract_user_name,
    snapshot_from_fields,
)
from delivery_rate.logger import setup_logger


class TestEngineSettings:
    def test_defaults(self):
        settings = EngineSettings.from_env({})
        assert settings == EngineSettings()
        assert settings.materiality_days == 7
        assert settings.lead_time_days == 30
        assert settings.drilldown_limit == 200

    def test_overrides(self, tmp_path):
        settings = EngineSettings.from_env(
            {
                "DELIVERY_RATE_MATERIALITY_DAYS": "10",
                "DELIVERY_RATE_FISCAL_START_MONTH": "4",
                "DELIVERY_RATE_LOG_LEVEL": "debug",
                "DELIVERY_RATE_OUTPUT_DIR": str(tmp_path),
            }
        )
        assert settings.materiality_days == 10
        assert settings.fiscal_start_month == 4
        assert settings.log_level == "DEBUG"
        assert settings.output_dir == Path(tmp_path)

    def test_blank_value_uses_default(self):
        assert EngineSettings.from_env({"DELIVERY_RATE_LEAD_TIME_DAYS": " "}).lead_time_days == 30

    @pytest.mark.parametrize(
        "env",
        [
            {"DELIVERY_RATE_MATERIALITY_DAYS": "abc"},
            {"DELIVERY_RATE_FISCAL_START_MONTH": "1"},
            {"DELIVERY_RATE_DRILLDOWN_LIMIT": "-5"},
            {"DELIVERY_RATE_LOG_LEVEL": "verbose"},
        ],
    )
    def test_invalid_values(self, env):
        with pytest.raises(ConfigError) as exc_info:
            EngineSettings.from_env(env)
        assert exc_info.value.code == "CONFIG_ERROR"
        assert exc_info.value.details["setting"] in env


class TestErrors:
    def test_hierarchy_and_message(self):
        error = SchemaValidationError("bad period", field="period")
        assert isinstance(error, DataError)
        assert isinstance(error, DeliveryRateError)
        assert str(error) == "[SCHEMA_INVALID] bad period"
        assert error.details == {"field": "period"}


class TestLogger:
    def test_handlers_attached_once(self, tmp_path):
        logger = setup_logger("delivery_rate.tests.once", log_to_file=True, log_dir=tmp_path)
        again = setup_logger("delivery_rate.tests.once")
        assert logger is again
        assert len(logger.handlers) == 2
        assert any(isinstance(handler, logging.FileHandler) for handler in logger.handlers)
        assert list(tmp_path.glob("*_delivery_rate.log"))
        for handler in logger.handlers:
            handler.close()


class TestFieldExtraction:
    def test_text_value(self):
        assert extract_text_value([{"text": " 施主要望 ", "type": "text"}]) == "施主要望"
        assert extract_text_value({"name": "確定"}) == "確定"
        assert extract_text_value(None) == ""
        assert extract_text_value(42) == "42"

    def test_user_name(self):
        assert extract_user_name([{"id": "ou_1", "name": "北原裕二"}]) == "北原裕二"
        assert extract_user_name([]) == ""

    def test_multi_select(self):
        assert extract_multi_select_values(["福岡営業所", "", None]) == ["福岡営業所"]
        assert extract_multi_select_values("本社") == ["本社"]

    def test_count_value(self):
        assert extract_count_value("12") == 12
        assert extract_count_value("1,234") == 1234
        assert extract_count_value("12.0") == 12
        assert extract_count_value([{"value": 3}]) == 3
        assert extract_count_value("n/a") == 0
        assert extract_count_value(None) == 0

    def test_snapshot_count_with_separator(self):
        entry = snapshot_from_fields({"年月": "2024/12", "担当者": "北原裕二", "受注残件数": "1,234"})
        assert entry.fiscal_year_month == "202412"
        assert entry.open_order_count == 1234
