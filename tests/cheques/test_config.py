"""Tests for PDCConfig (pdc_modules/cheques/config.py)."""

from datetime import timezone
from zoneinfo import ZoneInfo

import pytest

from pdc_modules.cheques.config import (
    DEFAULT_DUE_WINDOW_DAYS,
    HOLDER_NAME_NOT_CONFIGURED,
    MAX_BULK_PDCS,
    PDCConfig,
)


class TestDefaults:

    def test_standard_values(self):
        config = PDCConfig.with_defaults()
        assert config.due_window_days == DEFAULT_DUE_WINDOW_DAYS == 7
        assert config.max_bulk_entries == MAX_BULK_PDCS == 24
        assert config.bounce_lookback_days == 30
        assert config.recent_deposit_lookback_days == 30
        assert config.dashboard_list_size == 10
        assert config.currency_code == "AED"
        assert config.holder_name_fallback == HOLDER_NAME_NOT_CONFIGURED
        assert config.business_timezone == "UTC"
        assert config.business_tzinfo() == timezone.utc

    def test_initialization_logged(self, captured_logs):
        PDCConfig(due_window_days=5)
        record = next(r for r in captured_logs() if r["message"] == "pdc_config_initialized")
        assert record["due_window_days"] == 5


class TestValidation:

    @pytest.mark.parametrize("kwargs", [
        {"due_window_days": -1},
        {"max_bulk_entries": 0},
        {"bounce_lookback_days": 0},
        {"recent_deposit_lookback_days": 0},
        {"dashboard_list_size": 0},
        {"currency_code": "DIRHAM"},
        {"holder_name_fallback": ""},
        {"business_timezone": "Mars/Olympus_Mons"},
        {"business_timezone": ""},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            PDCConfig(**kwargs)

    def test_zero_window_allowed(self):
        assert PDCConfig(due_window_days=0).due_window_days == 0

    def test_business_timezone_resolved(self):
        config = PDCConfig(business_timezone="Asia/Dubai")
        assert config.business_tzinfo() == ZoneInfo("Asia/Dubai")


class TestFromDict:

    def test_overrides_subset(self):
        config = PDCConfig.from_dict({"due_window_days": 3, "currency_code": "USD"})
        assert config.due_window_days == 3
        assert config.currency_code == "USD"
        assert config.max_bulk_entries == 24

    def test_unknown_key_rejected(self):
        with pytest.raises(TypeError):
            PDCConfig.from_dict({"due_window": 3})
