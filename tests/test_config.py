"""Tests for configuration module."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from oncall.config import Settings, load_settings
from oncall.models import CompensationPolicy


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self):
        """Test that default values are set correctly."""
        settings = Settings(_env_file=None)

        assert settings.pagerduty_api_url == "https://api.pagerduty.com"
        assert settings.pagerduty_time_zone == "MST"
        assert settings.page_size == 50
        assert settings.request_timeout == 30.0
        assert settings.output_dir == "./output"
        assert settings.lookback_days == 7
        assert settings.timezone == "MST"
        assert settings.business_hours_start == 9
        assert settings.business_hours_end == 17
        assert settings.late_night_start == 22
        assert settings.late_night_end == 4
        assert settings.log_level == "INFO"
        assert settings.log_format == "text"

    def test_env_override(self):
        """Test settings are read from the environment."""
        env = {"PAGE_SIZE": "25", "OUTPUT_DIR": "/srv/reports", "LOOKBACK_DAYS": "14"}
        with patch.dict(os.environ, env):
            settings = Settings(_env_file=None)

        assert settings.page_size == 25
        assert settings.output_dir == "/srv/reports"
        assert settings.lookback_days == 14

    def test_api_url_trailing_slash_removed(self):
        settings = Settings(_env_file=None, pagerduty_api_url="https://api.eu.pagerduty.com/")
        assert settings.pagerduty_api_url == "https://api.eu.pagerduty.com"

    def test_invalid_timezone(self):
        with pytest.raises(ValidationError, match="Invalid timezone"):
            Settings(_env_file=None, timezone="Mars/Olympus_Mons")

    @pytest.mark.parametrize("page_size", [0, 101])
    def test_page_size_bounds(self, page_size):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, page_size=page_size)

    def test_hour_out_of_range(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, late_night_start=24)

    def test_business_window_must_be_ordered(self):
        with pytest.raises(ValidationError, match="business_hours_start"):
            Settings(_env_file=None, business_hours_start=18, business_hours_end=9)

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_format="xml")

    def test_get_pagerduty_config(self):
        settings = Settings(_env_file=None, page_size=20, request_timeout=5.0)

        config = settings.get_pagerduty_config()

        assert config == {
            "api_url": "https://api.pagerduty.com",
            "time_zone": "MST",
            "page_size": 20,
            "timeout": 5.0,
        }

    def test_get_compensation_policy(self):
        settings = Settings(_env_file=None, business_hours_start=8, late_night_end=5)

        policy = settings.get_compensation_policy()

        assert policy == CompensationPolicy(
            timezone="MST",
            business_hours_start=8,
            business_hours_end=17,
            late_night_start=22,
            late_night_end=5,
        )

    def test_compensation_policy_is_immutable(self):
        policy = Settings(_env_file=None).get_compensation_policy()

        with pytest.raises(AttributeError):
            policy.business_hours_start = 0


class TestLoadSettings:
    """Tests for load_settings."""

    def test_returns_settings(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "DEBUG"}):
            settings = load_settings()

        assert isinstance(settings, Settings)
        assert settings.log_level == "DEBUG"
