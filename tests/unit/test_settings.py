"""Tests for device_spine.settings."""

import pytest
from pydantic import ValidationError

from device_spine.settings import DeviceSpineSettings, get_settings, reset_settings


class TestSettings:
    def test_defaults(self):
        settings = DeviceSpineSettings(_env_file=None)
        assert settings.database_driver == "postgres"
        assert settings.connect_max_attempts == 20
        assert settings.connect_backoff_unit == 1.0
        assert settings.log_format == "console"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("DEVICE_SPINE_CONNECT_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("DEVICE_SPINE_LOG_LEVEL", "DEBUG")
        settings = DeviceSpineSettings(_env_file=None)
        assert settings.connect_max_attempts == 5
        assert settings.log_level == "DEBUG"

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValidationError):
            DeviceSpineSettings(_env_file=None, connect_max_attempts=0)

    def test_get_settings_is_cached_until_reset(self, monkeypatch):
        first = get_settings()
        assert get_settings() is first
        reset_settings()
        assert get_settings() is not first
