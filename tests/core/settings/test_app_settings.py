"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from box_calibration.core.settings import get_settings, reload_settings
from box_calibration.core.settings.app_settings import (
    APIServerSettings,
    AppSettings,
    CalibrationSettings,
    LoggingSettings,
)
from box_calibration.enums import ModeOverride, ScaleOverride


class TestAPIServerSettings:
    """Tests for APIServerSettings."""

    def test_defaults(self) -> None:
        """
        Test default server values.

        """
        settings = APIServerSettings()
        assert settings.host == "127.0.0.1"
        assert settings.port == 8000
        assert settings.cors_allow_origins == []
        assert settings.api_key is None

    def test_invalid_port(self) -> None:
        """
        Test out-of-range ports are rejected.

        """
        with pytest.raises(ValidationError):
            APIServerSettings(port=70000)


class TestCalibrationSettings:
    """Tests for CalibrationSettings."""

    def test_defaults(self) -> None:
        """
        Test default calibration values.

        """
        settings = CalibrationSettings()
        assert settings.scale_override is ScaleOverride.AUTO
        assert settings.mode_override is ModeOverride.AUTO
        assert settings.max_sessions == 64
        assert settings.hit_slop == 4.0
        assert settings.diagnostic_sample_size == 5

    def test_preferences_file_is_stripped(self) -> None:
        """
        Test whitespace around the preferences path is removed.

        """
        settings = CalibrationSettings(preferences_file="  prefs.json  ")
        assert settings.preferences_file == "prefs.json"

    @pytest.mark.parametrize("value", ["", "   "])
    def test_empty_preferences_file(self, value: str) -> None:
        """
        Test an empty preferences path is rejected.

        """
        with pytest.raises(ValidationError):
            CalibrationSettings(preferences_file=value)

    def test_invalid_override(self) -> None:
        """
        Test unknown override names are rejected.

        """
        with pytest.raises(ValidationError):
            CalibrationSettings(mode_override="stretch")

    def test_negative_slop(self) -> None:
        """
        Test a negative hit slop is rejected.

        """
        with pytest.raises(ValidationError):
            CalibrationSettings(hit_slop=-1)


class TestLoggingSettings:
    """Tests for LoggingSettings."""

    def test_defaults(self) -> None:
        """
        Test default logging values.

        """
        settings = LoggingSettings()
        assert settings.log_level == "INFO"
        assert settings.log_file is None
        assert settings.rotate_logs is False


class TestAppSettings:
    """Tests for AppSettings."""

    def test_nested_environment_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """
        Test nested settings are read from prefixed environment variables.

        """
        monkeypatch.setenv("BOXCAL_CALIBRATION__MODE_OVERRIDE", "letterbox")
        monkeypatch.setenv("BOXCAL_CALIBRATION__HIT_SLOP", "8")
        monkeypatch.setenv("BOXCAL_API_SERVER__PORT", "9001")

        settings = AppSettings()

        assert settings.calibration.mode_override is ModeOverride.LETTERBOX
        assert settings.calibration.hit_slop == 8.0
        assert settings.api_server.port == 9001

    def test_get_settings_is_cached(self) -> None:
        """
        Test get_settings returns the same instance until reloaded.

        """
        first = get_settings()
        assert get_settings() is first
        assert reload_settings() is not first
