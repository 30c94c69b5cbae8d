"""Tests for API dependencies."""

import pytest
from fastapi import HTTPException

from box_calibration.api.dependencies import (
    clear_dependency_caches,
    get_calibration_service,
    verify_api_key,
)
from box_calibration.core.settings import reload_settings
from box_calibration.services.calibration_service import CalibrationService


class TestGetCalibrationService:
    """Tests for get_calibration_service function."""

    def test_returns_calibration_service(self) -> None:
        """
        Test that get_calibration_service returns CalibrationService.

        """
        service = get_calibration_service()
        assert isinstance(service, CalibrationService)
        assert service.settings.calibration.max_sessions == 64

    def test_is_cached(self) -> None:
        """
        Test that get_calibration_service returns cached instance.

        """
        assert get_calibration_service() is get_calibration_service()


class TestClearDependencyCaches:
    """Tests for clear_dependency_caches function."""

    def test_clears_calibration_service_cache(self) -> None:
        """
        Test that clear_dependency_caches clears the service cache.

        """
        service1 = get_calibration_service()
        clear_dependency_caches()
        service2 = get_calibration_service()
        assert service1 is not service2


class TestVerifyApiKey:
    """Tests for verify_api_key function."""

    def test_auth_disabled(self) -> None:
        """
        Test any key passes when no key is configured.

        """
        assert verify_api_key(None) is None

    def test_missing_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """
        Test a missing key is rejected when one is configured.

        """
        monkeypatch.setenv("BOXCAL_API_SERVER__API_KEY", "secret")
        reload_settings()

        with pytest.raises(HTTPException) as exc_info:
            verify_api_key(None)
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "API key required"

    def test_invalid_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """
        Test a wrong key is rejected.

        """
        monkeypatch.setenv("BOXCAL_API_SERVER__API_KEY", "secret")
        reload_settings()

        with pytest.raises(HTTPException) as exc_info:
            verify_api_key("wrong")
        assert exc_info.value.detail == "Invalid API key"

    def test_valid_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """
        Test the configured key is accepted.

        """
        monkeypatch.setenv("BOXCAL_API_SERVER__API_KEY", "secret")
        reload_settings()
        assert verify_api_key("secret") == "secret"
