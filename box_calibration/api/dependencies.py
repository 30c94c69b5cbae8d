"""Dependency injection providers."""

from functools import lru_cache

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from box_calibration.core.settings import get_settings
from box_calibration.services.calibration_service import CalibrationService

# API key header scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


@lru_cache
def get_calibration_service() -> CalibrationService:
    """
    Get cached calibration service singleton.

    Returns:
        CalibrationService: The calibration service instance.
    """
    return CalibrationService(get_settings())


def verify_api_key(api_key: str | None = Security(api_key_header)) -> str | None:
    """
    Verify API key from request header.

    Args:
        api_key: API key from X-API-Key header.

    Returns:
        str | None: The validated API key, or None if auth is disabled.

    Raises:
        HTTPException: 401 if API key is required but missing/invalid.
    """
    configured_key = get_settings().api_server.api_key
    if configured_key is None:
        return None

    if api_key is None:
        raise HTTPException(
            status_code=401,
            detail="API key required",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if api_key != configured_key:
        raise HTTPException(
            status_code=401,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


def clear_dependency_caches() -> None:
    """Clear all dependency caches."""
    get_calibration_service.cache_clear()
