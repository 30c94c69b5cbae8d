"""Business logic services."""

from box_calibration.services.calibration_service import (
    CalibrationService,
    CalibrationSession,
    SessionNotFoundError,
)
from box_calibration.services.preference_service import PreferenceService
from box_calibration.services.result_parser import (
    ResultParseError,
    extract_json,
    parse_analysis_result,
)

__all__ = [
    "CalibrationService",
    "CalibrationSession",
    "PreferenceService",
    "ResultParseError",
    "SessionNotFoundError",
    "extract_json",
    "parse_analysis_result",
]
