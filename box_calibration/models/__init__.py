"""Data models."""

from box_calibration.models.image import ImageDescriptor, RenderDescriptor
from box_calibration.models.problem import AnalysisResult, ProblemRecord
from box_calibration.models.rectangle import Rectangle
from box_calibration.models.calibration import CalibrationOverrides, CalibrationResult
from box_calibration.models.diagnostics import DiagnosticSnapshot, ExportStatus
from box_calibration.models.responses import (
    CalibrationRequest,
    CalibrationResponse,
    HealthResponse,
    HitTestRequest,
    HitTestResponse,
    LayoutResponse,
    ProblemOverlay,
)

__all__ = [
    "AnalysisResult",
    "CalibrationOverrides",
    "CalibrationRequest",
    "CalibrationResponse",
    "CalibrationResult",
    "DiagnosticSnapshot",
    "ExportStatus",
    "HealthResponse",
    "HitTestRequest",
    "HitTestResponse",
    "ImageDescriptor",
    "LayoutResponse",
    "ProblemOverlay",
    "ProblemRecord",
    "Rectangle",
    "RenderDescriptor",
]
