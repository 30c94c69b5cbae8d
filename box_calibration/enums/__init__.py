"""Enumerations."""

from box_calibration.enums.frame import Frame, ScaleOverride
from box_calibration.enums.mode import GeometricMode, ModeOverride
from box_calibration.enums.source import DecisionSource

__all__ = [
    "DecisionSource",
    "Frame",
    "GeometricMode",
    "ModeOverride",
    "ScaleOverride",
]
