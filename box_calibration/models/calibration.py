"""Calibration configuration and result models."""

from pydantic import BaseModel, ConfigDict, Field

from box_calibration.calibration.letterbox import LetterboxGeometry
from box_calibration.enums import (
    DecisionSource,
    Frame,
    GeometricMode,
    ModeOverride,
    ScaleOverride,
)
from box_calibration.models.image import ImageDescriptor
from box_calibration.models.rectangle import Rectangle


class CalibrationOverrides(BaseModel):
    """Operator overrides for both classifiers ('auto' means infer)."""

    scale: ScaleOverride = Field(default=ScaleOverride.AUTO, description="Scale override")
    mode: ModeOverride = Field(default=ModeOverride.AUTO, description="Mode override")

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        json_schema_extra={"example": {"scale": "auto", "mode": "letterbox"}},
    )


class CalibrationResult(BaseModel):
    """Canonical rectangles plus every decision that produced them."""

    frame: Frame = Field(description="Source frame of the raw batch")
    frame_source: DecisionSource = Field(description="Inferred or overridden frame")
    scale_fallback: bool = Field(
        default=False, description="Pixel reading demoted to normalized-1000"
    )
    mode: GeometricMode = Field(description="Geometric mode applied")
    mode_source: DecisionSource = Field(description="Inferred or overridden mode")
    mode_rule: str = Field(description="Mode rule that fired")
    image: ImageDescriptor | None = Field(default=None, description="Natural image size")
    geometry: LetterboxGeometry | None = Field(default=None, description="Letterbox geometry")
    extents: Rectangle | None = Field(
        default=None, description="Enclosing rectangle of the scale-normalized batch"
    )
    rectangles: list[Rectangle] = Field(
        default_factory=list, description="Canonical rectangles in the 0-1000 frame"
    )

    model_config = ConfigDict(extra="forbid", frozen=True)
