"""Canonicalizing-resize geometry for a given natural image size.

All three square canonicalizations share the same 0-1000 span:

* letterbox / fitMax scale the longer side to the span (letterbox then pads the
  shorter axis symmetrically, fitMax leaves it flush to the origin);
* cover scales the shorter side to the span and center-crops the longer one.

Each mode is expressed as a pair of per-axis affine maps from the canonical
frame into the frame the producer reasoned in.
"""

import math
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from box_calibration.enums import GeometricMode

CANONICAL_SCALE = 1000.0


@dataclass(frozen=True)
class AxisTransform:
    """Affine map ``producer = canonical * factor + offset`` along one axis."""

    factor: float
    offset: float

    def forward(self, value: float) -> float:
        """Map a canonical coordinate into the producer frame."""
        return value * self.factor + self.offset

    def inverse(self, value: float) -> float:
        """Map a producer-frame coordinate back to the canonical frame."""
        return (value - self.offset) / self.factor


IDENTITY = AxisTransform(factor=1.0, offset=0.0)


class LetterboxGeometry(BaseModel):
    """Resize geometry of one image against the canonical square."""

    width: int = Field(description="Natural image width")
    height: int = Field(description="Natural image height")
    scale: float = Field(description="Longer-side scale factor (1000 / max side)")
    scaled_width: float = Field(description="Image width after longer-side scaling")
    scaled_height: float = Field(description="Image height after longer-side scaling")
    pad_x: float = Field(description="Horizontal letterbox padding")
    pad_y: float = Field(description="Vertical letterbox padding")
    cover_scale: float = Field(description="Shorter-side scale factor (1000 / min side)")
    cover_width: float = Field(description="Image width after shorter-side scaling")
    cover_height: float = Field(description="Image height after shorter-side scaling")
    crop_x: float = Field(description="Horizontal center-crop offset")
    crop_y: float = Field(description="Vertical center-crop offset")

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    def axis_transforms(self, mode: GeometricMode) -> tuple[AxisTransform, AxisTransform]:
        """
        Get the forward per-axis maps for a mode.

        Args:
            mode (GeometricMode): The canonicalizing resize.

        Returns:
            tuple[AxisTransform, AxisTransform]: (x transform, y transform).
        """
        if mode is GeometricMode.LETTERBOX:
            return (
                AxisTransform(self.scaled_width / CANONICAL_SCALE, self.pad_x),
                AxisTransform(self.scaled_height / CANONICAL_SCALE, self.pad_y),
            )
        if mode is GeometricMode.FIT_MAX:
            return (
                AxisTransform(self.scaled_width / CANONICAL_SCALE, 0.0),
                AxisTransform(self.scaled_height / CANONICAL_SCALE, 0.0),
            )
        if mode is GeometricMode.COVER:
            return (
                AxisTransform(self.cover_width / CANONICAL_SCALE, -self.crop_x),
                AxisTransform(self.cover_height / CANONICAL_SCALE, -self.crop_y),
            )
        return IDENTITY, IDENTITY


def letterbox_geometry(width: float | None, height: float | None) -> LetterboxGeometry | None:
    """
    Compute the canonicalizing-resize geometry for an image size.

    Args:
        width (float | None): Natural image width.
        height (float | None): Natural image height.

    Returns:
        LetterboxGeometry | None: The geometry, or None if the size is unusable.
    """
    if width is None or height is None:
        return None
    if not (math.isfinite(width) and math.isfinite(height)) or width <= 0 or height <= 0:
        return None

    scale = CANONICAL_SCALE / max(width, height)
    scaled_width = width * scale
    scaled_height = height * scale

    cover_scale = CANONICAL_SCALE / min(width, height)
    cover_width = width * cover_scale
    cover_height = height * cover_scale

    return LetterboxGeometry(
        width=int(width),
        height=int(height),
        scale=scale,
        scaled_width=scaled_width,
        scaled_height=scaled_height,
        pad_x=(CANONICAL_SCALE - scaled_width) / 2,
        pad_y=(CANONICAL_SCALE - scaled_height) / 2,
        cover_scale=cover_scale,
        cover_width=cover_width,
        cover_height=cover_height,
        crop_x=(cover_width - CANONICAL_SCALE) / 2,
        crop_y=(cover_height - CANONICAL_SCALE) / 2,
    )
