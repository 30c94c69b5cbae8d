"""Image and render descriptor models."""

from pydantic import BaseModel, ConfigDict, Field


class ImageDescriptor(BaseModel):
    """Natural pixel size of the decoded source image."""

    width: int = Field(gt=0, description="Natural image width in pixels")
    height: int = Field(gt=0, description="Natural image height in pixels")

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        json_schema_extra={"example": {"width": 3024, "height": 4032}},
    )

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height


class RenderDescriptor(BaseModel):
    """On-screen pixel box the displayed image currently occupies."""

    left: float = Field(default=0.0, description="Left edge of the rendered image")
    top: float = Field(default=0.0, description="Top edge of the rendered image")
    width: float = Field(ge=0.0, description="Rendered width in screen pixels")
    height: float = Field(ge=0.0, description="Rendered height in screen pixels")

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        allow_inf_nan=False,
        json_schema_extra={
            "example": {"left": 0.0, "top": 64.0, "width": 390.0, "height": 520.0}
        },
    )
