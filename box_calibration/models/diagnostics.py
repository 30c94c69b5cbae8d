"""Diagnostic snapshot models."""

from pydantic import BaseModel, ConfigDict, Field

from box_calibration.enums import DecisionSource, Frame, GeometricMode
from box_calibration.models.image import ImageDescriptor, RenderDescriptor
from box_calibration.models.rectangle import Rectangle


class DiagnosticSnapshot(BaseModel):
    """Everything needed to reproduce a calibration in a bug report."""

    image_id: str = Field(description="Identity of the image decode")
    image: ImageDescriptor | None = Field(default=None, description="Natural image size")
    render: RenderDescriptor | None = Field(default=None, description="Current render box")
    frame: Frame = Field(description="Inferred or overridden frame")
    frame_source: DecisionSource = Field(description="Where the frame came from")
    mode: GeometricMode = Field(description="Inferred or overridden mode")
    mode_source: DecisionSource = Field(description="Where the mode came from")
    mode_rule: str = Field(description="Mode rule that fired")
    extents: Rectangle | None = Field(default=None, description="Enclosing extents")
    sample: list[Rectangle] = Field(default_factory=list, description="First raw rectangles")
    rectangle_count: int = Field(default=0, description="Number of rectangles in the batch")

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "image_id": "3f9a",
                "image": {"width": 2000, "height": 1000},
                "render": {"left": 0, "top": 0, "width": 800, "height": 400},
                "frame": "normalized-1000",
                "frame_source": "inferred",
                "mode": "letterbox",
                "mode_source": "inferred",
                "mode_rule": "letterbox",
                "extents": {"xmin": 40, "xmax": 960, "ymin": 250, "ymax": 750},
                "sample": [{"xmin": 40, "xmax": 960, "ymin": 250, "ymax": 262}],
                "rectangle_count": 2,
            }
        },
    )

    def to_text(self) -> str:
        """
        Render the snapshot as copyable structured text.

        Returns:
            str: Indented JSON.
        """
        return self.model_dump_json(indent=2)


class ExportStatus(BaseModel):
    """Outcome of a diagnostic export."""

    success: bool = Field(description="Whether the export succeeded")
    message: str = Field(default="", description="Transient status text")
