"""Request and response models."""

from pydantic import BaseModel, ConfigDict, Field

from box_calibration.enums import DecisionSource, Frame, GeometricMode
from box_calibration.models.diagnostics import DiagnosticSnapshot
from box_calibration.models.image import ImageDescriptor, RenderDescriptor
from box_calibration.models.problem import ProblemRecord
from box_calibration.models.rectangle import Rectangle


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Health status")
    version: str = Field(description="Application version")
    opencv_version: str | None = Field(default=None, description="OpenCV version if available")

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {"status": "healthy", "version": "0.3.0", "opencv_version": "4.10.0"}
        },
    )


class CalibrationRequest(BaseModel):
    """Problems returned by the analysis model plus what is known about the image."""

    image_id: str | None = Field(
        default=None, description="Identity of the image decode (derived if omitted)"
    )
    image: ImageDescriptor | None = Field(
        default=None, description="Natural image size, omitted before decode completes"
    )
    render: RenderDescriptor | None = Field(
        default=None, description="Current on-screen image box"
    )
    problems: list[ProblemRecord] = Field(default_factory=list, description="Detected problems")

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "image_id": "page-1",
                "image": {"width": 2000, "height": 1000},
                "render": {"left": 0, "top": 0, "width": 800, "height": 400},
                "problems": [
                    {
                        "id": "q1",
                        "isCorrect": True,
                        "boundingBox": {"ymin": 250, "xmin": 40, "ymax": 262, "xmax": 960},
                    }
                ],
            }
        },
    )


class ProblemOverlay(BaseModel):
    """Calibrated overlay of a single problem."""

    problem_id: str = Field(description="Problem identifier")
    is_correct: bool = Field(description="Whether the student answer is correct")
    canonical: Rectangle = Field(description="Rectangle in the canonical 0-1000 frame")
    pixels: Rectangle | None = Field(
        default=None, description="Rectangle in screen pixels for the current render box"
    )


class CalibrationResponse(BaseModel):
    """Calibration outcome for a problem batch."""

    image_id: str = Field(description="Identity of the image decode")
    frame: Frame = Field(description="Source frame of the raw batch")
    frame_source: DecisionSource = Field(description="Inferred or overridden frame")
    mode: GeometricMode = Field(description="Geometric mode applied")
    mode_source: DecisionSource = Field(description="Inferred or overridden mode")
    selected_problem_id: str | None = Field(
        default=None, description="Problem selected by default"
    )
    overlays: list[ProblemOverlay] = Field(default_factory=list, description="Per-problem overlays")
    diagnostics: DiagnosticSnapshot = Field(description="Diagnostic snapshot")


class LayoutResponse(BaseModel):
    """Pixel overlays after a layout change."""

    image_id: str = Field(description="Identity of the image decode")
    render: RenderDescriptor = Field(description="Render box the overlays were mapped into")
    overlays: list[ProblemOverlay] = Field(default_factory=list, description="Per-problem overlays")


class HitTestRequest(BaseModel):
    """Pointer position in screen pixels."""

    x: float = Field(description="Pointer x")
    y: float = Field(description="Pointer y")

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)


class HitTestResponse(BaseModel):
    """Problem selected by a pointer interaction."""

    image_id: str = Field(description="Identity of the image decode")
    problem_id: str | None = Field(default=None, description="Selected problem, None on a miss")
