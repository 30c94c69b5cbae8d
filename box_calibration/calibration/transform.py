"""Inverse transforms from a producer frame back to the canonical frame."""

from collections.abc import Sequence

from box_calibration.calibration.geometry import clamp_to_frame, order_rectangle
from box_calibration.calibration.letterbox import CANONICAL_SCALE, LetterboxGeometry
from box_calibration.enums import GeometricMode
from box_calibration.models import Rectangle


def invert_rectangle(
    rect: Rectangle,
    mode: GeometricMode,
    geometry: LetterboxGeometry | None,
) -> Rectangle:
    """
    Undo a mode's canonicalizing resize on one rectangle.

    The rectangle is ordered first and the result is ordered and clamped, so
    every input yields an on-canvas rectangle.

    Args:
        rect (Rectangle): Scale-normalized rectangle.
        mode (GeometricMode): Mode the producer reasoned under.
        geometry (LetterboxGeometry | None): Geometry of the natural image.

    Returns:
        Rectangle: Canonical rectangle in [0, 1000].
    """
    ordered = order_rectangle(rect)
    if geometry is not None and mode is not GeometricMode.RAW:
        x_axis, y_axis = geometry.axis_transforms(mode)
        ordered = order_rectangle(
            Rectangle(
                xmin=x_axis.inverse(ordered.xmin),
                xmax=x_axis.inverse(ordered.xmax),
                ymin=y_axis.inverse(ordered.ymin),
                ymax=y_axis.inverse(ordered.ymax),
            )
        )
    return clamp_to_frame(ordered, CANONICAL_SCALE)


def forward_rectangle(
    rect: Rectangle,
    mode: GeometricMode,
    geometry: LetterboxGeometry | None,
) -> Rectangle:
    """
    Express a canonical rectangle the way a producer under ``mode`` would.

    Args:
        rect (Rectangle): Canonical rectangle.
        mode (GeometricMode): Mode to simulate.
        geometry (LetterboxGeometry | None): Geometry of the natural image.

    Returns:
        Rectangle: Rectangle in the producer's frame (not clamped).
    """
    if geometry is None:
        return rect
    x_axis, y_axis = geometry.axis_transforms(mode)
    return Rectangle(
        xmin=x_axis.forward(rect.xmin),
        xmax=x_axis.forward(rect.xmax),
        ymin=y_axis.forward(rect.ymin),
        ymax=y_axis.forward(rect.ymax),
    )


def apply_inverse(
    rects: Sequence[Rectangle],
    mode: GeometricMode,
    geometry: LetterboxGeometry | None,
) -> list[Rectangle]:
    """
    Map a whole batch to canonical rectangles, one output per input.

    Args:
        rects (Sequence[Rectangle]): Scale-normalized rectangles.
        mode (GeometricMode): Mode the producer reasoned under.
        geometry (LetterboxGeometry | None): Geometry of the natural image.

    Returns:
        list[Rectangle]: Canonical rectangles in input order.
    """
    return [invert_rectangle(rect, mode, geometry) for rect in rects]
