"""Rectangle ordering, clamping and batch extents."""

from collections.abc import Sequence

from box_calibration.models import Rectangle


def order_rectangle(rect: Rectangle) -> Rectangle:
    """
    Swap coordinates into ascending order (xmin <= xmax, ymin <= ymax).

    Args:
        rect (Rectangle): Possibly inverted rectangle.

    Returns:
        Rectangle: The ordered rectangle.
    """
    xmin, xmax = sorted((rect.xmin, rect.xmax))
    ymin, ymax = sorted((rect.ymin, rect.ymax))
    if (xmin, xmax, ymin, ymax) == rect.coordinates():
        return rect
    return Rectangle(xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax)


def _clamp(value: float, upper: float) -> float:
    return min(max(value, 0.0), upper)


def clamp_to_frame(rect: Rectangle, frame_max: float) -> Rectangle:
    """
    Clamp every coordinate into [0, frame_max].

    Args:
        rect (Rectangle): Rectangle to clamp.
        frame_max (float): Upper bound of the frame.

    Returns:
        Rectangle: The clamped rectangle.
    """
    return Rectangle(
        xmin=_clamp(rect.xmin, frame_max),
        xmax=_clamp(rect.xmax, frame_max),
        ymin=_clamp(rect.ymin, frame_max),
        ymax=_clamp(rect.ymax, frame_max),
    )


def extents(rects: Sequence[Rectangle]) -> Rectangle | None:
    """
    Get the minimal rectangle enclosing a batch.

    Args:
        rects (Sequence[Rectangle]): Rectangles, assumed ordered.

    Returns:
        Rectangle | None: The enclosing rectangle, or None for an empty batch.
    """
    if not rects:
        return None
    return Rectangle(
        xmin=min(r.xmin for r in rects),
        xmax=max(r.xmax for r in rects),
        ymin=min(r.ymin for r in rects),
        ymax=max(r.ymax for r in rects),
    )


def contains(rect: Rectangle, x: float, y: float, slop: float = 0.0) -> bool:
    """
    Check whether a point lies inside a rectangle, edges included.

    Zero-area rectangles still match points on their edge, and ``slop``
    widens the test on every side.

    Args:
        rect (Rectangle): Ordered rectangle.
        x (float): Point x coordinate.
        y (float): Point y coordinate.
        slop (float): Extra tolerance around the rectangle.

    Returns:
        bool: True if the point is inside.
    """
    return (
        rect.xmin - slop <= x <= rect.xmax + slop
        and rect.ymin - slop <= y <= rect.ymax + slop
    )
