"""Scale classifier: infers the numeric convention of a rectangle batch."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from box_calibration.calibration.letterbox import CANONICAL_SCALE
from box_calibration.enums import DecisionSource, Frame, ScaleOverride
from box_calibration.models import ImageDescriptor, Rectangle

logger = logging.getLogger(__name__)

UNIT_RANGE = (-0.1, 1.5)
PERCENT_RANGE = (-1.0, 100.5)
NORMALIZED_RANGE = (-50.0, 1200.0)

# Pixel interpretation
PIXEL_TOLERANCE = 50.0
PIXEL_MARGIN = 1.2

# Guard against reading already-normalized boxes as pixels on large images
LARGE_IMAGE_FACTOR = 1.5
GUARD_MIN_RECTANGLES = 3
GUARD_MAX_NORMALIZED_Y = 450.0
GUARD_MIN_NORMALIZED_X = 550.0


@dataclass(frozen=True)
class ScaleClassification:
    """Outcome of scale classification.

    Attributes:
        frame: Source frame of the batch.
        rectangles: Batch rescaled into the 0-1000 frame (passthrough for unknown).
        source: Whether the frame was inferred or forced by an override.
        fallback: True when a pixel reading was demoted to normalized-1000.
    """

    frame: Frame
    rectangles: list[Rectangle] = field(default_factory=list)
    source: DecisionSource = DecisionSource.INFERRED
    fallback: bool = False


def _as_array(rects: Sequence[Rectangle]) -> np.ndarray:
    """Stack rectangles into an (n, 4) array of xmin, xmax, ymin, ymax."""
    return np.array([r.coordinates() for r in rects], dtype=float).reshape(-1, 4)


def _from_array(coords: np.ndarray) -> list[Rectangle]:
    return [
        Rectangle(xmin=float(row[0]), xmax=float(row[1]), ymin=float(row[2]), ymax=float(row[3]))
        for row in coords
    ]


def _within(coords: np.ndarray, bounds: tuple[float, float]) -> bool:
    low, high = bounds
    return bool(np.all((coords >= low) & (coords <= high)))


def _rescale(coords: np.ndarray, x_factor: float, y_factor: float) -> list[Rectangle]:
    factors = np.array([x_factor, x_factor, y_factor, y_factor])
    return _from_array(coords * factors)


def _pixel_to_normalized(coords: np.ndarray, image: ImageDescriptor) -> list[Rectangle]:
    return _rescale(coords, CANONICAL_SCALE / image.width, CANONICAL_SCALE / image.height)


def apply_frame(
    rects: Sequence[Rectangle],
    frame: Frame,
    image: ImageDescriptor | None,
) -> list[Rectangle]:
    """
    Rescale a batch from a known frame into the 0-1000 frame.

    Args:
        rects (Sequence[Rectangle]): Raw rectangles.
        frame (Frame): Frame the rectangles are expressed in.
        image (ImageDescriptor | None): Natural image size, needed for pixels.

    Returns:
        list[Rectangle]: Scale-normalized rectangles.
    """
    coords = _as_array(rects)
    if frame is Frame.UNIT:
        return _rescale(coords, CANONICAL_SCALE, CANONICAL_SCALE)
    if frame is Frame.PERCENT:
        return _rescale(coords, CANONICAL_SCALE / 100, CANONICAL_SCALE / 100)
    if frame is Frame.PIXEL:
        if image is None:
            logger.warning("Pixel frame requested without image size; passing through")
            return list(rects)
        return _pixel_to_normalized(coords, image)
    return list(rects)


def _looks_flattened(normalized: list[Rectangle]) -> bool:
    max_x = max(r.xmax for r in normalized)
    max_y = max(r.ymax for r in normalized)
    return max_y < GUARD_MAX_NORMALIZED_Y and max_x > GUARD_MIN_NORMALIZED_X


def classify_scale(
    rects: Sequence[Rectangle],
    image: ImageDescriptor | None = None,
    override: ScaleOverride = ScaleOverride.AUTO,
) -> ScaleClassification:
    """
    Infer the frame of a rectangle batch and normalize it to 0-1000.

    Rules are evaluated in order and the first match wins; a non-auto
    override always wins outright.

    Args:
        rects (Sequence[Rectangle]): Raw rectangles, one convention per batch.
        image (ImageDescriptor | None): Natural image size if already decoded.
        override (ScaleOverride): Operator override.

    Returns:
        ScaleClassification: Frame and scale-normalized rectangles.
    """
    forced = override.to_frame()
    if forced is not None:
        return ScaleClassification(
            frame=forced,
            rectangles=apply_frame(rects, forced, image),
            source=DecisionSource.OVERRIDE,
        )

    if not rects:
        return ScaleClassification(frame=Frame.UNKNOWN)

    coords = _as_array(rects)

    if _within(coords, UNIT_RANGE):
        return ScaleClassification(frame=Frame.UNIT, rectangles=apply_frame(rects, Frame.UNIT, image))

    if _within(coords, PERCENT_RANGE):
        return ScaleClassification(
            frame=Frame.PERCENT, rectangles=apply_frame(rects, Frame.PERCENT, image)
        )

    if image is not None:
        max_x = float(coords[:, :2].max())
        max_y = float(coords[:, 2:].max())
        fits_image = (
            max_x <= image.width + PIXEL_TOLERANCE and max_y <= image.height + PIXEL_TOLERANCE
        )
        exceeds_normalized = max(max_x, max_y) > CANONICAL_SCALE * PIXEL_MARGIN
        if fits_image and exceeds_normalized:
            normalized = _pixel_to_normalized(coords, image)
            large_image = max(image.width, image.height) > CANONICAL_SCALE * LARGE_IMAGE_FACTOR
            if (
                large_image
                and len(rects) >= GUARD_MIN_RECTANGLES
                and _looks_flattened(normalized)
            ):
                logger.debug(
                    f"Pixel reading of {len(rects)} rectangles looks flattened on "
                    f"{image.width}x{image.height} image; keeping normalized-1000"
                )
                return ScaleClassification(
                    frame=Frame.NORMALIZED_1000, rectangles=list(rects), fallback=True
                )
            return ScaleClassification(frame=Frame.PIXEL, rectangles=normalized)

    if _within(coords, NORMALIZED_RANGE):
        return ScaleClassification(frame=Frame.NORMALIZED_1000, rectangles=list(rects))

    logger.warning(f"Could not infer frame for {len(rects)} rectangles; passing through")
    return ScaleClassification(frame=Frame.UNKNOWN, rectangles=list(rects))
