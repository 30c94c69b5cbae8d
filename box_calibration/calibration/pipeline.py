"""Scale -> mode -> transform composition."""

import logging
from collections.abc import Sequence

from box_calibration.calibration.geometry import extents, order_rectangle
from box_calibration.calibration.letterbox import letterbox_geometry
from box_calibration.calibration.mode import ModeEvidence, classify_mode
from box_calibration.calibration.scale import classify_scale
from box_calibration.calibration.transform import apply_inverse
from box_calibration.models import (
    CalibrationOverrides,
    CalibrationResult,
    ImageDescriptor,
    Rectangle,
)

logger = logging.getLogger(__name__)


def calibrate(
    rects: Sequence[Rectangle],
    image: ImageDescriptor | None = None,
    overrides: CalibrationOverrides | None = None,
) -> CalibrationResult:
    """
    Map raw model rectangles onto the canonical frame of the natural image.

    Pure and resolution independent: depends only on the rectangles, the
    natural image size and the overrides.

    Args:
        rects (Sequence[Rectangle]): Raw rectangles in an unknown convention.
        image (ImageDescriptor | None): Natural image size, None before decode.
        overrides (CalibrationOverrides | None): Effective operator overrides.

    Returns:
        CalibrationResult: Canonical rectangles and the decisions behind them.
    """
    overrides = overrides or CalibrationOverrides()

    scale = classify_scale(rects, image=image, override=overrides.scale)
    normalized = [order_rectangle(r) for r in scale.rectangles]
    geometry = letterbox_geometry(image.width, image.height) if image is not None else None
    batch_extents = extents(normalized)

    decision = classify_mode(
        ModeEvidence(
            frame=scale.frame,
            extents=batch_extents,
            geometry=geometry,
            count=len(normalized),
            scale_fallback=scale.fallback,
        ),
        override=overrides.mode,
    )

    logger.debug(
        f"Calibrated {len(rects)} rectangles: frame={scale.frame} ({scale.source}) "
        f"mode={decision.mode} ({decision.source}, rule={decision.rule})"
    )

    return CalibrationResult(
        frame=scale.frame,
        frame_source=scale.source,
        scale_fallback=scale.fallback,
        mode=decision.mode,
        mode_source=decision.source,
        mode_rule=decision.rule,
        image=image,
        geometry=geometry,
        extents=batch_extents,
        rectangles=apply_inverse(normalized, decision.mode, geometry),
    )
