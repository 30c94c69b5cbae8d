"""Mode classifier: picks the canonicalizing resize a batch was produced under.

The decision is an ordered list of rules, each a pure predicate over a small
evidence struct. Rules are evaluated top-down and the first match wins; when
nothing fires the batch is treated as ``raw``.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from box_calibration.calibration.letterbox import CANONICAL_SCALE, LetterboxGeometry
from box_calibration.enums import DecisionSource, Frame, GeometricMode, ModeOverride
from box_calibration.models import Rectangle

logger = logging.getLogger(__name__)

EDGE_MARGIN = 40.0
TRIVIAL_SHRINK = 2.0
WIDE_ASPECT = 1.2
TALL_ASPECT = 0.8


@dataclass(frozen=True)
class ModeEvidence:
    """Spatial statistics the mode rules look at.

    Attributes:
        frame: Frame reported by the scale classifier.
        extents: Enclosing rectangle of the scale-normalized batch.
        geometry: Letterbox geometry of the natural image, if known.
        count: Number of rectangles in the batch.
        scale_fallback: True when the frame came from the pixel/normalized guard.
    """

    frame: Frame
    extents: Rectangle | None
    geometry: LetterboxGeometry | None
    count: int = 0
    scale_fallback: bool = False


@dataclass(frozen=True)
class ModeRule:
    """A named predicate that selects ``mode`` when it holds."""

    name: str
    mode: GeometricMode
    predicate: Callable[[ModeEvidence], bool]


@dataclass(frozen=True)
class ModeDecision:
    """Selected mode with the rule that produced it."""

    mode: GeometricMode
    rule: str
    source: DecisionSource = DecisionSource.INFERRED


def _near(value: float, target: float, margin: float = EDGE_MARGIN) -> bool:
    return abs(value - target) <= margin


def _axis_spans(extents: Rectangle) -> dict[str, tuple[float, float]]:
    return {"x": (extents.xmin, extents.xmax), "y": (extents.ymin, extents.ymax)}


def is_pixel_frame(evidence: ModeEvidence) -> bool:
    """Pixel boxes were already resolved against the natural image size."""
    return evidence.frame is Frame.PIXEL


def is_unclassifiable(evidence: ModeEvidence) -> bool:
    """Nothing to reason about: unknown frame or an empty batch."""
    return evidence.frame is Frame.UNKNOWN or evidence.extents is None or evidence.count == 0


def is_missing_geometry(evidence: ModeEvidence) -> bool:
    """The natural image size is not known yet."""
    return evidence.geometry is None


def has_fit_max_evidence(evidence: ModeEvidence) -> bool:
    """Content is flush to [0, scaled] on every shrunk axis."""
    geometry, extents = evidence.geometry, evidence.extents
    if geometry is None or extents is None:
        return False
    scaled = {"x": geometry.scaled_width, "y": geometry.scaled_height}
    shrunk = [axis for axis, size in scaled.items() if size < CANONICAL_SCALE - TRIVIAL_SHRINK]
    if not shrunk:
        return False
    spans = _axis_spans(extents)
    return all(
        _near(spans[axis][0], 0.0) and _near(spans[axis][1], scaled[axis]) for axis in shrunk
    )


def has_letterbox_evidence(evidence: ModeEvidence) -> bool:
    """Content sits inside the padded band and touches one of its edges."""
    geometry, extents = evidence.geometry, evidence.extents
    if geometry is None or extents is None:
        return False
    pads = {"x": geometry.pad_x, "y": geometry.pad_y}
    padded = [axis for axis, pad in pads.items() if pad > TRIVIAL_SHRINK]
    if not padded:
        return False
    spans = _axis_spans(extents)
    for axis in padded:
        pad = pads[axis]
        low, high = spans[axis]
        inside_band = low >= pad - EDGE_MARGIN and high <= CANONICAL_SCALE - pad + EDGE_MARGIN
        touches_edge = _near(low, pad) or _near(high, CANONICAL_SCALE - pad)
        if not (inside_band and touches_edge):
            return False
    return True


def _is_elongated(geometry: LetterboxGeometry) -> bool:
    return geometry.aspect_ratio >= WIDE_ASPECT or geometry.aspect_ratio <= TALL_ASPECT


def _center_crop_pattern(geometry: LetterboxGeometry, extents: Rectangle) -> bool:
    spans = _axis_spans(extents)
    # The shorter image side is the uncropped axis
    full_axis, cropped_axis = ("y", "x") if geometry.width > geometry.height else ("x", "y")
    full_low, full_high = spans[full_axis]
    if not (_near(full_low, 0.0) and _near(full_high, CANONICAL_SCALE)):
        return False
    low, high = spans[cropped_axis]
    flush_low = _near(low, 0.0)
    flush_high = _near(high, CANONICAL_SCALE)
    return flush_low != flush_high


def has_cover_evidence(evidence: ModeEvidence) -> bool:
    """Elongated image with either a guarded normalized frame or a center-crop footprint."""
    geometry, extents = evidence.geometry, evidence.extents
    if geometry is None or extents is None or not _is_elongated(geometry):
        return False
    if evidence.frame is Frame.NORMALIZED_1000 and evidence.scale_fallback:
        return True
    return _center_crop_pattern(geometry, extents)


MODE_RULES: tuple[ModeRule, ...] = (
    ModeRule("pixel-frame", GeometricMode.RAW, is_pixel_frame),
    ModeRule("unclassifiable", GeometricMode.RAW, is_unclassifiable),
    ModeRule("missing-geometry", GeometricMode.RAW, is_missing_geometry),
    ModeRule("fit-max", GeometricMode.FIT_MAX, has_fit_max_evidence),
    ModeRule("letterbox", GeometricMode.LETTERBOX, has_letterbox_evidence),
    ModeRule("cover", GeometricMode.COVER, has_cover_evidence),
)

DEFAULT_RULE = "default"


def classify_mode(
    evidence: ModeEvidence,
    override: ModeOverride = ModeOverride.AUTO,
    rules: tuple[ModeRule, ...] = MODE_RULES,
) -> ModeDecision:
    """
    Select the geometric mode for a scale-normalized batch.

    Args:
        evidence (ModeEvidence): Batch statistics and image geometry.
        override (ModeOverride): Operator override, wins over every rule.
        rules (tuple[ModeRule, ...]): Ordered rule list.

    Returns:
        ModeDecision: Selected mode and the rule that fired.
    """
    forced = override.to_mode()
    if forced is not None:
        return ModeDecision(mode=forced, rule="override", source=DecisionSource.OVERRIDE)

    for rule in rules:
        if rule.predicate(evidence):
            logger.debug(f"Mode rule '{rule.name}' selected {rule.mode}")
            return ModeDecision(mode=rule.mode, rule=rule.name)

    return ModeDecision(mode=GeometricMode.RAW, rule=DEFAULT_RULE)
