"""Tests for the mode classifier rules."""

from box_calibration.calibration.geometry import extents
from box_calibration.calibration.letterbox import letterbox_geometry
from box_calibration.calibration.mode import (
    DEFAULT_RULE,
    ModeEvidence,
    classify_mode,
    has_cover_evidence,
    has_fit_max_evidence,
    has_letterbox_evidence,
)
from box_calibration.enums import DecisionSource, Frame, GeometricMode, ModeOverride
from box_calibration.models import Rectangle


def rect(xmin: float, xmax: float, ymin: float, ymax: float) -> Rectangle:
    return Rectangle(xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax)


def evidence(
    boxes: list[Rectangle],
    width: int | None = 2000,
    height: int | None = 1000,
    frame: Frame = Frame.NORMALIZED_1000,
    scale_fallback: bool = False,
) -> ModeEvidence:
    geometry = letterbox_geometry(width, height) if width and height else None
    return ModeEvidence(
        frame=frame,
        extents=extents(boxes),
        geometry=geometry,
        count=len(boxes),
        scale_fallback=scale_fallback,
    )


LETTERBOX_BATCH = [rect(40, 960, 250, 262), rect(40, 960, 738, 750)]
FIT_MAX_BATCH = [rect(40, 960, 0, 12), rect(40, 960, 488, 500)]


class TestClassifyMode:
    """Tests for classify_mode function."""

    def test_letterbox_batch(self) -> None:
        """
        Test boxes hugging the padded band of a 2:1 image are letterbox.

        """
        decision = classify_mode(evidence(LETTERBOX_BATCH))
        assert decision.mode is GeometricMode.LETTERBOX
        assert decision.rule == "letterbox"
        assert decision.source is DecisionSource.INFERRED

    def test_fit_max_batch(self) -> None:
        """
        Test boxes flush to the 500-tall scaled region are fitMax.

        """
        decision = classify_mode(evidence(FIT_MAX_BATCH))
        assert decision.mode is GeometricMode.FIT_MAX
        assert decision.rule == "fit-max"

    def test_tall_image_letterbox(self) -> None:
        """
        Test horizontal padding is detected on a tall image.

        """
        boxes = [rect(250, 400, 30, 300), rect(600, 750, 500, 980)]
        decision = classify_mode(evidence(boxes, width=1000, height=2000))
        assert decision.mode is GeometricMode.LETTERBOX

    def test_pixel_frame_is_raw(self) -> None:
        """
        Test pixel boxes are never reinterpreted.

        """
        decision = classify_mode(evidence(LETTERBOX_BATCH, frame=Frame.PIXEL))
        assert decision.mode is GeometricMode.RAW
        assert decision.rule == "pixel-frame"

    def test_missing_geometry_is_raw(self) -> None:
        """
        Test an unknown image size degrades to raw.

        """
        decision = classify_mode(evidence(LETTERBOX_BATCH, width=None, height=None))
        assert decision.mode is GeometricMode.RAW
        assert decision.rule == "missing-geometry"

    def test_empty_batch_is_raw(self) -> None:
        """
        Test an empty batch is raw.

        """
        decision = classify_mode(evidence([]))
        assert decision.mode is GeometricMode.RAW
        assert decision.rule == "unclassifiable"

    def test_unknown_frame_is_raw(self) -> None:
        """
        Test unknown-frame batches are not reinterpreted.

        """
        decision = classify_mode(evidence(LETTERBOX_BATCH, frame=Frame.UNKNOWN))
        assert decision.mode is GeometricMode.RAW

    def test_spread_batch_defaults_to_raw(self) -> None:
        """
        Test a batch covering the page without a pattern stays raw.

        """
        decision = classify_mode(evidence([rect(20, 980, 30, 950)]))
        assert decision.mode is GeometricMode.RAW
        assert decision.rule == DEFAULT_RULE

    def test_square_image_defaults_to_raw(self) -> None:
        """
        Test square images carry no geometric evidence.

        """
        decision = classify_mode(evidence(FIT_MAX_BATCH, width=1000, height=1000))
        assert decision.mode is GeometricMode.RAW

    def test_cover_from_center_crop_footprint(self) -> None:
        """
        Test full span on the short axis and one-sided crop on the long axis.

        """
        decision = classify_mode(evidence([rect(0, 300, 10, 500), rect(200, 700, 480, 990)]))
        assert decision.mode is GeometricMode.COVER
        assert decision.rule == "cover"

    def test_cover_from_scale_fallback(self) -> None:
        """
        Test an elongated image with a guarded normalized frame reads as cover.

        """
        boxes = [rect(100, 3000, 100, 400), rect(200, 2500, 500, 900), rect(300, 2000, 1000, 1300)]
        decision = classify_mode(evidence(boxes, width=4000, height=3000, scale_fallback=True))
        assert decision.mode is GeometricMode.COVER

    def test_near_square_fallback_is_not_cover(self) -> None:
        """
        Test cover needs a clearly elongated image.

        """
        boxes = [rect(100, 900, 100, 400), rect(200, 800, 500, 900), rect(300, 700, 100, 1000)]
        decision = classify_mode(evidence(boxes, width=1100, height=1000, scale_fallback=True))
        assert decision.mode is GeometricMode.RAW

    def test_override_short_circuits(self) -> None:
        """
        Test an explicit mode wins over every rule.

        """
        decision = classify_mode(
            evidence(LETTERBOX_BATCH, frame=Frame.PIXEL), override=ModeOverride.COVER
        )
        assert decision.mode is GeometricMode.COVER
        assert decision.source is DecisionSource.OVERRIDE
        assert decision.rule == "override"


class TestModeRules:
    """Tests for individual mode rule predicates."""

    def test_fit_max_rejects_centered_content(self) -> None:
        """
        Test centered content is not fitMax evidence.

        """
        assert has_fit_max_evidence(evidence(LETTERBOX_BATCH)) is False
        assert has_fit_max_evidence(evidence(FIT_MAX_BATCH)) is True

    def test_letterbox_rejects_origin_flush_content(self) -> None:
        """
        Test content flush to the origin is not letterbox evidence.

        """
        assert has_letterbox_evidence(evidence(FIT_MAX_BATCH)) is False
        assert has_letterbox_evidence(evidence(LETTERBOX_BATCH)) is True

    def test_letterbox_rejects_content_outside_band(self) -> None:
        """
        Test content spilling beyond the band is not letterbox evidence.

        """
        boxes = [rect(40, 960, 250, 262), rect(40, 960, 880, 900)]
        assert has_letterbox_evidence(evidence(boxes)) is False

    def test_cover_rejects_content_flush_to_both_edges(self) -> None:
        """
        Test a two-sided footprint on the long axis is not a center crop.

        """
        boxes = [rect(0, 300, 10, 500), rect(700, 1000, 480, 990)]
        assert has_cover_evidence(evidence(boxes)) is False

    def test_rules_without_geometry(self) -> None:
        """
        Test evidence rules are false without geometry.

        """
        ev = evidence(LETTERBOX_BATCH, width=None, height=None)
        assert has_fit_max_evidence(ev) is False
        assert has_letterbox_evidence(ev) is False
        assert has_cover_evidence(ev) is False
