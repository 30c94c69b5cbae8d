"""Tests for the render mapper."""

from unittest.mock import MagicMock

import pytest

from box_calibration.calibration.render import RenderMapper, StaleImageError, to_pixels
from box_calibration.models import Rectangle, RenderDescriptor


def rect(xmin: float, xmax: float, ymin: float, ymax: float) -> Rectangle:
    return Rectangle(xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax)


RENDER = RenderDescriptor(left=10, top=20, width=800, height=400)


class TestToPixels:
    """Tests for to_pixels function."""

    def test_scales_and_offsets(self) -> None:
        """
        Test canonical coordinates map into the render box.

        """
        result = to_pixels(rect(0, 500, 250, 1000), RENDER)
        assert result.coordinates() == pytest.approx((10, 410, 120, 420))

    def test_zero_size_render(self) -> None:
        """
        Test a collapsed render box collapses every rectangle onto its origin.

        """
        result = to_pixels(rect(0, 500, 250, 1000), RenderDescriptor(left=5, top=6, width=0, height=0))
        assert result.coordinates() == (5, 5, 6, 6)


class TestRenderMapper:
    """Tests for RenderMapper class."""

    @pytest.fixture
    def mapper(self) -> RenderMapper:
        """
        Create a mapper bound to two overlapping rectangles.

        Returns:
            RenderMapper: Bound mapper without a layout.
        """
        mapper = RenderMapper(hit_slop=4.0)
        mapper.bind("img-1", [rect(0, 500, 0, 500), rect(250, 750, 250, 750)])
        return mapper

    def test_no_pixels_before_layout(self, mapper: RenderMapper) -> None:
        """
        Test a bound mapper has no pixel rectangles until laid out.

        """
        assert mapper.render is None
        assert mapper.pixel_rectangles == []

    def test_update_layout(self, mapper: RenderMapper) -> None:
        """
        Test a layout change recomputes the pixel rectangles.

        """
        pixels = mapper.update_layout("img-1", RENDER)
        assert len(pixels) == 2
        assert pixels[1].coordinates() == pytest.approx((210, 610, 120, 320))
        assert mapper.render == RENDER

    def test_listener_notified_on_change_only(self, mapper: RenderMapper) -> None:
        """
        Test listeners fire for new layouts but not for repeated ones.

        """
        listener = MagicMock()
        mapper.subscribe(listener)

        mapper.update_layout("img-1", RENDER)
        mapper.update_layout("img-1", RENDER)

        listener.assert_called_once()
        assert len(listener.call_args.args[0]) == 2

    def test_unsubscribe(self, mapper: RenderMapper) -> None:
        """
        Test an unsubscribed listener is no longer called.

        """
        listener = MagicMock()
        unsubscribe = mapper.subscribe(listener)
        unsubscribe()
        unsubscribe()

        mapper.update_layout("img-1", RENDER)

        listener.assert_not_called()

    def test_rebind_same_image_keeps_layout(self, mapper: RenderMapper) -> None:
        """
        Test rebinding the same image remaps into the known render box.

        """
        mapper.update_layout("img-1", RENDER)
        mapper.bind("img-1", [rect(0, 1000, 0, 1000)])
        assert mapper.pixel_rectangles[0].coordinates() == pytest.approx((10, 810, 20, 420))

    def test_rebind_new_image_resets_layout(self, mapper: RenderMapper) -> None:
        """
        Test binding a new image discards the previous image's layout.

        """
        mapper.update_layout("img-1", RENDER)
        mapper.bind("img-2", [rect(0, 1000, 0, 1000)])
        assert mapper.render is None
        assert mapper.pixel_rectangles == []

    def test_rebind_with_reset_drops_layout(self, mapper: RenderMapper) -> None:
        """
        Test a reset rebind under the same key forgets the render box.

        """
        mapper.update_layout("img-1", RENDER)
        mapper.bind("img-1", [rect(0, 1000, 0, 1000)], reset=True)
        assert mapper.render is None
        assert mapper.pixel_rectangles == []

    def test_stale_layout_rejected(self, mapper: RenderMapper) -> None:
        """
        Test a layout pass for another image raises.

        """
        with pytest.raises(StaleImageError):
            mapper.update_layout("img-2", RENDER)

    def test_unbound_mapper_rejects_everything(self) -> None:
        """
        Test an unbound mapper refuses layout and hit tests.

        """
        mapper = RenderMapper()
        with pytest.raises(StaleImageError):
            mapper.update_layout("img-1", RENDER)
        with pytest.raises(StaleImageError):
            mapper.hit_test("img-1", 0, 0)

    def test_hit_test_prefers_topmost(self, mapper: RenderMapper) -> None:
        """
        Test the last drawn rectangle wins where rectangles overlap.

        """
        mapper.update_layout("img-1", RENDER)
        assert mapper.hit_test("img-1", 300, 150) == 1
        assert mapper.hit_test("img-1", 50, 40) == 0

    def test_hit_test_slop(self, mapper: RenderMapper) -> None:
        """
        Test points just outside a rectangle still hit within the slop.

        """
        mapper.update_layout("img-1", RENDER)
        assert mapper.hit_test("img-1", 613, 150) == 1
        assert mapper.hit_test("img-1", 620, 150) is None

    def test_hit_test_miss(self, mapper: RenderMapper) -> None:
        """
        Test a point outside every rectangle selects nothing.

        """
        mapper.update_layout("img-1", RENDER)
        assert mapper.hit_test("img-1", 790, 400) is None

    def test_hit_test_before_layout(self, mapper: RenderMapper) -> None:
        """
        Test hit tests miss until a layout is known.

        """
        assert mapper.hit_test("img-1", 50, 40) is None

    def test_stale_hit_test_rejected(self, mapper: RenderMapper) -> None:
        """
        Test a pointer query for another image raises.

        """
        with pytest.raises(StaleImageError):
            mapper.hit_test("other", 50, 40)
