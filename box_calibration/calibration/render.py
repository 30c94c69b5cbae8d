"""Render mapper: canonical rectangles -> on-screen pixel rectangles."""

import logging
from collections.abc import Callable, Sequence

from box_calibration.calibration.geometry import contains
from box_calibration.calibration.letterbox import CANONICAL_SCALE
from box_calibration.models import Rectangle, RenderDescriptor

logger = logging.getLogger(__name__)

LayoutListener = Callable[[list[Rectangle]], None]


class StaleImageError(Exception):
    """Raised when a render pass names an image other than the bound one."""


def to_pixels(rect: Rectangle, render: RenderDescriptor) -> Rectangle:
    """
    Map one canonical rectangle into the rendered image box.

    Args:
        rect (Rectangle): Canonical rectangle in [0, 1000].
        render (RenderDescriptor): Current on-screen image box.

    Returns:
        Rectangle: Rectangle in screen pixels.
    """
    sx = render.width / CANONICAL_SCALE
    sy = render.height / CANONICAL_SCALE
    return Rectangle(
        xmin=render.left + rect.xmin * sx,
        xmax=render.left + rect.xmax * sx,
        ymin=render.top + rect.ymin * sy,
        ymax=render.top + rect.ymax * sy,
    )


class RenderMapper:
    """Tracks the rendered image box and maps the bound canonical batch into it.

    Canonical rectangles are bound per image key. Layout updates and pointer
    queries carrying another key are refused, so a new image decode never
    gets drawn with the previous image's rectangles.
    """

    def __init__(self, hit_slop: float = 0.0) -> None:
        """
        Initialize an unbound mapper.

        Args:
            hit_slop (float): Pointer tolerance in screen pixels.
        """
        self.hit_slop = hit_slop
        self._image_key: str | None = None
        self._canonical: list[Rectangle] = []
        self._render: RenderDescriptor | None = None
        self._pixels: list[Rectangle] = []
        self._listeners: list[LayoutListener] = []

    @property
    def image_key(self) -> str | None:
        """Key of the image decode the canonical batch belongs to."""
        return self._image_key

    @property
    def render(self) -> RenderDescriptor | None:
        """Last known rendered image box."""
        return self._render

    @property
    def pixel_rectangles(self) -> list[Rectangle]:
        """Pixel rectangles for the last layout, in draw order."""
        return list(self._pixels)

    def bind(
        self, image_key: str, canonical: Sequence[Rectangle], reset: bool = False
    ) -> None:
        """
        Bind the canonical batch of an image decode.

        Args:
            image_key (str): Identity of the image decode.
            canonical (Sequence[Rectangle]): Canonical rectangles in draw order.
            reset (bool): Drop the known render box even if the key is unchanged.
        """
        if reset or image_key != self._image_key:
            # Layout of the previous image no longer applies
            self._render = None
        self._image_key = image_key
        self._canonical = list(canonical)
        self._remap()

    def subscribe(self, listener: LayoutListener) -> Callable[[], None]:
        """
        Register a callback invoked with fresh pixel rectangles on every layout change.

        Args:
            listener (LayoutListener): Callback receiving pixel rectangles.

        Returns:
            Callable[[], None]: Function that removes the subscription.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _check_key(self, image_key: str) -> None:
        if self._image_key is None or image_key != self._image_key:
            raise StaleImageError(
                f"Render pass for image {image_key!r} but mapper is bound to {self._image_key!r}"
            )

    def _remap(self) -> None:
        if self._render is None:
            self._pixels = []
            return
        self._pixels = [to_pixels(r, self._render) for r in self._canonical]
        for listener in list(self._listeners):
            listener(self.pixel_rectangles)

    def update_layout(self, image_key: str, render: RenderDescriptor) -> list[Rectangle]:
        """
        Handle a layout/resize notification for the bound image.

        Args:
            image_key (str): Identity of the image being laid out.
            render (RenderDescriptor): New on-screen image box.

        Returns:
            list[Rectangle]: Pixel rectangles for the new layout.

        Raises:
            StaleImageError: If ``image_key`` is not the bound image.
        """
        self._check_key(image_key)
        if render == self._render:
            return self.pixel_rectangles
        self._render = render
        self._remap()
        return self.pixel_rectangles

    def hit_test(self, image_key: str, x: float, y: float) -> int | None:
        """
        Find the topmost rectangle under a pointer.

        Args:
            image_key (str): Identity of the image under the pointer.
            x (float): Pointer x in screen pixels.
            y (float): Pointer y in screen pixels.

        Returns:
            int | None: Index of the topmost (last drawn) hit, or None.

        Raises:
            StaleImageError: If ``image_key`` is not the bound image.
        """
        self._check_key(image_key)
        for index in range(len(self._pixels) - 1, -1, -1):
            if contains(self._pixels[index], x, y, slop=self.hit_slop):
                return index
        logger.debug(f"Pointer ({x:.1f}, {y:.1f}) hit no rectangle")
        return None
