"""Overlay drawing on the source image with OpenCV."""

import logging

import cv2
import numpy as np

from box_calibration.models import ProblemOverlay, RenderDescriptor

logger = logging.getLogger(__name__)

# BGR
CORRECT_COLOR = (94, 197, 34)
INCORRECT_COLOR = (68, 68, 239)
MARKER_TEXT_COLOR = (255, 255, 255)

STROKE = 3
SELECTED_STROKE = 6
FILL_ALPHA = 0.1


def render_image(image: np.ndarray, render: RenderDescriptor | None) -> np.ndarray:
    """
    Resize the source image to the rendered box size.

    Args:
        image (np.ndarray): Decoded source image.
        render (RenderDescriptor | None): Render box, None keeps the natural size.

    Returns:
        np.ndarray: Image at the rendered size.
    """
    if render is None:
        return image.copy()
    width = max(1, round(render.width))
    height = max(1, round(render.height))
    return cv2.resize(image, (width, height), interpolation=cv2.INTER_AREA)


def draw_overlays(
    image: np.ndarray,
    overlays: list[ProblemOverlay],
    selected_problem_id: str | None = None,
) -> np.ndarray:
    """
    Draw calibrated problem rectangles onto an image.

    Correct problems are outlined in green, incorrect ones in red, and the
    selected problem gets a thicker stroke plus a corner marker.

    Args:
        image (np.ndarray): Image at the rendered size.
        overlays (list[ProblemOverlay]): Overlays with pixel rectangles.
        selected_problem_id (str | None): Problem to highlight.

    Returns:
        np.ndarray: New image with the overlays drawn.
    """
    canvas = image.copy()
    fill = canvas.copy()
    for overlay in overlays:
        if overlay.pixels is None:
            continue
        color = CORRECT_COLOR if overlay.is_correct else INCORRECT_COLOR
        x1 = round(overlay.pixels.xmin)
        y1 = round(overlay.pixels.ymin)
        x2 = round(overlay.pixels.xmax)
        y2 = round(overlay.pixels.ymax)
        cv2.rectangle(fill, (x1, y1), (x2, y2), color, thickness=cv2.FILLED)
        stroke = SELECTED_STROKE if overlay.problem_id == selected_problem_id else STROKE
        cv2.rectangle(canvas, (x1, y1), (x2, y2), color, thickness=stroke)
        cv2.circle(canvas, (x2, y1), max(6, stroke * 3), color, thickness=cv2.FILLED)
        cv2.putText(
            canvas,
            "ok" if overlay.is_correct else "x",
            (x2 - 6, y1 + 5),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.4,
            MARKER_TEXT_COLOR,
            1,
            cv2.LINE_AA,
        )
    return cv2.addWeighted(fill, FILL_ALPHA, canvas, 1 - FILL_ALPHA, 0)


def encode_png(image: np.ndarray) -> bytes:
    """
    Encode an image as PNG bytes.

    Args:
        image (np.ndarray): Image to encode.

    Returns:
        bytes: PNG bytes.

    Raises:
        ValueError: If OpenCV cannot encode the image.
    """
    ok, buffer = cv2.imencode(".png", image)
    if not ok:
        raise ValueError("Failed to encode overlay image as PNG")
    return buffer.tobytes()
