"""Calibration service - per-image sessions around the calibration engine."""

import json
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path

from box_calibration.calibration.overrides import resolve_overrides
from box_calibration.calibration.pipeline import calibrate
from box_calibration.calibration.render import RenderMapper
from box_calibration.core.settings import AppSettings
from box_calibration.core.utils import image_key
from box_calibration.enums import ModeOverride, ScaleOverride
from box_calibration.models import (
    AnalysisResult,
    CalibrationOverrides,
    CalibrationResponse,
    CalibrationResult,
    DiagnosticSnapshot,
    ExportStatus,
    HitTestResponse,
    ImageDescriptor,
    LayoutResponse,
    ProblemOverlay,
    ProblemRecord,
    Rectangle,
    RenderDescriptor,
)
from box_calibration.services.preference_service import PreferenceService

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when no calibration session exists for an image id."""


@dataclass
class CalibrationSession:
    """Derived state of one image decode.

    ``result`` is recomputed only when the problems, the natural image size or
    the effective overrides change; layout updates only touch ``mapper``.
    """

    image_id: str
    mapper: RenderMapper
    image: ImageDescriptor | None = None
    problems: list[ProblemRecord] = field(default_factory=list)
    overrides: CalibrationOverrides = field(default_factory=CalibrationOverrides)
    result: CalibrationResult | None = None
    selected_problem_id: str | None = None

    def raw_rectangles(self) -> list[Rectangle]:
        """Raw model rectangles in problem order."""
        return [p.bounding_box for p in self.problems]

    def overlays(self) -> list[ProblemOverlay]:
        """Per-problem canonical and pixel rectangles."""
        if self.result is None:
            return []
        pixels: list[Rectangle | None] = list(self.mapper.pixel_rectangles)
        if not pixels:
            pixels = [None] * len(self.problems)
        return [
            ProblemOverlay(
                problem_id=problem.id,
                is_correct=problem.is_correct,
                canonical=canonical,
                pixels=pixel,
            )
            for problem, canonical, pixel in zip(
                self.problems, self.result.rectangles, pixels, strict=True
            )
        ]


def derive_image_id(image: ImageDescriptor | None, problems: list[ProblemRecord]) -> str:
    """
    Derive a stable image id when the caller does not provide one.

    Args:
        image (ImageDescriptor | None): Natural image size.
        problems (list[ProblemRecord]): Problem batch.

    Returns:
        str: Short hex digest of the size and rectangles.
    """
    payload = {
        "image": image.model_dump() if image is not None else None,
        "boxes": [p.bounding_box.model_dump() for p in problems],
    }
    return image_key(json.dumps(payload, sort_keys=True).encode("utf-8"))


class CalibrationService:
    """Service keeping calibration sessions keyed by image decode."""

    def __init__(self, settings: AppSettings, preferences: PreferenceService | None = None) -> None:
        """
        Initialize the calibration service.

        Args:
            settings (AppSettings): Application settings instance.
            preferences (PreferenceService | None): Persisted override store.
        """
        self.settings = settings
        self.preferences = preferences or PreferenceService(
            path=settings.calibration.preferences_file,
            defaults=CalibrationOverrides(
                scale=settings.calibration.scale_override,
                mode=settings.calibration.mode_override,
            ),
        )
        self._sessions: OrderedDict[str, CalibrationSession] = OrderedDict()

    def _session(self, image_id: str) -> CalibrationSession:
        session = self._sessions.get(image_id)
        if session is None:
            raise SessionNotFoundError(image_id)
        self._sessions.move_to_end(image_id)
        return session

    def _open_session(self, image_id: str) -> CalibrationSession:
        session = self._sessions.get(image_id)
        if session is None:
            session = CalibrationSession(
                image_id=image_id,
                mapper=RenderMapper(hit_slop=self.settings.calibration.hit_slop),
            )
            self._sessions[image_id] = session
            while len(self._sessions) > self.settings.calibration.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.debug(f"Evicted calibration session {evicted}")
        self._sessions.move_to_end(image_id)
        return session

    def effective_overrides(
        self,
        scale: ScaleOverride | None = None,
        mode: ModeOverride | None = None,
    ) -> CalibrationOverrides:
        """
        Resolve one-shot overrides against the persisted preference.

        Args:
            scale (ScaleOverride | None): One-shot scale override.
            mode (ModeOverride | None): One-shot mode override.

        Returns:
            CalibrationOverrides: Effective overrides.
        """
        return resolve_overrides(self.preferences.load(), scale=scale, mode=mode)

    def calibrate(
        self,
        problems: list[ProblemRecord],
        image: ImageDescriptor | None = None,
        image_id: str | None = None,
        render: RenderDescriptor | None = None,
        scale: ScaleOverride | None = None,
        mode: ModeOverride | None = None,
    ) -> CalibrationResponse:
        """
        Calibrate a problem batch and bind it to its image session.

        Args:
            problems (list[ProblemRecord]): Problems returned by the analysis model.
            image (ImageDescriptor | None): Natural image size, None before decode.
            image_id (str | None): Identity of the image decode.
            render (RenderDescriptor | None): Current on-screen image box.
            scale (ScaleOverride | None): One-shot scale override.
            mode (ModeOverride | None): One-shot mode override.

        Returns:
            CalibrationResponse: Decisions and per-problem overlays.
        """
        image_id = image_id or derive_image_id(image, problems)
        overrides = self.effective_overrides(scale=scale, mode=mode)
        session = self._open_session(image_id)

        changed = (
            session.result is None
            or session.image != image
            or session.overrides != overrides
            or session.raw_rectangles() != [p.bounding_box for p in problems]
        )
        # A different natural size under the same id is a new decode
        redecoded = session.image is not None and session.image != image
        session.problems = list(problems)
        if changed:
            session.image = image
            session.overrides = overrides
            session.result = calibrate(session.raw_rectangles(), image=image, overrides=overrides)
            session.mapper.bind(image_id, session.result.rectangles, reset=redecoded)
            logger.info(
                f"Calibrated {len(problems)} problems for image {image_id}: "
                f"frame={session.result.frame} mode={session.result.mode}"
            )
        if session.selected_problem_id not in {p.id for p in problems}:
            session.selected_problem_id = AnalysisResult(problems=problems).default_selection()
        if render is not None:
            session.mapper.update_layout(image_id, render)

        return CalibrationResponse(
            image_id=image_id,
            frame=session.result.frame,
            frame_source=session.result.frame_source,
            mode=session.result.mode,
            mode_source=session.result.mode_source,
            selected_problem_id=session.selected_problem_id,
            overlays=session.overlays(),
            diagnostics=self._snapshot(session),
        )

    def update_layout(self, image_id: str, render: RenderDescriptor) -> LayoutResponse:
        """
        Remap overlays for a new render box without reclassifying.

        Args:
            image_id (str): Identity of the image decode.
            render (RenderDescriptor): New on-screen image box.

        Returns:
            LayoutResponse: Pixel overlays for the new layout.

        Raises:
            SessionNotFoundError: If the image has no session.
            StaleImageError: If the session is bound to another decode.
        """
        session = self._session(image_id)
        session.mapper.update_layout(image_id, render)
        return LayoutResponse(image_id=image_id, render=render, overlays=session.overlays())

    def hit_test(self, image_id: str, x: float, y: float) -> HitTestResponse:
        """
        Select the topmost problem under a pointer.

        Args:
            image_id (str): Identity of the image decode.
            x (float): Pointer x in screen pixels.
            y (float): Pointer y in screen pixels.

        Returns:
            HitTestResponse: Selected problem id, None on a miss.

        Raises:
            SessionNotFoundError: If the image has no session.
            StaleImageError: If the session is bound to another decode.
        """
        session = self._session(image_id)
        index = session.mapper.hit_test(image_id, x, y)
        if index is None:
            return HitTestResponse(image_id=image_id, problem_id=None)
        session.selected_problem_id = session.problems[index].id
        return HitTestResponse(image_id=image_id, problem_id=session.selected_problem_id)

    def _snapshot(self, session: CalibrationSession) -> DiagnosticSnapshot:
        result = session.result
        if result is None:
            raise SessionNotFoundError(session.image_id)
        sample_size = self.settings.calibration.diagnostic_sample_size
        return DiagnosticSnapshot(
            image_id=session.image_id,
            image=session.image,
            render=session.mapper.render,
            frame=result.frame,
            frame_source=result.frame_source,
            mode=result.mode,
            mode_source=result.mode_source,
            mode_rule=result.mode_rule,
            extents=result.extents,
            sample=session.raw_rectangles()[:sample_size],
            rectangle_count=len(session.problems),
        )

    def snapshot(self, image_id: str) -> DiagnosticSnapshot:
        """
        Build the diagnostic snapshot of a session.

        Args:
            image_id (str): Identity of the image decode.

        Returns:
            DiagnosticSnapshot: Snapshot for bug reports.

        Raises:
            SessionNotFoundError: If the image has no session.
        """
        return self._snapshot(self._session(image_id))

    def export_snapshot(self, image_id: str, path: str | Path) -> ExportStatus:
        """
        Write a session's diagnostic snapshot to a file.

        Failures are reported in the returned status, never raised.

        Args:
            image_id (str): Identity of the image decode.
            path (str | Path): Destination file.

        Returns:
            ExportStatus: Outcome of the export.
        """
        try:
            text = self.snapshot(image_id).to_text()
            target = Path(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        except SessionNotFoundError:
            return ExportStatus(success=False, message=f"No calibration for image {image_id}")
        except OSError as e:
            logger.warning(f"Failed to export diagnostics for {image_id}: {e}")
            return ExportStatus(success=False, message=f"Export failed: {e}")
        return ExportStatus(success=True, message=f"Diagnostics written to {path}")
