"""Override precedence: one-shot > persisted preference > automatic."""

from box_calibration.enums import ModeOverride, ScaleOverride
from box_calibration.models import CalibrationOverrides


def resolve_overrides(
    persisted: CalibrationOverrides | None = None,
    scale: ScaleOverride | None = None,
    mode: ModeOverride | None = None,
) -> CalibrationOverrides:
    """
    Combine one-shot and persisted overrides.

    A one-shot value (including an explicit 'auto') replaces the persisted
    preference for that classifier only.

    Args:
        persisted (CalibrationOverrides | None): Stored operator preference.
        scale (ScaleOverride | None): One-shot scale override.
        mode (ModeOverride | None): One-shot mode override.

    Returns:
        CalibrationOverrides: The effective overrides.
    """
    base = persisted or CalibrationOverrides()
    return CalibrationOverrides(
        scale=scale if scale is not None else base.scale,
        mode=mode if mode is not None else base.mode,
    )
