"""Persisted operator overrides."""

import logging
from pathlib import Path

from pydantic import ValidationError

from box_calibration.models import CalibrationOverrides

logger = logging.getLogger(__name__)


class PreferenceService:
    """Stores the operator's scale/mode overrides in a local JSON file."""

    def __init__(self, path: str | Path, defaults: CalibrationOverrides | None = None) -> None:
        """
        Initialize the preference store.

        Args:
            path (str | Path): JSON file holding the preference.
            defaults (CalibrationOverrides | None): Used when nothing is stored.
        """
        self.path = Path(path)
        self.defaults = defaults or CalibrationOverrides()

    def load(self) -> CalibrationOverrides:
        """
        Load the persisted overrides.

        Returns:
            CalibrationOverrides: Stored overrides, or the defaults if none are readable.
        """
        if not self.path.is_file():
            return self.defaults
        try:
            return CalibrationOverrides.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable preferences at {self.path}: {e}")
            return self.defaults

    def save(self, overrides: CalibrationOverrides) -> CalibrationOverrides:
        """
        Persist new overrides.

        Args:
            overrides (CalibrationOverrides): Overrides to store.

        Returns:
            CalibrationOverrides: The stored overrides.

        Raises:
            OSError: If the file cannot be written.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(overrides.model_dump_json(indent=2), encoding="utf-8")
        logger.info(f"Saved overrides: scale={overrides.scale} mode={overrides.mode}")
        return overrides

    def reset(self) -> CalibrationOverrides:
        """
        Forget the persisted overrides.

        Returns:
            CalibrationOverrides: The defaults now in effect.
        """
        self.path.unlink(missing_ok=True)
        return self.defaults
