"""Geometric mode enums."""

from enum import StrEnum


class GeometricMode(StrEnum):
    """Canonicalizing resize the rectangle producer reasoned under."""

    RAW = "raw"
    LETTERBOX = "letterbox"
    FIT_MAX = "fitMax"
    COVER = "cover"


class ModeOverride(StrEnum):
    """Operator choice for the mode classifier ('auto' lets it infer)."""

    AUTO = "auto"
    RAW = "raw"
    LETTERBOX = "letterbox"
    FIT_MAX = "fitMax"
    COVER = "cover"

    def to_mode(self) -> GeometricMode | None:
        """
        Get the forced mode for this override.

        Returns:
            GeometricMode | None: The mode, or None for 'auto'.
        """
        if self is ModeOverride.AUTO:
            return None
        return GeometricMode(self.value)
