"""Coordinate frame enums."""

from enum import StrEnum


class Frame(StrEnum):
    """Numeric convention used by a rectangle batch."""

    UNIT = "unit"
    PERCENT = "percent"
    NORMALIZED_1000 = "normalized-1000"
    PIXEL = "pixel"
    UNKNOWN = "unknown"


class ScaleOverride(StrEnum):
    """Operator choice for the scale classifier ('auto' lets it infer)."""

    AUTO = "auto"
    UNIT = "unit"
    PERCENT = "percent"
    NORMALIZED_1000 = "normalized-1000"
    PIXEL = "pixel"

    def to_frame(self) -> Frame | None:
        """
        Get the forced frame for this override.

        Returns:
            Frame | None: The frame, or None for 'auto'.
        """
        if self is ScaleOverride.AUTO:
            return None
        return Frame(self.value)
