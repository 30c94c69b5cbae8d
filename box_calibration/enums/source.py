"""Decision source enum."""

from enum import StrEnum


class DecisionSource(StrEnum):
    """Where a scale or mode decision came from."""

    OVERRIDE = "override"
    INFERRED = "inferred"
