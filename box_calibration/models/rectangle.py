"""Rectangle model."""

from pydantic import BaseModel, ConfigDict, Field


class Rectangle(BaseModel):
    """An axis-aligned rectangle in some coordinate frame.

    Coordinates may arrive inverted (xmin > xmax); ordering is restored by
    the geometry primitives rather than rejected here.
    """

    xmin: float = Field(description="Left coordinate")
    xmax: float = Field(description="Right coordinate")
    ymin: float = Field(description="Top coordinate")
    ymax: float = Field(description="Bottom coordinate")

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        allow_inf_nan=False,
        json_schema_extra={
            "example": {
                "xmin": 120.0,
                "xmax": 860.0,
                "ymin": 95.5,
                "ymax": 310.0,
            }
        },
    )

    @property
    def width(self) -> float:
        """Signed width (xmax - xmin)."""
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        """Signed height (ymax - ymin)."""
        return self.ymax - self.ymin

    def coordinates(self) -> tuple[float, float, float, float]:
        """
        Get the four coordinates as a tuple.

        Returns:
            tuple[float, float, float, float]: (xmin, xmax, ymin, ymax).
        """
        return self.xmin, self.xmax, self.ymin, self.ymax
