"""PipeRecord — one measured pipe segment, detached from any host document.

Coordinates and diameter are in decimal feet, the length unit used by the
host model.  Records are immutable once built.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator

from slopecheck.config import FEET_TO_MM, VERTICAL_RATIO_THRESHOLD

Point = tuple[float, float, float]


class PipeRecord(BaseModel):
    """A straight pipe run with a diameter and an optional declared slope."""

    model_config = ConfigDict(frozen=True)

    id: str
    """Opaque identifier used to correlate results back to host elements."""

    start_point: Point
    end_point: Point

    diameter: float = Field(default=0.0, ge=0.0)
    """Outside diameter in feet.  0 means unknown."""

    native_slope: float | None = None
    """Slope declared by the host (rise/run), if it has one."""

    type_name: str = ""
    """Pipe type label, carried through to the schedule."""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def delta_z(self) -> float:
        return abs(self.end_point[2] - self.start_point[2])

    @property
    def delta_xy(self) -> float:
        dx = self.end_point[0] - self.start_point[0]
        dy = self.end_point[1] - self.start_point[1]
        return math.sqrt(dx * dx + dy * dy)

    @property
    def length(self) -> float:
        """Centerline length in feet."""
        return math.hypot(self.delta_xy, self.delta_z)

    @property
    def diameter_mm(self) -> float:
        return self.diameter * FEET_TO_MM

    def is_vertical(self, ratio: float = VERTICAL_RATIO_THRESHOLD) -> bool:
        """Return True when the rise exceeds *ratio* times the run."""
        return self.delta_z > ratio * self.delta_xy

    def geometric_slope(self) -> float:
        """Rise over run from the endpoints; 0.0 for a zero-length run."""
        horizontal = self.delta_xy
        if horizontal > 0:
            return self.delta_z / horizontal
        return 0.0
