"""SlopeRule model, slope normalisation, and rule matching."""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field

from slopecheck.config import PERCENT_THRESHOLD, SIZE_TOLERANCE_MM


class SlopeUnit(str, Enum):
    """How a rule's slope value is expressed."""

    AUTO = "auto"
    """Values above 1.0 are percentages, the rest are fractions."""

    PERCENT = "percent"
    FRACTION = "fraction"


class TieBreak(str, Enum):
    """Which rule wins when several are within the size tolerance."""

    NEAREST = "nearest"
    """Closest diameter wins; equal distances go to the earlier rule."""

    FIRST = "first"
    """First matching rule in caller order wins."""


class SlopeRule(BaseModel):
    """A (diameter, required slope) pairing supplied by the user."""

    model_config = ConfigDict(frozen=True)

    diameter_mm: float = Field(gt=0)
    slope: float = Field(gt=0)
    unit: SlopeUnit = SlopeUnit.AUTO

    @property
    def required_slope(self) -> float:
        """The required slope as a rise/run fraction."""
        return normalize_slope(self.slope, self.unit)


def normalize_slope(value: float, unit: SlopeUnit = SlopeUnit.AUTO) -> float:
    """Return *value* as a fraction.

    Example: normalize_slope(1.5) and normalize_slope(0.015) both return 0.015.
    """
    if unit is SlopeUnit.PERCENT:
        return value / 100.0
    if unit is SlopeUnit.FRACTION:
        return value
    if value > PERCENT_THRESHOLD:
        return value / 100.0
    return value


def match_rule(
    diameter_mm: float,
    rules: Sequence[SlopeRule],
    *,
    size_tolerance_mm: float = SIZE_TOLERANCE_MM,
    tie_break: TieBreak = TieBreak.FIRST,
) -> tuple[int, SlopeRule] | None:
    """Select the rule that applies to a pipe of *diameter_mm*.

    A rule applies when ``|diameter_mm - rule.diameter_mm| < size_tolerance_mm``.

    Returns
    -------
    tuple[int, SlopeRule] | None
        The index of the winning rule in *rules* and the rule itself, or
        *None* when no rule applies.
    """
    best: tuple[int, SlopeRule] | None = None
    best_distance = 0.0

    for index, rule in enumerate(rules):
        distance = abs(diameter_mm - rule.diameter_mm)
        if distance >= size_tolerance_mm:
            continue
        if tie_break is TieBreak.FIRST:
            return index, rule
        # Strict comparison keeps the earlier rule on equal distance
        if best is None or distance < best_distance:
            best = (index, rule)
            best_distance = distance

    return best


class ComplianceResult(BaseModel):
    """Verdict for one pipe, with every number used to reach it."""

    model_config = ConfigDict(frozen=True)

    pipe_id: str
    measured_diameter_mm: float
    actual_slope: float
    required_slope: float
    compliant: bool

    rule_index: int = 0
    """Position of the matched rule in the caller's rule list."""

    rule_diameter_mm: float = 0.0
    slope_source: str = "native"
    """'native' (declared by the host) or 'geometry' (from endpoints)."""

    deviation: float = 0.0
    allowed_deviation: float = 0.0

    # Schedule columns
    type_name: str = ""
    length_mm: float = 0.0
    start_elevation_mm: float = 0.0
    end_elevation_mm: float = 0.0
