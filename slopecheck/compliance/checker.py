"""Pipe-level slope checking against a matched rule."""

from __future__ import annotations

import logging
from typing import Sequence

from slopecheck.config import (
    FEET_TO_MM,
    SIZE_TOLERANCE_MM,
    VERTICAL_RATIO_THRESHOLD,
)
from slopecheck.compliance.rules import (
    ComplianceResult,
    SlopeRule,
    TieBreak,
    match_rule,
)
from slopecheck.models.pipe import PipeRecord

logger = logging.getLogger(__name__)

# Outcomes of _evaluate
EVALUATED = "evaluated"
VERTICAL = "vertical"
UNMATCHED = "unmatched"

# Relative slack on the allowed deviation so the boundary survives float error
_BOUNDARY_EPSILON = 1e-9


def is_vertical(pipe: PipeRecord, ratio: float = VERTICAL_RATIO_THRESHOLD) -> bool:
    """Return True when *pipe* is a riser exempt from slope checking."""
    return pipe.is_vertical(ratio)


def resolve_actual_slope(pipe: PipeRecord) -> tuple[float, str]:
    """Return the pipe's slope and where it came from.

    The host-declared slope wins.  Otherwise the slope is computed from the
    endpoints; a segment with no horizontal run yields 0.0.
    """
    if pipe.native_slope is not None:
        return pipe.native_slope, "native"
    if pipe.delta_xy == 0:
        logger.debug("Pipe %s has no horizontal run; slope taken as 0", pipe.id)
    return pipe.geometric_slope(), "geometry"


def within_tolerance(actual: float, required: float, tolerance_percent: float) -> tuple[bool, float, float]:
    """Compare *actual* to *required* under a tolerance relative to *required*.

    Returns (compliant, deviation, allowed_deviation).
    """
    allowed = required * (tolerance_percent / 100.0)
    deviation = abs(actual - required)
    compliant = deviation <= allowed + allowed * _BOUNDARY_EPSILON
    return compliant, deviation, allowed


def _evaluate(
    pipe: PipeRecord,
    rules: Sequence[SlopeRule],
    tolerance_percent: float,
    *,
    size_tolerance_mm: float,
    vertical_ratio: float,
    tie_break: TieBreak,
) -> tuple[str, ComplianceResult | None]:
    if is_vertical(pipe, vertical_ratio):
        logger.debug("Pipe %s skipped: vertical riser", pipe.id)
        return VERTICAL, None

    diameter_mm = pipe.diameter * FEET_TO_MM
    actual, source = resolve_actual_slope(pipe)

    matched = match_rule(
        diameter_mm,
        rules,
        size_tolerance_mm=size_tolerance_mm,
        tie_break=tie_break,
    )
    if matched is None:
        logger.debug("Pipe %s skipped: no rule for %.1f mm", pipe.id, diameter_mm)
        return UNMATCHED, None

    index, rule = matched
    required = rule.required_slope
    compliant, deviation, allowed = within_tolerance(actual, required, tolerance_percent)

    return EVALUATED, ComplianceResult(
        pipe_id=pipe.id,
        measured_diameter_mm=diameter_mm,
        actual_slope=actual,
        required_slope=required,
        compliant=compliant,
        rule_index=index,
        rule_diameter_mm=rule.diameter_mm,
        slope_source=source,
        deviation=deviation,
        allowed_deviation=allowed,
        type_name=pipe.type_name,
        length_mm=pipe.length * FEET_TO_MM,
        start_elevation_mm=pipe.start_point[2] * FEET_TO_MM,
        end_elevation_mm=pipe.end_point[2] * FEET_TO_MM,
    )


def evaluate_pipe(
    pipe: PipeRecord,
    rules: Sequence[SlopeRule],
    tolerance_percent: float,
    *,
    size_tolerance_mm: float = SIZE_TOLERANCE_MM,
    vertical_ratio: float = VERTICAL_RATIO_THRESHOLD,
    tie_break: TieBreak = TieBreak.FIRST,
) -> ComplianceResult | None:
    """Evaluate one pipe.

    Returns *None* when the pipe is a vertical riser or no rule applies to
    its diameter; such pipes get no verdict.  The tolerance is not
    range-checked here; :func:`slopecheck.compliance.engine.classify` does that.
    """
    _, result = _evaluate(
        pipe,
        rules,
        tolerance_percent,
        size_tolerance_mm=size_tolerance_mm,
        vertical_ratio=vertical_ratio,
        tie_break=tie_break,
    )
    return result
