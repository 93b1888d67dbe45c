"""RuleSet — validated user input for a compliance run.

Covers parsing of free-text (size, slope) rows as typed into a rule form,
JSON persistence, and the size/slope choices offered to the user, which
come from the model when it has them and from common values otherwise.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Iterable, Sequence

from pydantic import BaseModel, Field

from slopecheck.config import (
    DEFAULT_RULE_ROWS,
    DEFAULT_TOLERANCE_PERCENT,
    PREDEFINED_SIZES_MM,
    PREDEFINED_SLOPES_PERCENT,
)
from slopecheck.compliance.errors import RuleInputError
from slopecheck.compliance.rules import SlopeRule, SlopeUnit
from slopecheck.models.pipe import PipeRecord

logger = logging.getLogger(__name__)

# Rows used when the model offers no sizes: 100/1.0%, 150/1.5%, 200/2.0%
_FALLBACK_ROWS = (
    (PREDEFINED_SIZES_MM[2], PREDEFINED_SLOPES_PERCENT[1]),
    (PREDEFINED_SIZES_MM[4], PREDEFINED_SLOPES_PERCENT[2]),
    (PREDEFINED_SIZES_MM[5], PREDEFINED_SLOPES_PERCENT[3]),
)


class RuleSet(BaseModel):
    """A validated list of slope rules plus the compliance tolerance."""

    rules: list[SlopeRule] = Field(min_length=1)
    tolerance_percent: float = Field(default=DEFAULT_TOLERANCE_PERCENT, ge=0, le=100)


def _parse_number(text: object) -> float | None:
    try:
        value = float(str(text).strip())
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def parse_rule_rows(
    rows: Sequence[tuple[object, object]],
    tolerance: object,
    *,
    unit: SlopeUnit = SlopeUnit.PERCENT,
) -> RuleSet:
    """Build a RuleSet from raw (size, slope) rows and a tolerance.

    Parameters
    ----------
    rows:
        (size in mm, slope) pairs, typically strings from a form.
    tolerance:
        Tolerance percentage, 0 to 100.
    unit:
        Unit of the slope column.  The rule form takes percentages.

    Raises
    ------
    RuleInputError
        On the first invalid value, with the row index where applicable.
    """
    tol = _parse_number(tolerance)
    if tol is None or tol < 0 or tol > 100:
        raise RuleInputError("Tolerance must be a number between 0 and 100")

    if not rows:
        raise RuleInputError("At least one size-slope pair is required")

    rules: list[SlopeRule] = []
    for index, row in enumerate(rows):
        if isinstance(row, (str, bytes)) or not isinstance(row, Sequence) or len(row) != 2:
            raise RuleInputError(f"Each row needs a size and a slope (row {index + 1})", row=index)
        size_text, slope_text = row
        size = _parse_number(size_text)
        if size is None or size <= 0:
            raise RuleInputError(f"Size must be a positive number (row {index + 1})", row=index)
        slope = _parse_number(slope_text)
        if slope is None or slope <= 0:
            raise RuleInputError(f"Slope must be a positive number (row {index + 1})", row=index)
        rules.append(SlopeRule(diameter_mm=size, slope=slope, unit=unit))

    logger.debug("Parsed %d size-slope pairs, tolerance %s%%", len(rules), tol)
    return RuleSet(rules=rules, tolerance_percent=tol)


def load_ruleset(path: str | Path) -> RuleSet:
    """Load a RuleSet from a JSON file."""
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Rule set not found: {p}")
    return RuleSet.model_validate_json(p.read_text(encoding="utf-8"))


def save_ruleset(ruleset: RuleSet, path: str | Path) -> Path:
    """Write *ruleset* as JSON and return the path."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(
        json.dumps(ruleset.model_dump(mode="json"), indent=2),
        encoding="utf-8",
    )
    return p


def _model_sizes_mm(pipes: Iterable[PipeRecord]) -> list[float]:
    sizes = {round(p.diameter_mm) for p in pipes if p.diameter > 0}
    sizes.discard(0)
    return sorted(float(s) for s in sizes)


def available_sizes_mm(pipes: Iterable[PipeRecord]) -> list[float]:
    """Distinct pipe diameters in the model, rounded to the millimetre.

    Falls back to the predefined sizes when no pipe has a diameter.
    """
    return _model_sizes_mm(pipes) or list(PREDEFINED_SIZES_MM)


def available_slopes_percent(pipes: Iterable[PipeRecord]) -> list[float]:
    """Distinct declared slopes in the model, as percentages.

    Falls back to the predefined slopes when no pipe declares one.
    """
    slopes: set[float] = set()
    for p in pipes:
        if p.native_slope is None or p.native_slope <= 0:
            continue
        value = p.native_slope * 100 if p.native_slope < 1 else p.native_slope
        slopes.add(round(value, 2))
    if not slopes:
        return list(PREDEFINED_SLOPES_PERCENT)
    return sorted(slopes)


def default_rule_rows(pipes: Sequence[PipeRecord]) -> list[tuple[float, float]]:
    """Pre-filled (size mm, slope %) rows for the rule form."""
    sizes = _model_sizes_mm(pipes)
    if not sizes:
        return list(_FALLBACK_ROWS)

    slopes = available_slopes_percent(pipes)
    rows = []
    for i in range(min(DEFAULT_RULE_ROWS, len(sizes))):
        slope = slopes[i] if i < len(slopes) else slopes[0]
        rows.append((sizes[i], slope))
    return rows
