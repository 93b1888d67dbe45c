"""SlopeComplianceEngine — main entry point for pipe slope checking.

Usage::

    from slopecheck.compliance import SlopeComplianceEngine, SlopeRule

    engine = SlopeComplianceEngine(tolerance_percent=5)
    report = engine.check(pipes, [SlopeRule(diameter_mm=100, slope=2.0)])
    for result in report.non_compliant:
        ...
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from slopecheck.config import (
    DEFAULT_TOLERANCE_PERCENT,
    SIZE_TOLERANCE_MM,
    VERTICAL_RATIO_THRESHOLD,
)
from slopecheck.compliance.checker import EVALUATED, UNMATCHED, VERTICAL, _evaluate
from slopecheck.compliance.errors import InvalidArgumentError
from slopecheck.compliance.report import ComplianceReport
from slopecheck.compliance.rules import ComplianceResult, SlopeRule, TieBreak
from slopecheck.models.pipe import PipeRecord

logger = logging.getLogger(__name__)

Outcome = tuple[str, ComplianceResult | None]


def validate_tolerance(tolerance_percent: float) -> float:
    """Return *tolerance_percent* as a float, or raise InvalidArgumentError."""
    try:
        value = float(tolerance_percent)
    except (TypeError, ValueError):
        raise InvalidArgumentError(
            f"tolerance_percent must be a number, got {tolerance_percent!r}"
        ) from None
    if math.isnan(value) or value < 0 or value > 100:
        raise InvalidArgumentError(
            f"tolerance_percent must be between 0 and 100, got {tolerance_percent!r}"
        )
    return value


def validate_pipes(pipes: Sequence[PipeRecord]) -> None:
    """Raise InvalidArgumentError if any pipe has a negative or NaN diameter.

    Records built with ``model_construct`` skip pydantic validation, so the
    engine checks again before evaluating anything.
    """
    for pipe in pipes:
        if not pipe.diameter >= 0:
            raise InvalidArgumentError(
                f"Pipe {pipe.id} has an invalid diameter: {pipe.diameter!r}"
            )


def _chunks(pipes: Sequence[PipeRecord], count: int) -> list[Sequence[PipeRecord]]:
    """Split *pipes* into at most *count* contiguous slices."""
    size = max(1, math.ceil(len(pipes) / count))
    return [pipes[i:i + size] for i in range(0, len(pipes), size)]


def _run(
    pipes: Sequence[PipeRecord],
    rules: Sequence[SlopeRule],
    tolerance_percent: float,
    *,
    tie_break: TieBreak,
    size_tolerance_mm: float,
    vertical_ratio: float,
    workers: int | None,
) -> list[Outcome]:
    """Validate arguments and evaluate every pipe, preserving input order."""
    tolerance = validate_tolerance(tolerance_percent)
    if workers is not None and workers < 1:
        raise InvalidArgumentError(f"workers must be at least 1, got {workers!r}")

    pipes = list(pipes)
    validate_pipes(pipes)
    rules = tuple(rules)

    def evaluate_slice(batch: Sequence[PipeRecord]) -> list[Outcome]:
        return [
            _evaluate(
                pipe,
                rules,
                tolerance,
                size_tolerance_mm=size_tolerance_mm,
                vertical_ratio=vertical_ratio,
                tie_break=tie_break,
            )
            for pipe in batch
        ]

    if not workers or workers == 1 or len(pipes) < 2:
        return evaluate_slice(pipes)

    outcomes: list[Outcome] = []
    with ThreadPoolExecutor(max_workers=workers) as pool:
        # map() yields in submission order, so slices come back in input order
        for part in pool.map(evaluate_slice, _chunks(pipes, workers)):
            outcomes.extend(part)
    return outcomes


def classify(
    pipes: Sequence[PipeRecord],
    rules: Sequence[SlopeRule],
    tolerance_percent: float,
    *,
    tie_break: TieBreak = TieBreak.FIRST,
    size_tolerance_mm: float = SIZE_TOLERANCE_MM,
    vertical_ratio: float = VERTICAL_RATIO_THRESHOLD,
    workers: int | None = None,
) -> list[ComplianceResult]:
    """Classify pipes as compliant or non-compliant with their slope rule.

    Parameters
    ----------
    pipes:
        Pipe records, in scan order.
    rules:
        (diameter, slope) rules.  Need not be sorted or unique.
    tolerance_percent:
        Allowed deviation as a percentage of the required slope, in
        ``[0, 100]``.
    tie_break:
        How to choose among several rules within the size tolerance.
    workers:
        Evaluate in this many threads.  Results are returned in input order
        regardless.

    Returns
    -------
    list[ComplianceResult]
        One result per pipe that is neither a vertical riser nor without a
        matching rule, in the order of *pipes*.

    Raises
    ------
    InvalidArgumentError
        If *tolerance_percent* is outside ``[0, 100]``, *workers* < 1, or a
        pipe has a negative diameter.
    """
    outcomes = _run(
        pipes,
        rules,
        tolerance_percent,
        tie_break=tie_break,
        size_tolerance_mm=size_tolerance_mm,
        vertical_ratio=vertical_ratio,
        workers=workers,
    )
    return [result for _, result in outcomes if result is not None]


class SlopeComplianceEngine:
    """Check pipe slopes against a table of diameter/slope rules.

    Parameters
    ----------
    tolerance_percent:
        Allowed deviation as a percentage of the required slope.
    tie_break:
        Rule selection when several rules match one diameter.
    size_tolerance_mm:
        Maximum diameter difference for a rule to apply.
    vertical_ratio:
        Rise/run ratio above which a pipe is treated as a riser.
    workers:
        Thread count for large pipe sets.  *None* runs inline.
    """

    def __init__(
        self,
        tolerance_percent: float = DEFAULT_TOLERANCE_PERCENT,
        *,
        tie_break: TieBreak = TieBreak.FIRST,
        size_tolerance_mm: float = SIZE_TOLERANCE_MM,
        vertical_ratio: float = VERTICAL_RATIO_THRESHOLD,
        workers: int | None = None,
    ) -> None:
        self.tolerance_percent = validate_tolerance(tolerance_percent)
        self.tie_break = TieBreak(tie_break)
        self.size_tolerance_mm = size_tolerance_mm
        self.vertical_ratio = vertical_ratio
        self.workers = workers

    def classify(
        self,
        pipes: Sequence[PipeRecord],
        rules: Sequence[SlopeRule],
    ) -> list[ComplianceResult]:
        """Return results for *pipes* using this engine's settings."""
        return classify(
            pipes,
            rules,
            self.tolerance_percent,
            tie_break=self.tie_break,
            size_tolerance_mm=self.size_tolerance_mm,
            vertical_ratio=self.vertical_ratio,
            workers=self.workers,
        )

    def check(
        self,
        pipes: Sequence[PipeRecord],
        rules: Sequence[SlopeRule],
    ) -> ComplianceReport:
        """Run a full check and return a report with exclusion counts."""
        pipes = list(pipes)
        rules = list(rules)
        outcomes = _run(
            pipes,
            rules,
            self.tolerance_percent,
            tie_break=self.tie_break,
            size_tolerance_mm=self.size_tolerance_mm,
            vertical_ratio=self.vertical_ratio,
            workers=self.workers,
        )

        results = [r for kind, r in outcomes if kind == EVALUATED and r is not None]
        vertical = sum(1 for kind, _ in outcomes if kind == VERTICAL)
        unmatched = sum(1 for kind, _ in outcomes if kind == UNMATCHED)

        report = ComplianceReport(
            results=results,
            total_pipes=len(pipes),
            vertical_count=vertical,
            unmatched_count=unmatched,
            tolerance_percent=self.tolerance_percent,
            rules=rules,
        )
        logger.info(
            "Checked %d pipes against %d rules: %d evaluated, %d non-compliant "
            "(%d risers, %d unmatched)",
            len(pipes),
            len(rules),
            len(results),
            len(report.non_compliant),
            vertical,
            unmatched,
        )
        return report
