"""SlopeCheck — the single entry point for a slope compliance run.

Usage::

    from slopecheck import SlopeCheck

    sc = SlopeCheck()
    report = sc.check_json("pipes.json", "rules.json")
    print(report.summary())
    sc.export(report, "out/")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from slopecheck.compliance.engine import SlopeComplianceEngine
from slopecheck.compliance.report import ComplianceReport
from slopecheck.compliance.rules import SlopeRule
from slopecheck.compliance.ruleset import RuleSet, load_ruleset
from slopecheck.extraction.ifc import pipes_from_ifc
from slopecheck.extraction.records import load_pipes_json
from slopecheck.models.pipe import PipeRecord
from slopecheck.settings import Settings, load_settings

logger = logging.getLogger(__name__)


class SlopeCheck:
    """Run slope checks from a model source and write reports.

    Parameters
    ----------
    settings:
        Engine settings.  Loaded from the environment when omitted.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or load_settings()
        logging.getLogger("slopecheck").setLevel(self.settings.log_level.upper())

    def _engine(self, tolerance_percent: float) -> SlopeComplianceEngine:
        return SlopeComplianceEngine(
            tolerance_percent,
            tie_break=self.settings.tie_break,
            size_tolerance_mm=self.settings.size_tolerance_mm,
            vertical_ratio=self.settings.vertical_ratio,
            workers=self.settings.workers,
        )

    def check(
        self,
        pipes: Sequence[PipeRecord],
        rules: RuleSet | Sequence[SlopeRule],
        tolerance_percent: float | None = None,
    ) -> ComplianceReport:
        """Check *pipes* against *rules*.

        The tolerance is taken from, in order: the argument, the RuleSet,
        the settings.
        """
        if isinstance(rules, RuleSet):
            rule_list = list(rules.rules)
            if tolerance_percent is None:
                tolerance_percent = rules.tolerance_percent
        else:
            rule_list = list(rules)
        if tolerance_percent is None:
            tolerance_percent = self.settings.tolerance_percent

        report = self._engine(tolerance_percent).check(pipes, rule_list)
        return report

    def check_json(self, pipes_path: str | Path, ruleset_path: str | Path) -> ComplianceReport:
        """Check pipes exported as JSON against a JSON rule set."""
        return self.check(load_pipes_json(pipes_path), load_ruleset(ruleset_path))

    def check_ifc(self, ifc_path: str | Path, ruleset: RuleSet) -> ComplianceReport:
        """Check the pipe segments of an IFC file."""
        return self.check(pipes_from_ifc(ifc_path), ruleset)

    def export(self, report: ComplianceReport, out_dir: str | Path) -> dict[str, Path]:
        """Write SCHEDULE.md, schedule.csv and report.json into *out_dir*."""
        out = Path(out_dir)
        out.mkdir(parents=True, exist_ok=True)

        markdown = out / "SCHEDULE.md"
        markdown.write_text(report.to_markdown(), encoding="utf-8")
        csv_path = report.write_csv(out / "schedule.csv")
        json_path = out / "report.json"
        json_path.write_text(report.to_json(), encoding="utf-8")

        logger.info("Wrote schedule for %d pipes to %s", len(report.non_compliant), out)
        return {"markdown": markdown, "csv": csv_path, "json": json_path}
