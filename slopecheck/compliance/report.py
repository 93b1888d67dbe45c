"""ComplianceReport model and schedule generation (Markdown, CSV, JSON)."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from slopecheck.config import SCHEDULE_TITLE
from slopecheck.compliance.rules import ComplianceResult, SlopeRule

SCHEDULE_FIELDS = [
    "pipe_id",
    "type_name",
    "diameter_mm",
    "slope_percent",
    "required_slope_percent",
    "start_elevation_mm",
    "end_elevation_mm",
    "length_mm",
    "status",
]


class ComplianceReport(BaseModel):
    """Outcome of one compliance run over a set of pipes."""

    title: str = SCHEDULE_TITLE
    results: list[ComplianceResult] = Field(default_factory=list)
    """Per-pipe verdicts, in scan order."""

    total_pipes: int = 0
    vertical_count: int = 0
    """Pipes skipped as vertical risers."""

    unmatched_count: int = 0
    """Pipes skipped because no rule covered their diameter."""

    tolerance_percent: float = 0.0
    rules: list[SlopeRule] = Field(default_factory=list)

    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def non_compliant(self) -> list[ComplianceResult]:
        return [r for r in self.results if not r.compliant]

    @property
    def compliant(self) -> list[ComplianceResult]:
        return [r for r in self.results if r.compliant]

    @property
    def status(self) -> str:
        """'no_results', 'compliant', or 'non_compliant'.

        'no_results' means no pipe received a verdict, which is not the same
        as every pipe passing.
        """
        if not self.results:
            return "no_results"
        if self.non_compliant:
            return "non_compliant"
        return "compliant"

    def summary(self) -> str:
        """One-line summary for the user."""
        return (
            f"Checked {self.total_pipes} pipes. "
            f"Found {len(self.non_compliant)} non-compliant pipes."
        )

    def schedule_rows(self, *, only_non_compliant: bool = True) -> list[dict[str, Any]]:
        """Return schedule rows, one per result."""
        source = self.non_compliant if only_non_compliant else self.results
        return [
            {
                "pipe_id": r.pipe_id,
                "type_name": r.type_name,
                "diameter_mm": round(r.measured_diameter_mm, 1),
                "slope_percent": round(r.actual_slope * 100, 3),
                "required_slope_percent": round(r.required_slope * 100, 3),
                "start_elevation_mm": round(r.start_elevation_mm, 1),
                "end_elevation_mm": round(r.end_elevation_mm, 1),
                "length_mm": round(r.length_mm, 1),
                "status": "PASS" if r.compliant else "FAIL",
            }
            for r in source
        ]

    def to_markdown(self) -> str:
        """Render the report as a Markdown schedule."""
        lines: list[str] = []

        lines.append(f"# {self.title}")
        lines.append("")
        lines.append(f"**Status:** {self._status_badge()}")
        lines.append(f"**Tolerance:** {self.tolerance_percent:g}% of required slope")
        lines.append(f"**Checked:** {self.checked_at.strftime('%Y-%m-%d %H:%M UTC')}")
        lines.append("")
        lines.append(f"**Results:** {self.summary()}")
        lines.append(
            f"**Skipped:** {self.vertical_count} vertical, "
            f"{self.unmatched_count} without a matching rule"
        )
        lines.append("")

        if self.rules:
            lines.append("## Rules")
            lines.append("")
            lines.append("| Diameter (mm) | Required slope (%) |")
            lines.append("|---------------|--------------------|")
            for rule in self.rules:
                lines.append(f"| {rule.diameter_mm:g} | {rule.required_slope * 100:g} |")
            lines.append("")

        rows = self.schedule_rows()
        if rows:
            lines.append("## Non-compliant Pipes")
            lines.append("")
            lines.append(
                "| Id | Type | Diameter (mm) | Slope (%) | Required (%) "
                "| Start elev. (mm) | End elev. (mm) | Length (mm) |"
            )
            lines.append("|----|------|---------------|-----------|--------------|"
                         "------------------|----------------|-------------|")
            for row in rows:
                type_name = row["type_name"].replace("|", "\\|")
                lines.append(
                    f"| {row['pipe_id']} | {type_name} | {row['diameter_mm']} "
                    f"| {row['slope_percent']} | {row['required_slope_percent']} "
                    f"| {row['start_elevation_mm']} | {row['end_elevation_mm']} "
                    f"| {row['length_mm']} |"
                )
            lines.append("")
        elif self.results:
            lines.append("All checked pipes meet their required slope.")
            lines.append("")
        else:
            lines.append("No pipe received a verdict.")
            lines.append("")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["status"] = self.status
        data["non_compliant_count"] = len(self.non_compliant)
        return data

    def to_json(self) -> str:
        """Return the structured JSON report."""
        return json.dumps(self.to_dict(), indent=2)

    def write_csv(self, path: str | Path, *, only_non_compliant: bool = True) -> Path:
        """Write the schedule rows to a CSV file and return its path."""
        p = Path(path)
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=SCHEDULE_FIELDS)
        writer.writeheader()
        for row in self.schedule_rows(only_non_compliant=only_non_compliant):
            writer.writerow(row)
        p.write_text(buf.getvalue(), encoding="utf-8")
        return p

    def _status_badge(self) -> str:
        badges = {
            "compliant": "COMPLIANT",
            "non_compliant": "NON-COMPLIANT",
            "no_results": "NO RESULTS",
        }
        return badges.get(self.status, self.status.upper())
