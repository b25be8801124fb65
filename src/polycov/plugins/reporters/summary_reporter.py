"""Summary reporter: the plain-text coverage summary, also persisted per run."""

from __future__ import annotations

from typing import IO, List

from polycov.core.models import CoverageReport
from polycov.plugins.reporters.base import ReporterPlugin, display_percentage

RULE = "=" * 42
SUBMODULE_NOTE = "NOTE: This report excludes git submodules to prevent duplicate counting"
ESTIMATE_NOTE = (
    "NOTE: PostgreSQL coverage is a static estimate (routine names referenced "
    "by tests, or assertion density), not measured execution"
)


class SummaryReporter(ReporterPlugin):
    """Reporter plugin that writes per-technology and overall totals."""

    @property
    def name(self) -> str:
        return "summary"

    def report(self, result: CoverageReport, output: IO[str]) -> None:
        output.write("\n".join(self._format_summary(result)))
        output.write("\n")

    def _format_summary(self, result: CoverageReport) -> List[str]:
        lines: List[str] = [
            RULE,
            "COMPREHENSIVE CODE COVERAGE REPORT",
            RULE,
            f"Generated: {result.generated_at.strftime('%a %b %d %H:%M:%S %Y')}",
            f"Workspace: {result.workspace_root}",
            "",
            SUBMODULE_NOTE,
        ]
        if result.has_estimates:
            lines.append(ESTIMATE_NOTE)
        lines += ["", RULE, "COVERAGE BY TECHNOLOGY", RULE, ""]

        for tech, tally in result.tallies.items():
            lines.append(f"{tech.label}:")
            lines.append(f"  Projects Analyzed: {tally.projects}")
            lines.append(f"  Lines Covered: {tally.covered}")
            lines.append(f"  Total Lines: {tally.total}")
            lines.append(f"  Coverage: {display_percentage(tally)}")
            lines.append("")

        overall = result.overall
        lines += [
            RULE,
            "OVERALL STATISTICS",
            RULE,
            f"  Total Projects: {overall.projects}",
            f"  Total Lines Covered: {overall.covered}",
            f"  Total Lines: {overall.total}",
            f"  Overall Coverage: {display_percentage(overall)}",
            "",
            RULE,
        ]
        return lines
