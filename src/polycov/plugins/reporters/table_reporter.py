"""Table reporter plugin for polycov."""

from __future__ import annotations

from typing import IO, List

from polycov.core.models import CoverageReport, CoverageStatus
from polycov.plugins.reporters.base import ReporterPlugin, display_percentage

WIDTH = 96


class TableReporter(ReporterPlugin):
    """Reporter plugin that prints per-project results and per-technology totals.

    Projects without data are listed with their status but never show a
    percentage; estimated results carry an ``(estimated)`` marker.
    """

    @property
    def name(self) -> str:
        return "table"

    def report(self, result: CoverageReport, output: IO[str]) -> None:
        output.write("\n".join(self._format_table(result)))
        output.write("\n")

    def _format_table(self, result: CoverageReport) -> List[str]:
        lines: List[str] = []

        if not result.projects:
            lines.append("No projects found.")
        else:
            lines.append(f"{'TECHNOLOGY':<12} {'PROJECT':<32} {'STATUS':<10} {'COVERED':>9} {'TOTAL':>9} {'COVERAGE'}")
            lines.append("-" * WIDTH)
            for project in result.projects:
                name = project.project.name[:32]
                if project.has_data:
                    coverage = f"{project.percentage}%"
                    if project.estimated:
                        coverage += " (estimated)"
                    covered, total = str(project.covered), str(project.total)
                else:
                    coverage, covered, total = "-", "-", "-"
                lines.append(
                    f"{project.technology.value:<12} {name:<32} {project.status.value:<10} "
                    f"{covered:>9} {total:>9} {coverage}"
                )

        lines.append("")
        lines.append(f"{'TECHNOLOGY':<26} {'PROJECTS':>8} {'COVERED':>9} {'TOTAL':>9} {'COVERAGE':>9}")
        lines.append("-" * WIDTH)
        for tech, tally in result.tallies.items():
            lines.append(
                f"{tech.label:<26} {tally.projects:>8} {tally.covered:>9} "
                f"{tally.total:>9} {display_percentage(tally):>9}"
            )
        overall = result.overall
        lines.append("-" * WIDTH)
        lines.append(
            f"{'Overall':<26} {overall.projects:>8} {overall.covered:>9} "
            f"{overall.total:>9} {display_percentage(overall):>9}"
        )

        skipped = [p for p in result.projects if p.status == CoverageStatus.SKIPPED]
        if skipped:
            lines.append("")
            lines.append(f"Skipped (tool unavailable): {len(skipped)} project(s)")
        if result.has_estimates:
            lines.append("Estimated values come from static analysis, not instrumentation.")
        lines.append("Git submodules are excluded to prevent duplicate counting.")
        if result.summary_file is not None:
            lines.append(f"Summary saved to: {result.summary_file}")

        return lines
