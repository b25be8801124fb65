"""JSON reporter plugin for polycov."""

from __future__ import annotations

import json
from typing import IO, Any, Dict

from polycov.core.models import CoverageReport, ProjectCoverage
from polycov.core.tally import CoverageTally
from polycov.plugins.reporters.base import ReporterPlugin

SCHEMA_VERSION = "1.0"


class JSONReporter(ReporterPlugin):
    """Reporter plugin that outputs the coverage report as JSON."""

    @property
    def name(self) -> str:
        return "json"

    def report(self, result: CoverageReport, output: IO[str]) -> None:
        json.dump(self.to_dict(result), output, indent=2)
        output.write("\n")

    def to_dict(self, result: CoverageReport) -> Dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            "generated_at": result.generated_at.isoformat(timespec="seconds"),
            "workspace": str(result.workspace_root),
            "technologies": {
                tech.value: self._tally_to_dict(tally, label=tech.label)
                for tech, tally in result.tallies.items()
            },
            "overall": self._tally_to_dict(result.overall),
            "projects": [self._project_to_dict(p) for p in result.projects],
            "summary_file": str(result.summary_file) if result.summary_file else None,
        }

    @staticmethod
    def _tally_to_dict(tally: CoverageTally, label: str = "") -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "projects": tally.projects,
            "covered_lines": tally.covered,
            "total_lines": tally.total,
            "percentage": tally.percentage if tally.has_data else None,
        }
        if label:
            data["label"] = label
        return data

    @staticmethod
    def _project_to_dict(result: ProjectCoverage) -> Dict[str, Any]:
        project = result.project
        return {
            "technology": project.technology.value,
            "kind": project.kind,
            "name": project.name,
            "marker": str(project.marker),
            "directory": str(project.directory),
            "repo_root": str(project.repo_root),
            "status": result.status.value,
            "covered_lines": result.covered if result.has_data else None,
            "total_lines": result.total if result.has_data else None,
            "percentage": result.percentage if result.has_data else None,
            "estimated": result.estimated,
            "message": result.message,
            "reports": [str(r) for r in result.reports],
        }
