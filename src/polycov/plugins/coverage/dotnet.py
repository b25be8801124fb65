""".NET coverage via ``dotnet test`` and the XPlat Code Coverage collector.

Reports are Cobertura files written below the results directory, one per
test project in the solution.
"""

from __future__ import annotations

import shutil
from typing import List

from polycov.core.errors import InvocationFailedError
from polycov.core.logging import get_logger
from polycov.core.models import LogicalProject, ProjectCoverage, RunContext, Technology
from polycov.plugins.coverage.base import CoveragePlugin, ToolRequirement
from polycov.plugins.coverage.reports import cobertura_parser
from polycov.plugins.utils import check_project_directory, find_reports

LOGGER = get_logger(__name__)

REPORT_NAME = "coverage.cobertura.xml"


class DotnetCoveragePlugin(CoveragePlugin):
    """Measures .NET solutions (``*.sln``)."""

    @property
    def name(self) -> str:
        return "dotnet"

    @property
    def technology(self) -> Technology:
        return Technology.DOTNET

    @property
    def requirements(self) -> List[ToolRequirement]:
        return [
            ToolRequirement("dotnet", "https://dotnet.microsoft.com/download"),
        ]

    def measure(self, project: LogicalProject, context: RunContext) -> ProjectCoverage:
        binary = self.ensure_binary(project)
        check_project_directory(project.directory)

        results_dir = context.project_results_dir(project)
        shutil.rmtree(results_dir, ignore_errors=True)
        results_dir.mkdir(parents=True, exist_ok=True)

        solution = project.marker.name
        LOGGER.info(f"{project.name}: restoring dependencies")
        restore = self.invoke([str(binary), "restore", solution], project, context, "dotnet-restore")
        if restore.returncode != 0:
            raise InvocationFailedError("dotnet restore", restore.returncode, "restore failed")

        cmd = [
            str(binary),
            "test",
            solution,
            "--collect:XPlat Code Coverage",
            f"--results-directory:{results_dir}",
            "--verbosity:quiet",
        ]
        cmd.extend(context.extra_args(self.technology))
        LOGGER.info(f"{project.name}: running tests with coverage")
        self.invoke(cmd, project, context, "dotnet-test")

        reports = find_reports(results_dir, REPORT_NAME)
        parser = cobertura_parser(context.config.pipeline.report_parser)
        return self.collect(project, context, parser, reports, copy=False)
