"""Kotlin coverage via Gradle and the ``jacocoTestReport`` task.

Multi-module builds produce one report per module; they are summed.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from polycov.core.logging import get_logger
from polycov.core.models import LogicalProject, ProjectCoverage, RunContext, Technology
from polycov.plugins.coverage.base import CoveragePlugin, ToolRequirement
from polycov.plugins.coverage.reports import jacoco_parser
from polycov.plugins.utils import check_project_directory, find_binary, find_reports, module_name

LOGGER = get_logger(__name__)

GRADLE_WRAPPER = "gradlew"
REPORT_NAME = "jacocoTestReport.xml"
REPORT_PARENT = "build/reports/jacoco/test"
GRADLE_INSTALL_HINT = "https://gradle.org/install/"


class GradleCoveragePlugin(CoveragePlugin):
    """Measures Gradle Kotlin DSL builds (``settings.gradle.kts``)."""

    @property
    def name(self) -> str:
        return "gradle"

    @property
    def technology(self) -> Technology:
        return Technology.KOTLIN

    @property
    def requirements(self) -> List[ToolRequirement]:
        return [ToolRequirement("gradle", GRADLE_INSTALL_HINT)]

    def ensure_binary(self, project: Optional[LogicalProject] = None) -> Optional[Path]:
        """Prefer the project's Gradle wrapper, else ``gradle`` on PATH."""
        return find_binary(
            "gradle",
            GRADLE_INSTALL_HINT,
            project_dir=project.directory if project is not None else None,
            local_name=GRADLE_WRAPPER,
        )

    def measure(self, project: LogicalProject, context: RunContext) -> ProjectCoverage:
        binary = self.ensure_binary(project)
        check_project_directory(project.directory)

        cmd = [str(binary), "clean", "test", "jacocoTestReport"]
        cmd.extend(context.extra_args(self.technology))
        LOGGER.info(f"{project.name}: running tests with coverage")
        self.invoke(cmd, project, context, "gradle-jacoco")

        reports = find_reports(project.directory, REPORT_NAME, parent_suffix=REPORT_PARENT)
        # build/reports/jacoco/test/jacocoTestReport.xml
        modules = [module_name(r, project.directory, marker_parts=5) for r in reports]
        parser = jacoco_parser(context.config.pipeline.report_parser)
        return self.collect(project, context, parser, reports, modules)
