"""Java coverage via Maven and the JaCoCo plugin."""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

from polycov.core.logging import get_logger
from polycov.core.models import LogicalProject, ProjectCoverage, RunContext, Technology
from polycov.plugins.coverage.base import CoveragePlugin, ToolRequirement
from polycov.plugins.coverage.reports import jacoco_parser
from polycov.plugins.utils import check_project_directory

LOGGER = get_logger(__name__)

JACOCO_REPORT = Path("target") / "site" / "jacoco" / "jacoco.xml"


class MavenCoveragePlugin(CoveragePlugin):
    """Measures Maven projects (``pom.xml``)."""

    @property
    def name(self) -> str:
        return "maven"

    @property
    def technology(self) -> Technology:
        return Technology.JAVA

    @property
    def requirements(self) -> List[ToolRequirement]:
        return [ToolRequirement("mvn", "https://maven.apache.org/install.html")]

    def measure(self, project: LogicalProject, context: RunContext) -> ProjectCoverage:
        binary = self.ensure_binary(project)
        check_project_directory(project.directory)

        cmd = [str(binary), "clean", "test", "jacoco:report", "-DskipTests=false", "-B"]
        cmd.extend(context.extra_args(self.technology))
        LOGGER.info(f"{project.name}: running tests with coverage")
        self.invoke(cmd, project, context, "maven-jacoco")

        reports, modules = self._find_reports(project.directory)
        parser = jacoco_parser(context.config.pipeline.report_parser)
        return self.collect(project, context, parser, reports, modules)

    def _find_reports(self, project_dir: Path) -> Tuple[List[Path], List[str]]:
        """The project's own report plus those of direct child modules."""
        reports: List[Path] = []
        modules: List[str] = []

        own = project_dir / JACOCO_REPORT
        if own.is_file():
            reports.append(own)
            modules.append("")

        for child in sorted(project_dir.iterdir()):
            if not child.is_dir() or not (child / "pom.xml").is_file():
                continue
            report = child / JACOCO_REPORT
            if report.is_file():
                reports.append(report)
                modules.append(child.name)

        return reports, modules
