"""Web coverage for Nx workspaces and standalone Node packages.

Both kinds install dependencies with npm, run their tests with coverage and
are measured from every ``lcov.info`` below a ``coverage`` directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from polycov.core.logging import get_logger
from polycov.core.models import LogicalProject, ProjectCoverage, RunContext, Technology
from polycov.discovery.markers import KIND_NX
from polycov.plugins.coverage.base import CoveragePlugin, ToolRequirement
from polycov.plugins.coverage.reports import LcovParser
from polycov.plugins.utils import check_project_directory, find_reports

LOGGER = get_logger(__name__)

LOCKFILES = ("package-lock.json", "npm-shrinkwrap.json")
LCOV_REPORT = "lcov.info"
COVERAGE_DIR = "coverage"
NODE_INSTALL_HINT = "https://nodejs.org/en/download"


class WebCoveragePlugin(CoveragePlugin):
    """Measures Nx workspaces (``nx.json``) and Node packages (``package.json``)."""

    @property
    def name(self) -> str:
        return "web"

    @property
    def technology(self) -> Technology:
        return Technology.WEB

    @property
    def requirements(self) -> List[ToolRequirement]:
        return [
            ToolRequirement("node", NODE_INSTALL_HINT),
            ToolRequirement("npm", NODE_INSTALL_HINT),
        ]

    def measure(self, project: LogicalProject, context: RunContext) -> ProjectCoverage:
        self.ensure_binary(project)
        npm = self.requirements[1].locate()
        check_project_directory(project.directory)

        self._install(str(npm), project, context)
        extra_args = context.extra_args(self.technology)

        if project.kind == KIND_NX:
            LOGGER.info(f"{project.name}: running Nx tests with coverage (configuration=ci)")
            npx = npm.with_name("npx")
            cmd = [str(npx) if npx.is_file() else "npx"]
            cmd += ["--yes", "nx", "run-many", "-t", "test", "--configuration=ci"]
            self.invoke(cmd + extra_args, project, context, "nx-test")
        else:
            result = self.invoke(
                [str(npm), "run", "-s", "test:cov"] + extra_args,
                project,
                context,
                "npm-test-cov",
                warn_on_failure=False,
            )
            if result.returncode != 0:
                LOGGER.info(f"{project.name}: running npm test with coverage flags")
                cmd = [str(npm), "test", "--", "--coverage", "--watchAll=false"]
                self.invoke(cmd + extra_args, project, context, "npm-test")

        reports = self._find_lcov_reports(project.directory)
        modules = [self._module(r, project.directory) for r in reports]
        return self.collect(project, context, LcovParser(), reports, modules)

    def _install(self, npm: str, project: LogicalProject, context: RunContext) -> None:
        if any((project.directory / name).is_file() for name in LOCKFILES):
            cmd = [npm, "ci"]
        else:
            cmd = [npm, "install"]
        LOGGER.info(f"{project.name}: installing dependencies ({' '.join(cmd[1:])})")
        result = self.invoke(cmd, project, context, "npm-install", warn_on_failure=False)
        if result.returncode != 0:
            LOGGER.warning(f"{project.name}: npm install failed; attempting to proceed to tests")

    @staticmethod
    def _find_lcov_reports(project_dir: Path) -> List[Path]:
        return [
            report
            for report in find_reports(project_dir, LCOV_REPORT, exclude_dirs=["node_modules"])
            if COVERAGE_DIR in report.relative_to(project_dir).parts[:-1]
        ]

    @staticmethod
    def _module(report: Path, project_dir: Path) -> str:
        parts = report.relative_to(project_dir).parts[:-1]
        return "_".join(p for p in parts if p != COVERAGE_DIR)
