"""Base class for coverage plugins.

Every technology has one coverage plugin. A plugin verifies its tools, runs
the project's tests with coverage and reads the resulting reports. Plugins
signal problems by raising ``polycov.core.errors`` exceptions from
``measure()``; ``run()`` turns those into a per-project status so that one
project never aborts the run.
"""

from __future__ import annotations

import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from polycov.core.errors import (
    InvocationFailedError,
    ProjectDirectoryError,
    ReportMissingError,
    ToolUnavailableError,
)
from polycov.core.logging import get_logger
from polycov.core.models import (
    CoverageStatus,
    LineCounts,
    LogicalProject,
    ProjectCoverage,
    RunContext,
    Technology,
)
from polycov.core.subprocess_runner import run_tool
from polycov.plugins.coverage.reports import ReportParser, sum_reports
from polycov.plugins.utils import copy_report, find_binary, get_cli_version

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class ToolRequirement:
    """An external executable a plugin depends on."""

    binary: str
    install_hint: str
    version_flag: str = "--version"

    def locate(self) -> Path:
        return find_binary(self.binary, self.install_hint)


class CoveragePlugin(ABC):
    """Abstract base class for coverage plugins."""

    def __init__(self, **kwargs) -> None:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique plugin identifier (e.g. 'maven', 'tarpaulin')."""

    @property
    @abstractmethod
    def technology(self) -> Technology:
        """Technology whose projects this plugin measures."""

    @property
    def requirements(self) -> List[ToolRequirement]:
        """External tools that must be on PATH."""
        return []

    def ensure_binary(self, project: Optional[LogicalProject] = None) -> Optional[Path]:
        """Verify the required tools are installed.

        Returns:
            Path to the primary tool, or None for plugins without tools.

        Raises:
            ToolUnavailableError: If a required tool cannot be found.
        """
        primary: Optional[Path] = None
        for requirement in self.requirements:
            path = requirement.locate()
            if primary is None:
                primary = path
        return primary

    def get_version(self) -> str:
        if not self.requirements:
            return "built-in"
        try:
            binary = self.requirements[0].locate()
        except ToolUnavailableError:
            return "unknown"
        return get_cli_version(binary, self.requirements[0].version_flag)

    @abstractmethod
    def measure(self, project: LogicalProject, context: RunContext) -> ProjectCoverage:
        """Measure one project.

        Raises:
            ToolUnavailableError: A required tool is missing.
            ProjectDirectoryError: The project directory cannot be used.
            InvocationFailedError: A preparatory step failed.
            ReportMissingError: No usable report was produced.
        """

    def run(self, project: LogicalProject, context: RunContext) -> ProjectCoverage:
        """Measure one project, converting expected failures into statuses."""
        LOGGER.info(f"Processing {self.technology.value} project {project.name} ({project.directory})")
        try:
            result = self.measure(project, context)
        except ToolUnavailableError as e:
            LOGGER.warning(f"{project.name}: {e}. Skipping.")
            return self._status(project, CoverageStatus.SKIPPED, str(e))
        except ProjectDirectoryError as e:
            LOGGER.error(f"{project.name}: {e}")
            return self._status(project, CoverageStatus.FAILED, str(e))
        except InvocationFailedError as e:
            LOGGER.error(f"{project.name}: {e}")
            return self._status(project, CoverageStatus.NO_DATA, str(e))
        except ReportMissingError as e:
            LOGGER.warning(f"{project.name}: {e}")
            return self._status(project, CoverageStatus.NO_DATA, str(e))
        except subprocess.TimeoutExpired as e:
            message = f"{e.cmd[0] if e.cmd else 'tool'} timed out after {e.timeout} seconds"
            LOGGER.warning(f"{project.name}: {message}")
            return self._status(project, CoverageStatus.NO_DATA, message)

        if result.has_data:
            LOGGER.info(
                f"{project.name}: {result.percentage}% ({result.covered}/{result.total} lines)"
            )
        return result

    def invoke(
        self,
        cmd: List[str],
        project: LogicalProject,
        context: RunContext,
        tool_name: Optional[str] = None,
        warn_on_failure: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run a tool in the project directory with the run's limits.

        A non-zero exit is returned, not raised; reports may still have been
        written.
        """
        label = tool_name or f"{self.name}:{project.name}"
        result = run_tool(
            cmd,
            cwd=project.directory,
            tool_name=label,
            stream_handler=context.stream_handler,
            timeout=context.timeout,
            cancel_event=context.cancel_event,
        )
        if result.returncode != 0 and warn_on_failure:
            LOGGER.warning(
                f"{project.name}: tests failed or no tests found "
                f"({cmd[0]} exit code: {result.returncode})"
            )
        return result

    def collect(
        self,
        project: LogicalProject,
        context: RunContext,
        parser: ReportParser,
        reports: List[Path],
        modules: Optional[List[str]] = None,
        copy: bool = True,
    ) -> ProjectCoverage:
        """Sum reports into a measured result and copy them to the results dir.

        Reports a tool already wrote into the results directory are used in
        place (``copy=False``).

        Raises:
            ReportMissingError: If no report exists or none has a positive total.
        """
        if not reports:
            raise ReportMissingError("No coverage report generated")

        counts, used = sum_reports(parser, reports)
        if counts is None or counts.total <= 0:
            raise ReportMissingError("Coverage report is empty")

        LOGGER.info(f"{project.name}: parsed {len(used)} coverage report(s)")
        if not copy:
            return self.measured(project, counts, used)

        results_dir = context.results_dir(self.technology)
        key = project.key(context.workspace_root)
        module_of = dict(zip(reports, modules)) if modules else {}
        copies: List[Path] = []
        for report in used:
            copied = copy_report(report, results_dir, key, module_of.get(report, ""))
            if copied is not None:
                copies.append(copied)

        return self.measured(project, counts, copies)

    def measured(
        self,
        project: LogicalProject,
        counts: LineCounts,
        reports: Optional[List[Path]] = None,
        estimated: bool = False,
        message: str = "",
    ) -> ProjectCoverage:
        return ProjectCoverage(
            project=project,
            status=CoverageStatus.ESTIMATED if estimated else CoverageStatus.MEASURED,
            covered=min(counts.covered, counts.total),
            total=counts.total,
            message=message,
            reports=list(reports or []),
            estimated=estimated,
        )

    @staticmethod
    def _status(project: LogicalProject, status: CoverageStatus, message: str) -> ProjectCoverage:
        return ProjectCoverage(project=project, status=status, message=message)
