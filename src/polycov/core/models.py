from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from polycov.config.models import PolycovConfig
    from polycov.core.streaming import StreamHandler
    from polycov.core.tally import CoverageTally


class Technology(str, Enum):
    """Ecosystems polycov knows how to discover and measure.

    Declaration order is the order used for discovery, processing and reports.
    """

    DOTNET = "dotnet"
    JAVA = "java"
    KOTLIN = "kotlin"
    RUST = "rust"
    POSTGRESQL = "postgresql"
    WEB = "web"

    @property
    def label(self) -> str:
        """Human-readable name used in reports."""
        return TECHNOLOGY_LABELS[self]


TECHNOLOGY_LABELS: Dict[Technology, str] = {
    Technology.DOTNET: ".NET Projects",
    Technology.JAVA: "Java Projects",
    Technology.KOTLIN: "Kotlin/Gradle Projects",
    Technology.RUST: "Rust Projects",
    Technology.POSTGRESQL: "PostgreSQL Databases",
    Technology.WEB: "Web Projects (Nx/Node)",
}


class CoverageStatus(str, Enum):
    """Outcome of measuring a single logical project."""

    MEASURED = "measured"
    ESTIMATED = "estimated"
    SKIPPED = "skipped"
    NO_DATA = "no_data"
    FAILED = "failed"


@dataclass(frozen=True)
class ProjectCandidate:
    """A marker file (or marker directory) found by the tree walk."""

    path: Path
    technology: Technology
    kind: str

    @property
    def directory(self) -> Path:
        """Directory the candidate stands for."""
        if self.technology == Technology.POSTGRESQL:
            return self.path
        return self.path.parent


@dataclass(frozen=True)
class LogicalProject:
    """One (technology, repository root) pair, counted exactly once."""

    technology: Technology
    marker: Path
    directory: Path
    repo_root: Path
    kind: str

    @property
    def name(self) -> str:
        """Display name; solution files are named after the solution."""
        if self.technology == Technology.DOTNET:
            return self.marker.stem
        return self.directory.name

    def relative_to(self, workspace_root: Path) -> str:
        """Marker location relative to the workspace root, for display."""
        try:
            return str(self.marker.relative_to(workspace_root))
        except ValueError:
            return str(self.marker)

    def key(self, workspace_root: Path) -> str:
        """File-name-safe identifier that is unique within one technology.

        Built from the project's location relative to the workspace root, so
        same-named projects in different repositories never share a name.
        """
        location = self.directory
        if self.technology == Technology.DOTNET:
            location = self.marker.with_suffix("")
        try:
            parts = location.relative_to(workspace_root).parts
        except ValueError:
            parts = location.parts[1:] if location.is_absolute() else location.parts
        return "_".join(parts) or self.name


@dataclass(frozen=True)
class LineCounts:
    """The two numbers every report adapter extracts."""

    covered: int
    total: int

    def __add__(self, other: "LineCounts") -> "LineCounts":
        return LineCounts(self.covered + other.covered, self.total + other.total)


@dataclass
class ProjectCoverage:
    """Per-project adapter or estimator result."""

    project: LogicalProject
    status: CoverageStatus
    covered: int = 0
    total: int = 0
    message: str = ""
    reports: List[Path] = field(default_factory=list)
    estimated: bool = False

    @property
    def technology(self) -> Technology:
        return self.project.technology

    @property
    def has_data(self) -> bool:
        """Whether this result contributes to the tally."""
        return (
            self.status in (CoverageStatus.MEASURED, CoverageStatus.ESTIMATED)
            and self.total > 0
        )

    @property
    def percentage(self) -> str:
        return format_percentage(self.covered, self.total)


@dataclass
class RunContext:
    """Everything an adapter needs to measure one project."""

    workspace_root: Path
    output_dir: Path
    config: "PolycovConfig"
    stream_handler: Optional["StreamHandler"] = None
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @property
    def timeout(self) -> Optional[float]:
        return self.config.pipeline.timeout

    def results_dir(self, technology: Technology) -> Path:
        """Per-technology directory for raw report copies."""
        return self.output_dir / technology.value

    def project_results_dir(self, project: LogicalProject) -> Path:
        """Private results directory for one project."""
        return self.results_dir(project.technology) / project.key(self.workspace_root)

    def extra_args(self, technology: Technology) -> List[str]:
        tool_config = self.config.tools.get(technology.value)
        if tool_config is None:
            return []
        return list(tool_config.extra_args)


@dataclass
class CoverageReport:
    """Final result of a run, handed to reporters."""

    workspace_root: Path
    generated_at: datetime
    tallies: Dict[Technology, "CoverageTally"]
    overall: "CoverageTally"
    projects: List[ProjectCoverage] = field(default_factory=list)
    summary_file: Optional[Path] = None

    @property
    def has_estimates(self) -> bool:
        return any(p.estimated and p.has_data for p in self.projects)


def format_percentage(covered: int, total: int) -> str:
    """Coverage percentage with two decimals; "0.00" when total is 0."""
    if total <= 0:
        return "0.00"
    return f"{covered / total * 100:.2f}"
