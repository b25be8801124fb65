"""Typed configuration for polycov runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from polycov.core.models import Technology

DEFAULT_OUTPUT_DIR = "coverage-results-complete"
DEFAULT_EXCLUDE_DIRS = [".git", "node_modules", "target", "build"]
DEFAULT_MAX_REPO_DEPTH = 20
DEFAULT_ASSERTIONS_PER_ROUTINE = 4

REPORT_PARSER_MODES = ("auto", "structured", "pattern")


@dataclass
class OutputConfig:
    """Where and how results are written."""

    dir: str = DEFAULT_OUTPUT_DIR
    format: str = "table"
    write_summary: bool = True

    def resolve_dir(self, workspace_root: Path) -> Path:
        """Results directory; relative paths are taken from the workspace root."""
        output = Path(self.dir).expanduser()
        return output if output.is_absolute() else workspace_root / output


@dataclass
class DiscoveryConfig:
    """Tree walk settings."""

    technologies: List[Technology] = field(default_factory=lambda: list(Technology))
    exclude_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    ignore: List[str] = field(default_factory=list)
    # Upper bound on ancestor hops when resolving a repository root.
    max_repo_depth: int = DEFAULT_MAX_REPO_DEPTH


@dataclass
class PipelineConfig:
    """Execution settings for adapter invocations."""

    max_workers: int = 1
    timeout: Optional[float] = None
    report_parser: str = "auto"


@dataclass
class SqlConfig:
    """Conventions for the heuristic database estimator."""

    # Assumed average number of assertion calls per tested routine.
    assertions_per_routine: int = DEFAULT_ASSERTIONS_PER_ROUTINE
    scheme_dir_names: List[str] = field(default_factory=lambda: ["scheme"])
    scheme_dir_suffix: str = ".scheme"
    routines_dir: str = "routines"
    tests_dir: str = "tests"


@dataclass
class ToolConfig:
    """Per-technology tool options."""

    extra_args: List[str] = field(default_factory=list)


@dataclass
class PolycovConfig:
    """Complete polycov configuration."""

    output: OutputConfig = field(default_factory=OutputConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    sql: SqlConfig = field(default_factory=SqlConfig)
    tools: Dict[str, ToolConfig] = field(default_factory=dict)

    # Where the settings came from, e.g. ["project:/ws/.polycov.yml", "cli"].
    _config_sources: List[str] = field(default_factory=list, repr=False)

    @property
    def sources(self) -> List[str]:
        return list(self._config_sources)

    @property
    def technologies(self) -> List[Technology]:
        """Enabled technologies in enumeration order."""
        enabled = set(self.discovery.technologies)
        return [t for t in Technology if t in enabled]
