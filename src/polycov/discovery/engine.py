"""Project discovery and per-repository deduplication.

One sorted, top-down walk of the workspace collects marker candidates for
every enabled technology. Each technology's candidates are then classified in
walk order: submodule checkouts are dropped, each survivor is mapped to its
repository root, and only the first candidate per (technology, root) becomes a
logical project.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set

from polycov.config.ignore import IgnorePatterns, load_ignore_patterns
from polycov.config.models import PolycovConfig
from polycov.core.logging import get_logger
from polycov.core.models import LogicalProject, ProjectCandidate, Technology
from polycov.discovery.markers import MarkerRule, accepts, match_entry, rules_for
from polycov.discovery.repository import RepoRootResolver, is_submodule

LOGGER = get_logger(__name__)


class TechnologyProjectSet:
    """Logical projects of one technology, at most one per repository root."""

    def __init__(self, technology: Technology) -> None:
        self.technology = technology
        self._roots: Set[Path] = set()
        self._projects: List[LogicalProject] = []

    def __contains__(self, repo_root: Path) -> bool:
        return repo_root in self._roots

    def __len__(self) -> int:
        return len(self._projects)

    def add(self, project: LogicalProject) -> bool:
        """Record a project. Returns False if its root was already taken."""
        if project.technology != self.technology:
            raise ValueError(
                f"Cannot add {project.technology.value} project to {self.technology.value} set"
            )
        if project.repo_root in self._roots:
            return False
        self._roots.add(project.repo_root)
        self._projects.append(project)
        return True

    @property
    def projects(self) -> List[LogicalProject]:
        return list(self._projects)


@dataclass
class DiscoveryStats:
    """Why candidates were dropped, per technology."""

    candidates: int = 0
    submodule: int = 0
    filtered: int = 0
    no_repo_root: int = 0
    duplicate: int = 0


@dataclass
class DiscoveryResult:
    """Logical projects per technology, in technology enumeration order."""

    workspace_root: Path
    projects: Dict[Technology, List[LogicalProject]] = field(default_factory=dict)
    stats: Dict[Technology, DiscoveryStats] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(len(p) for p in self.projects.values())

    def all_projects(self) -> List[LogicalProject]:
        return [p for projects in self.projects.values() for p in projects]


class ProjectDiscovery:
    """Finds the logical projects of a workspace."""

    def __init__(
        self,
        workspace_root: Path,
        config: Optional[PolycovConfig] = None,
        exclude_paths: Optional[List[Path]] = None,
    ) -> None:
        self.workspace_root = Path(os.path.abspath(workspace_root))
        self.config = config or PolycovConfig()
        self._exclude_dirs = set(self.config.discovery.exclude_dirs)
        self._exclude_paths = {Path(os.path.abspath(p)) for p in exclude_paths or []}
        self._ignore: IgnorePatterns = load_ignore_patterns(
            self.workspace_root, self.config.discovery.ignore
        )

    def discover(self, technologies: Optional[List[Technology]] = None) -> DiscoveryResult:
        """Walk the workspace and return deduplicated projects.

        Args:
            technologies: Restrict discovery to these technologies. Defaults to
                the technologies enabled in the configuration.
        """
        techs = technologies if technologies is not None else self.config.technologies
        techs = [t for t in Technology if t in set(techs)]
        rules = rules_for(techs)

        candidates: Dict[Technology, List[ProjectCandidate]] = {t: [] for t in techs}
        for candidate in self._walk(rules):
            candidates[candidate.technology].append(candidate)

        resolver = RepoRootResolver(
            self.workspace_root, max_depth=self.config.discovery.max_repo_depth
        )
        result = DiscoveryResult(workspace_root=self.workspace_root)
        for tech in techs:
            stats = DiscoveryStats(candidates=len(candidates[tech]))
            result.projects[tech] = self._classify(tech, candidates[tech], resolver, stats)
            result.stats[tech] = stats
            LOGGER.info(
                f"{tech.label}: {len(result.projects[tech])} project(s) "
                f"from {stats.candidates} marker(s)"
            )

        return result

    def _walk(self, rules: List[MarkerRule]) -> Iterator[ProjectCandidate]:
        """Yield marker candidates in deterministic top-down order."""
        if not rules:
            return

        for dirpath, dirnames, filenames in os.walk(self.workspace_root, topdown=True):
            current = Path(dirpath)
            dirnames[:] = sorted(
                d for d in dirnames if not self._is_excluded_dir(current / d, d)
            )

            entries = [(name, True) for name in dirnames]
            entries += [
                (name, False)
                for name in filenames
                if not self._ignore.matches(current / name, self.workspace_root)
            ]
            for name, is_dir in sorted(entries):
                yield from match_entry(rules, current, name, is_dir)

    def _is_excluded_dir(self, path: Path, name: str) -> bool:
        if name in self._exclude_dirs or path in self._exclude_paths:
            return True
        if self._ignore.matches(path, self.workspace_root, is_dir=True):
            LOGGER.debug(f"Ignoring directory {path}")
            return True
        return False

    def _classify(
        self,
        technology: Technology,
        candidates: List[ProjectCandidate],
        resolver: RepoRootResolver,
        stats: DiscoveryStats,
    ) -> List[LogicalProject]:
        project_set = TechnologyProjectSet(technology)

        for candidate in candidates:
            if is_submodule(candidate.path, self.workspace_root):
                LOGGER.debug(f"Skipping {candidate.path}: inside a git submodule")
                stats.submodule += 1
                continue

            if not accepts(candidate, self.workspace_root):
                stats.filtered += 1
                continue

            repo_root = resolver.resolve(candidate.directory)
            if repo_root is None:
                stats.no_repo_root += 1
                continue

            project = LogicalProject(
                technology=technology,
                marker=candidate.path,
                directory=candidate.directory,
                repo_root=repo_root,
                kind=candidate.kind,
            )
            if not project_set.add(project):
                LOGGER.debug(f"Skipping {candidate.path}: repository {repo_root} already counted")
                stats.duplicate += 1

        return project_set.projects


def discover_projects(
    workspace_root: Path,
    config: Optional[PolycovConfig] = None,
    technologies: Optional[List[Technology]] = None,
) -> Dict[Technology, List[LogicalProject]]:
    """Convenience wrapper returning only the per-technology project lists."""
    return ProjectDiscovery(workspace_root, config).discover(technologies).projects
