"""Marker files per technology and the cheap textual filters applied to them."""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from polycov.core.logging import get_logger
from polycov.core.models import ProjectCandidate, Technology
from polycov.discovery.repository import is_in_nx_workspace

LOGGER = get_logger(__name__)

KIND_NX = "nx"
KIND_NODE = "node"

CARGO_WORKSPACE_TABLE = "[workspace]"
CARGO_WORKSPACE_MEMBER = "workspace = "
NODE_TEST_SCRIPTS = ('"test"', '"test:cov"')


@dataclass(frozen=True)
class MarkerRule:
    """How one kind of project announces itself on disk."""

    technology: Technology
    patterns: Tuple[str, ...]
    kind: str
    directory: bool = False
    accept: Optional[Callable[[ProjectCandidate, Path], bool]] = None

    def matches(self, name: str) -> bool:
        return any(fnmatch.fnmatchcase(name, p) for p in self.patterns)


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        LOGGER.warning(f"Cannot read {path}: {e}")
        return None


def is_countable_cargo_manifest(candidate: ProjectCandidate, workspace_root: Path) -> bool:
    """A Cargo.toml counts unless it only declares workspace membership.

    Workspace members are measured through the workspace root manifest.
    """
    text = _read_text(candidate.path)
    if text is None:
        return False
    return CARGO_WORKSPACE_TABLE in text or CARGO_WORKSPACE_MEMBER not in text


def is_testable_node_package(candidate: ProjectCandidate, workspace_root: Path) -> bool:
    """A package.json counts if it has a test script and is not part of Nx."""
    if is_in_nx_workspace(candidate.path, workspace_root):
        LOGGER.debug(f"Skipping {candidate.path}: inside an Nx workspace")
        return False
    text = _read_text(candidate.path)
    if text is None:
        return False
    return any(script in text for script in NODE_TEST_SCRIPTS)


MARKER_RULES: List[MarkerRule] = [
    MarkerRule(Technology.DOTNET, ("*.sln",), Technology.DOTNET.value),
    MarkerRule(Technology.JAVA, ("pom.xml",), Technology.JAVA.value),
    MarkerRule(Technology.KOTLIN, ("settings.gradle.kts",), Technology.KOTLIN.value),
    MarkerRule(
        Technology.RUST,
        ("Cargo.toml",),
        Technology.RUST.value,
        accept=is_countable_cargo_manifest,
    ),
    MarkerRule(
        Technology.POSTGRESQL,
        ("*.database", "*-database"),
        Technology.POSTGRESQL.value,
        directory=True,
    ),
    MarkerRule(Technology.WEB, ("nx.json",), KIND_NX),
    MarkerRule(
        Technology.WEB,
        ("package.json",),
        KIND_NODE,
        accept=is_testable_node_package,
    ),
]


def rules_for(technologies: List[Technology]) -> List[MarkerRule]:
    enabled = set(technologies)
    return [rule for rule in MARKER_RULES if rule.technology in enabled]


def match_entry(
    rules: List[MarkerRule],
    directory: Path,
    name: str,
    is_dir: bool,
) -> List[ProjectCandidate]:
    """Candidates produced by one directory entry."""
    return [
        ProjectCandidate(path=directory / name, technology=rule.technology, kind=rule.kind)
        for rule in rules
        if rule.directory == is_dir and rule.matches(name)
    ]


def rule_for(candidate: ProjectCandidate) -> Optional[MarkerRule]:
    for rule in MARKER_RULES:
        if rule.technology == candidate.technology and rule.kind == candidate.kind:
            return rule
    return None


def accepts(candidate: ProjectCandidate, workspace_root: Path) -> bool:
    """Apply the technology's textual filter, if it has one."""
    rule = rule_for(candidate)
    if rule is None or rule.accept is None:
        return True
    return rule.accept(candidate, workspace_root)
