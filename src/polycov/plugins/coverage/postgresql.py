"""Heuristic coverage for PostgreSQL database projects.

SQL routines have no instrumentation tooling, so coverage is estimated
statically. A routine file counts as covered when any routine it declares is
named in the project's test files. When no routine is named but the tests
contain assertion calls, coverage is estimated from assertion density
instead. Every result of this plugin is an estimate and is labeled as one.

Layout conventions (configurable through ``sql:``)::

    <name>.database/
        scheme/                 # or <anything>.scheme/
            routines/**/*.sql   # routine definitions
            tests/**/*.sql      # tests
            **/*test*.sql       # tests anywhere in the scheme tree
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from polycov.config.models import SqlConfig
from polycov.core.errors import ReportMissingError
from polycov.core.logging import get_logger
from polycov.core.models import (
    LineCounts,
    LogicalProject,
    ProjectCoverage,
    RunContext,
    Technology,
)
from polycov.plugins.coverage.base import CoveragePlugin
from polycov.plugins.utils import check_project_directory

LOGGER = get_logger(__name__)

SQL_SUFFIX = ".sql"
TEST_NAME_HINTS = ("test", "spec")

ROUTINE_DECLARATION = re.compile(
    r"\bCREATE\s+(?:OR\s+REPLACE\s+)?(?:FUNCTION|PROCEDURE)\b",
    re.IGNORECASE,
)
ROUTINE_NAME = re.compile(
    r"\bCREATE\s+(?:OR\s+REPLACE\s+)?(?:FUNCTION|PROCEDURE)\s+([\w.\"]+)",
    re.IGNORECASE,
)
ASSERTION_CALL = re.compile(r"\b(?:assert_|test_utils\.assert_)\w+", re.IGNORECASE)


@dataclass(frozen=True)
class RoutineName:
    """A declared routine name, schema-qualified and bare."""

    qualified: str
    bare: str

    @classmethod
    def parse(cls, raw: str) -> Optional["RoutineName"]:
        qualified = raw.replace('"', "").strip(".").lower()
        if not qualified:
            return None
        return cls(qualified=qualified, bare=qualified.rsplit(".", 1)[-1])


@dataclass
class RoutineCoverageFact:
    """One routine definition file and its covered verdict."""

    path: Path
    names: List[RoutineName]
    line_count: int
    covered: bool = False


@dataclass
class SqlCoverageEstimate:
    """Outcome of estimating one database project."""

    routines: List[RoutineCoverageFact] = field(default_factory=list)
    test_files: List[Path] = field(default_factory=list)
    covered_lines: int = 0
    assertion_count: int = 0
    fallback_applied: bool = False
    estimated_routines: int = 0

    @property
    def routine_count(self) -> int:
        return len(self.routines)

    @property
    def total_lines(self) -> int:
        return sum(r.line_count for r in self.routines)

    @property
    def counts(self) -> LineCounts:
        return LineCounts(min(self.covered_lines, self.total_lines), self.total_lines)


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        LOGGER.warning(f"Cannot read {path}: {e}")
        return ""


def _word_pattern(name: str) -> "re.Pattern[str]":
    return re.compile(r"\b" + re.escape(name) + r"\b")


class SqlCoverageEstimator:
    """Static coverage estimate for one database directory."""

    def __init__(self, config: Optional[SqlConfig] = None) -> None:
        self.config = config or SqlConfig()
        if self.config.assertions_per_routine < 1:
            raise ValueError("assertions_per_routine must be at least 1")

    def is_scheme_dir(self, name: str) -> bool:
        return name in self.config.scheme_dir_names or name.endswith(self.config.scheme_dir_suffix)

    def classify(self, relative: Path) -> Optional[str]:
        """Return 'routine', 'test' or None for a ``.sql`` path inside a project."""
        parts = relative.parts
        directories = parts[:-1]
        in_scheme_tree = False
        for index, name in enumerate(directories):
            if not self.is_scheme_dir(name):
                continue
            in_scheme_tree = True
            child = directories[index + 1] if index + 1 < len(directories) else None
            if child == self.config.routines_dir:
                return "routine"
            if child == self.config.tests_dir:
                return "test"

        file_name = parts[-1].lower()
        if in_scheme_tree and any(hint in file_name for hint in TEST_NAME_HINTS):
            return "test"
        return None

    def collect(self, db_dir: Path) -> Tuple[List[Path], List[Path]]:
        """Routine candidates and test files below ``db_dir``, sorted."""
        routine_files: List[Path] = []
        test_files: List[Path] = []
        for dirpath, dirnames, filenames in os.walk(db_dir):
            dirnames.sort()
            for file_name in sorted(filenames):
                if not file_name.lower().endswith(SQL_SUFFIX):
                    continue
                path = Path(dirpath) / file_name
                kind = self.classify(path.relative_to(db_dir))
                if kind == "routine":
                    routine_files.append(path)
                elif kind == "test":
                    test_files.append(path)
        return routine_files, test_files

    def read_routine(self, path: Path) -> Optional[RoutineCoverageFact]:
        """Build the fact for a routine file, or None if it declares no routine."""
        text = _read(path)
        if not ROUTINE_DECLARATION.search(text):
            return None
        names: List[RoutineName] = []
        for raw in ROUTINE_NAME.findall(text):
            name = RoutineName.parse(raw)
            if name is not None and name not in names:
                names.append(name)
        return RoutineCoverageFact(path=path, names=names, line_count=len(text.splitlines()))

    def estimate(self, db_dir: Path) -> Optional[SqlCoverageEstimate]:
        """Estimate coverage of one database project.

        Returns:
            The estimate, or None if the project has no routine files.
        """
        routine_files, test_files = self.collect(db_dir)
        result = SqlCoverageEstimate(test_files=test_files)
        for path in routine_files:
            fact = self.read_routine(path)
            if fact is not None:
                result.routines.append(fact)

        if not result.routines:
            return None
        if not test_files:
            return result

        corpus = "\n".join(_read(p) for p in test_files).lower()
        for fact in result.routines:
            fact.covered = any(
                _word_pattern(name.qualified).search(corpus) or _word_pattern(name.bare).search(corpus)
                for name in fact.names
            )
        result.covered_lines = sum(f.line_count for f in result.routines if f.covered)

        if result.covered_lines == 0:
            result.assertion_count = len(ASSERTION_CALL.findall(corpus))
            if result.assertion_count > 0:
                self._apply_assertion_fallback(result)

        return result

    def _apply_assertion_fallback(self, result: SqlCoverageEstimate) -> None:
        k = self.config.assertions_per_routine
        estimated = result.assertion_count // k
        estimated = max(1, min(estimated, result.routine_count))
        average_lines = result.total_lines // result.routine_count
        result.estimated_routines = estimated
        result.covered_lines = min(estimated * average_lines, result.total_lines)
        result.fallback_applied = True
        LOGGER.info(
            f"Fallback coverage applied from assertions: {result.assertion_count} asserts "
            f"across ~{estimated} routines"
        )


class PostgresCoveragePlugin(CoveragePlugin):
    """Estimates coverage of ``*.database`` / ``*-database`` directories."""

    @property
    def name(self) -> str:
        return "sql-estimator"

    @property
    def technology(self) -> Technology:
        return Technology.POSTGRESQL

    def measure(self, project: LogicalProject, context: RunContext) -> ProjectCoverage:
        check_project_directory(project.directory)
        estimator = SqlCoverageEstimator(context.config.sql)

        estimate = estimator.estimate(project.directory)
        if estimate is None:
            raise ReportMissingError("No SQL functions/procedures found")

        LOGGER.info(
            f"{project.name}: {estimate.routine_count} routine file(s), "
            f"{len(estimate.test_files)} test file(s)"
        )
        if not estimate.test_files:
            message = "No tests detected, assuming 0% coverage"
            LOGGER.warning(f"{project.name}: {message}")
        elif estimate.fallback_applied:
            message = (
                f"estimated from {estimate.assertion_count} assertion(s) "
                f"across ~{estimate.estimated_routines} routine(s)"
            )
        else:
            covered = sum(1 for r in estimate.routines if r.covered)
            message = f"{covered}/{estimate.routine_count} routine file(s) referenced by tests"

        return self.measured(project, estimate.counts, estimated=True, message=message)
