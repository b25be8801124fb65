"""Coverage accumulation per technology and overall.

Tallies only ever grow. Results without data (skipped tools, missing reports,
databases without routines) are kept for reporting but never enter a
denominator, so untested ecosystems do not show up as 0%.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from polycov.core.models import (
    CoverageStatus,
    ProjectCoverage,
    Technology,
    format_percentage,
)


@dataclass
class CoverageTally:
    """Project count, covered units and total units for one technology."""

    projects: int = 0
    covered: int = 0
    total: int = 0

    @property
    def has_data(self) -> bool:
        """Whether any project contributed to this tally."""
        return self.projects > 0

    @property
    def percentage(self) -> str:
        return format_percentage(self.covered, self.total)

    def add(self, covered: int, total: int) -> None:
        if covered < 0 or total < 0:
            raise ValueError("Coverage counts cannot be negative")
        self.projects += 1
        self.covered += covered
        self.total += total

    def merge(self, other: "CoverageTally") -> None:
        self.projects += other.projects
        self.covered += other.covered
        self.total += other.total


class CoverageAggregator:
    """Folds per-project results into per-technology and grand totals.

    One instance per run. ``add`` is safe to call from worker threads.
    """

    def __init__(self, technologies: Optional[Iterable[Technology]] = None) -> None:
        techs = list(technologies) if technologies is not None else list(Technology)
        self._tallies: Dict[Technology, CoverageTally] = {t: CoverageTally() for t in techs}
        self._results: List[ProjectCoverage] = []
        self._lock = threading.Lock()

    def add(self, result: ProjectCoverage) -> bool:
        """Record a result. Returns True if it contributed to the totals."""
        with self._lock:
            self._results.append(result)
            if not result.has_data:
                return False
            tally = self._tallies.setdefault(result.technology, CoverageTally())
            tally.add(min(result.covered, result.total), result.total)
            return True

    def tally(self, technology: Technology) -> CoverageTally:
        with self._lock:
            return self._tallies.setdefault(technology, CoverageTally())

    @property
    def tallies(self) -> Dict[Technology, CoverageTally]:
        """Per-technology tallies in enumeration order."""
        with self._lock:
            return {t: self._tallies[t] for t in Technology if t in self._tallies}

    @property
    def overall(self) -> CoverageTally:
        grand = CoverageTally()
        for tally in self.tallies.values():
            grand.merge(tally)
        return grand

    @property
    def results(self) -> List[ProjectCoverage]:
        with self._lock:
            return list(self._results)

    def results_with_status(self, status: CoverageStatus) -> List[ProjectCoverage]:
        return [r for r in self.results if r.status == status]
