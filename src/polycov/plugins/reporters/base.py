"""Base class for reporter plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO

from polycov.core.models import CoverageReport
from polycov.core.tally import CoverageTally

NOT_AVAILABLE = "n/a"


def display_percentage(tally: CoverageTally) -> str:
    """``NN.NN%``, or ``n/a`` when no project contributed data."""
    if not tally.has_data:
        return NOT_AVAILABLE
    return f"{tally.percentage}%"


class ReporterPlugin(ABC):
    """Base class for all reporter plugins.

    Reporters render a finished CoverageReport in one output format.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Reporter identifier (e.g., 'json', 'table', 'summary')."""

    @abstractmethod
    def report(self, result: CoverageReport, output: IO[str]) -> None:
        """Format and write the coverage report.

        Args:
            result: The aggregated coverage report to format.
            output: Output stream to write the formatted result.
        """
