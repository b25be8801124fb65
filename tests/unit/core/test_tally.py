"""Tests for polycov.core.tally."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from polycov.core.models import CoverageStatus, LogicalProject, ProjectCoverage, Technology
from polycov.core.tally import CoverageAggregator, CoverageTally


def _result(technology: Technology, covered: int, total: int, name: str = "p",
            status: CoverageStatus = CoverageStatus.MEASURED) -> ProjectCoverage:
    directory = Path("/ws") / name
    project = LogicalProject(
        technology=technology,
        marker=directory / "marker",
        directory=directory,
        repo_root=directory,
        kind=technology.value,
    )
    return ProjectCoverage(project=project, status=status, covered=covered, total=total)


class TestCoverageTally:
    """Tests for CoverageTally."""

    def test_empty_tally_reports_zero(self) -> None:
        assert CoverageTally().percentage == "0.00"

    def test_has_data_once_a_project_is_added(self) -> None:
        tally = CoverageTally()
        assert not tally.has_data
        tally.add(0, 10)
        assert tally.has_data

    def test_percentage_has_two_decimals(self) -> None:
        tally = CoverageTally()
        tally.add(1, 3)
        assert tally.percentage == "33.33"

    def test_add_counts_projects(self) -> None:
        tally = CoverageTally()
        tally.add(10, 20)
        tally.add(5, 10)
        assert (tally.projects, tally.covered, tally.total) == (2, 15, 30)

    def test_rejects_negative_counts(self) -> None:
        with pytest.raises(ValueError):
            CoverageTally().add(-1, 10)


class TestCoverageAggregator:
    """Tests for CoverageAggregator."""

    def test_aggregates_per_technology_and_overall(self) -> None:
        aggregator = CoverageAggregator()
        aggregator.add(_result(Technology.JAVA, 80, 100, "a"))
        aggregator.add(_result(Technology.JAVA, 20, 100, "b"))
        aggregator.add(_result(Technology.RUST, 50, 50, "c"))

        java = aggregator.tally(Technology.JAVA)
        assert (java.projects, java.covered, java.total) == (2, 100, 200)
        assert java.percentage == "50.00"

        overall = aggregator.overall
        assert (overall.projects, overall.covered, overall.total) == (3, 150, 250)
        assert overall.percentage == "60.00"

    def test_order_of_additions_does_not_matter(self) -> None:
        results = [
            _result(Technology.JAVA, 3, 7, "a"),
            _result(Technology.WEB, 11, 13, "b"),
            _result(Technology.JAVA, 1, 9, "c"),
        ]
        forward = CoverageAggregator()
        backward = CoverageAggregator()
        for r in results:
            forward.add(r)
        for r in reversed(results):
            backward.add(r)

        assert forward.tallies == backward.tallies
        assert forward.overall == backward.overall

    def test_results_without_data_are_not_counted(self) -> None:
        aggregator = CoverageAggregator()
        assert aggregator.add(_result(Technology.DOTNET, 0, 0, "skipped", CoverageStatus.SKIPPED)) is False
        assert aggregator.add(_result(Technology.DOTNET, 0, 0, "empty")) is False
        assert aggregator.add(_result(Technology.DOTNET, 5, 10, "ok")) is True

        tally = aggregator.tally(Technology.DOTNET)
        assert (tally.projects, tally.total) == (1, 10)
        assert len(aggregator.results) == 3
        assert len(aggregator.results_with_status(CoverageStatus.SKIPPED)) == 1

    def test_technology_without_data_shows_zero(self) -> None:
        aggregator = CoverageAggregator([Technology.KOTLIN])
        assert aggregator.tally(Technology.KOTLIN).percentage == "0.00"
        assert aggregator.overall.percentage == "0.00"
        assert not aggregator.tally(Technology.KOTLIN).has_data
        assert not aggregator.overall.has_data

    def test_estimated_results_are_counted(self) -> None:
        aggregator = CoverageAggregator()
        aggregator.add(_result(Technology.POSTGRESQL, 30, 100, "db", CoverageStatus.ESTIMATED))
        assert aggregator.tally(Technology.POSTGRESQL).covered == 30

    def test_tallies_follow_technology_order(self) -> None:
        aggregator = CoverageAggregator([Technology.WEB, Technology.DOTNET, Technology.RUST])
        assert list(aggregator.tallies) == [Technology.DOTNET, Technology.RUST, Technology.WEB]

    def test_concurrent_adds(self) -> None:
        aggregator = CoverageAggregator()

        def worker(offset: int) -> None:
            for i in range(50):
                aggregator.add(_result(Technology.WEB, 1, 2, f"p{offset}-{i}"))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        tally = aggregator.tally(Technology.WEB)
        assert (tally.projects, tally.covered, tally.total) == (200, 200, 400)
