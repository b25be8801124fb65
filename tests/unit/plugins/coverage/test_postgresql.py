"""Tests for the PostgreSQL coverage estimator."""

from __future__ import annotations

from pathlib import Path

import pytest

from polycov.config.models import SqlConfig
from polycov.core.models import CoverageStatus, LineCounts, Technology
from polycov.plugins.coverage.postgresql import (
    PostgresCoveragePlugin,
    RoutineName,
    SqlCoverageEstimator,
)


def _routine(name: str, lines: int) -> str:
    body = [f"CREATE OR REPLACE FUNCTION {name}() RETURNS void AS $$"]
    body += ["BEGIN"] + ["  PERFORM 1;"] * (lines - 3) + ["END; $$ LANGUAGE plpgsql;"]
    return "\n".join(body) + "\n"


def _assertions(count: int) -> str:
    return "".join("SELECT test_utils.assert_equals(1, 1);\n" for _ in range(count))


class TestRoutineName:
    """Tests for RoutineName.parse."""

    def test_qualified(self) -> None:
        name = RoutineName.parse("public.get_user")
        assert name == RoutineName(qualified="public.get_user", bare="get_user")

    def test_quoted_identifiers(self) -> None:
        name = RoutineName.parse('"Billing"."Charge_Card"')
        assert name == RoutineName(qualified="billing.charge_card", bare="charge_card")

    def test_empty(self) -> None:
        assert RoutineName.parse('""') is None


class TestClassify:
    """Tests for SqlCoverageEstimator.classify."""

    @pytest.mark.parametrize(
        "relative,expected",
        [
            ("scheme/routines/get_user.sql", "routine"),
            ("billing.scheme/routines/nested/charge.sql", "routine"),
            ("scheme/tests/users.sql", "test"),
            ("scheme/helpers/user_test.sql", "test"),
            ("scheme/helpers/util.sql", None),
            ("migrations/routines/get_user.sql", None),
            ("routines/get_user.sql", None),
        ],
    )
    def test_layout(self, relative: str, expected) -> None:
        assert SqlCoverageEstimator().classify(Path(relative)) == expected

    def test_custom_directory_names(self) -> None:
        estimator = SqlCoverageEstimator(SqlConfig(scheme_dir_names=["db"], routines_dir="functions"))
        assert estimator.classify(Path("db/functions/a.sql")) == "routine"

    def test_rejects_non_positive_assertion_ratio(self) -> None:
        with pytest.raises(ValueError):
            SqlCoverageEstimator(SqlConfig(assertions_per_routine=0))


class TestEstimate:
    """Tests for SqlCoverageEstimator.estimate."""

    def test_routine_named_by_bare_name_is_covered(self, workspace) -> None:
        workspace.file("shop.database/scheme/routines/get_user.sql", _routine("public.get_user", 4))
        workspace.file("shop.database/scheme/routines/delete_user.sql", _routine("public.delete_user", 6))
        workspace.file("shop.database/scheme/tests/users.sql", "SELECT GET_USER(1);\n")

        estimate = SqlCoverageEstimator().estimate(workspace.path("shop.database"))

        assert estimate is not None
        assert estimate.routine_count == 2
        assert estimate.counts == LineCounts(4, 10)
        assert not estimate.fallback_applied

    def test_name_match_respects_word_boundaries(self, workspace) -> None:
        workspace.file("x.database/scheme/routines/get.sql", _routine("get", 5))
        workspace.file("x.database/scheme/tests/t.sql", "SELECT get_all();\n")

        estimate = SqlCoverageEstimator().estimate(workspace.path("x.database"))

        assert estimate.counts == LineCounts(0, 5)

    def test_qualified_quoted_name_is_covered(self, workspace) -> None:
        workspace.file(
            "pay-database/scheme/routines/charge.sql",
            _routine('"Billing"."Charge_Card"', 5),
        )
        workspace.file("pay-database/scheme/tests/charge_test.sql", "SELECT billing.charge_card(1);\n")

        estimate = SqlCoverageEstimator().estimate(workspace.path("pay-database"))

        assert estimate.counts == LineCounts(5, 5)

    def test_tests_without_names_or_assertions(self, workspace) -> None:
        workspace.file("x.database/scheme/routines/a.sql", _routine("a_fn", 5))
        workspace.file("x.database/scheme/tests/t.sql", "SELECT 1;\n")

        estimate = SqlCoverageEstimator().estimate(workspace.path("x.database"))

        assert estimate.counts == LineCounts(0, 5)
        assert estimate.assertion_count == 0

    def test_assertion_fallback(self, workspace) -> None:
        for i in range(10):
            workspace.file(f"x.database/scheme/routines/r{i}.sql", _routine(f"calc_{i}", 10))
        workspace.file("x.database/scheme/tests/t.sql", _assertions(24))

        estimate = SqlCoverageEstimator().estimate(workspace.path("x.database"))

        assert estimate.fallback_applied
        assert estimate.assertion_count == 24
        assert estimate.estimated_routines == 6
        assert estimate.counts == LineCounts(60, 100)

    def test_assertion_fallback_is_clamped(self, workspace) -> None:
        for i in range(2):
            workspace.file(f"x.database/scheme/routines/r{i}.sql", _routine(f"calc_{i}", 10))
        workspace.file("x.database/scheme/tests/t.sql", _assertions(100))

        estimate = SqlCoverageEstimator().estimate(workspace.path("x.database"))

        assert estimate.counts == LineCounts(20, 20)

    def test_assertion_fallback_covers_at_least_one_routine(self, workspace) -> None:
        for i in range(4):
            workspace.file(f"x.database/scheme/routines/r{i}.sql", _routine(f"calc_{i}", 10))
        workspace.file("x.database/scheme/tests/t.sql", _assertions(1))

        estimate = SqlCoverageEstimator().estimate(workspace.path("x.database"))

        assert estimate.counts == LineCounts(10, 40)

    def test_no_tests(self, workspace) -> None:
        workspace.file("x.database/scheme/routines/a.sql", _routine("a_fn", 5))

        estimate = SqlCoverageEstimator().estimate(workspace.path("x.database"))

        assert estimate.counts == LineCounts(0, 5)
        assert estimate.test_files == []

    def test_no_routines(self, workspace) -> None:
        workspace.file("x.database/scheme/routines/view.sql", "CREATE VIEW v AS SELECT 1;\n")
        workspace.file("x.database/scheme/tests/t.sql", _assertions(3))

        assert SqlCoverageEstimator().estimate(workspace.path("x.database")) is None


class TestPostgresCoveragePlugin:
    """Tests for PostgresCoveragePlugin."""

    def test_result_is_labeled_estimated(self, workspace, make_project, run_context) -> None:
        workspace.file("x.database/scheme/routines/a.sql", _routine("a_fn", 5))
        workspace.file("x.database/scheme/tests/t.sql", "SELECT a_fn();\n")
        project = make_project(Technology.POSTGRESQL, workspace.path("x.database"))

        result = PostgresCoveragePlugin().run(project, run_context)

        assert result.status == CoverageStatus.ESTIMATED
        assert result.estimated is True
        assert (result.covered, result.total) == (5, 5)

    def test_no_routines_is_no_data(self, workspace, make_project, run_context) -> None:
        project = make_project(Technology.POSTGRESQL, workspace.dir("x.database"))

        result = PostgresCoveragePlugin().run(project, run_context)

        assert result.status == CoverageStatus.NO_DATA
        assert not result.has_data

    def test_missing_directory_fails(self, workspace, make_project, run_context) -> None:
        project = make_project(Technology.POSTGRESQL, workspace.path("gone.database"))

        result = PostgresCoveragePlugin().run(project, run_context)

        assert result.status == CoverageStatus.FAILED

    def test_no_tool_required(self) -> None:
        plugin = PostgresCoveragePlugin()
        assert plugin.requirements == []
        assert plugin.get_version() == "built-in"
        assert plugin.ensure_binary() is None
