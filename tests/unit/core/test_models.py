"""Tests for polycov.core.models."""

from __future__ import annotations

from pathlib import Path

from polycov.config.models import PolycovConfig, ToolConfig
from polycov.core.models import (
    CoverageStatus,
    LineCounts,
    LogicalProject,
    ProjectCandidate,
    ProjectCoverage,
    RunContext,
    Technology,
    format_percentage,
)


class TestFormatPercentage:
    """Tests for format_percentage."""

    def test_zero_total(self) -> None:
        assert format_percentage(0, 0) == "0.00"

    def test_rounds_to_two_decimals(self) -> None:
        assert format_percentage(2, 3) == "66.67"

    def test_full_coverage(self) -> None:
        assert format_percentage(7, 7) == "100.00"


class TestTechnology:
    """Tests for Technology."""

    def test_labels(self) -> None:
        assert Technology.DOTNET.label == ".NET Projects"
        assert Technology.WEB.label == "Web Projects (Nx/Node)"

    def test_declaration_order(self) -> None:
        assert [t.value for t in Technology] == [
            "dotnet", "java", "kotlin", "rust", "postgresql", "web",
        ]


class TestProjects:
    """Tests for candidates and logical projects."""

    def test_candidate_directory(self) -> None:
        pom = ProjectCandidate(Path("/ws/a/pom.xml"), Technology.JAVA, "java")
        database = ProjectCandidate(Path("/ws/shop.database"), Technology.POSTGRESQL, "postgresql")
        assert pom.directory == Path("/ws/a")
        assert database.directory == Path("/ws/shop.database")

    def test_relative_marker(self) -> None:
        project = LogicalProject(
            technology=Technology.JAVA,
            marker=Path("/ws/repo/pom.xml"),
            directory=Path("/ws/repo"),
            repo_root=Path("/ws/repo"),
            kind="java",
        )
        assert project.relative_to(Path("/ws")) == "repo/pom.xml"
        assert project.relative_to(Path("/elsewhere")) == "/ws/repo/pom.xml"

    def test_line_counts_add(self) -> None:
        assert LineCounts(1, 2) + LineCounts(3, 4) == LineCounts(4, 6)


class TestProjectCoverage:
    """Tests for ProjectCoverage.has_data."""

    def _project(self) -> LogicalProject:
        return LogicalProject(
            technology=Technology.RUST,
            marker=Path("/ws/r/Cargo.toml"),
            directory=Path("/ws/r"),
            repo_root=Path("/ws/r"),
            kind="rust",
        )

    def test_measured_with_lines_has_data(self) -> None:
        result = ProjectCoverage(self._project(), CoverageStatus.MEASURED, covered=1, total=2)
        assert result.has_data
        assert result.percentage == "50.00"

    def test_zero_total_has_no_data(self) -> None:
        assert not ProjectCoverage(self._project(), CoverageStatus.MEASURED).has_data

    def test_failed_has_no_data(self) -> None:
        result = ProjectCoverage(self._project(), CoverageStatus.FAILED, covered=1, total=2)
        assert not result.has_data


class TestRunContext:
    """Tests for RunContext."""

    def test_results_dir_and_extra_args(self, tmp_path: Path) -> None:
        config = PolycovConfig()
        config.tools["rust"] = ToolConfig(extra_args=["--skip-clean"])
        context = RunContext(workspace_root=tmp_path, output_dir=tmp_path / "out", config=config)

        assert context.results_dir(Technology.RUST) == tmp_path / "out" / "rust"
        assert context.extra_args(Technology.RUST) == ["--skip-clean"]
        assert context.extra_args(Technology.JAVA) == []
        assert context.timeout is None

    def test_project_results_dir_is_unique_per_location(self, tmp_path: Path) -> None:
        context = RunContext(workspace_root=tmp_path, output_dir=tmp_path / "out", config=PolycovConfig())
        first = LogicalProject(
            Technology.RUST, tmp_path / "repoA/core/Cargo.toml", tmp_path / "repoA/core", tmp_path / "repoA", "rust"
        )
        second = LogicalProject(
            Technology.RUST, tmp_path / "repoB/core/Cargo.toml", tmp_path / "repoB/core", tmp_path / "repoB", "rust"
        )

        assert first.name == second.name == "core"
        assert context.project_results_dir(first) == tmp_path / "out" / "rust" / "repoA_core"
        assert context.project_results_dir(second) == tmp_path / "out" / "rust" / "repoB_core"


class TestLogicalProjectKey:
    """Tests for LogicalProject.key."""

    def test_solution_key_includes_solution_name(self, tmp_path: Path) -> None:
        project = LogicalProject(
            Technology.DOTNET, tmp_path / "net/Shop.sln", tmp_path / "net", tmp_path / "net", "dotnet"
        )
        assert project.key(tmp_path) == "net_Shop"

    def test_workspace_root_project_uses_name(self, tmp_path: Path) -> None:
        project = LogicalProject(Technology.JAVA, tmp_path / "pom.xml", tmp_path, tmp_path, "java")
        assert project.key(tmp_path) == tmp_path.name
