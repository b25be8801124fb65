"""Tests for polycov.discovery.repository."""

from __future__ import annotations

from unittest.mock import patch

from polycov.discovery import repository
from polycov.discovery.repository import (
    RepoRootResolver,
    find_repo_root,
    is_in_nx_workspace,
    is_submodule,
)


class TestIsSubmodule:
    """Tests for is_submodule."""

    def test_marker_inside_submodule(self, workspace) -> None:
        workspace.submodule("vendor/libX")
        marker = workspace.file("vendor/libX/pom.xml")
        assert is_submodule(marker, workspace.root) is True

    def test_deeply_nested_marker_inside_submodule(self, workspace) -> None:
        workspace.submodule("vendor/libX")
        marker = workspace.file("vendor/libX/modules/core/pom.xml")
        assert is_submodule(marker, workspace.root) is True

    def test_directory_path_is_tested_itself(self, workspace) -> None:
        directory = workspace.submodule("db/shop.database")
        assert is_submodule(directory, workspace.root) is True

    def test_regular_checkout_is_not_submodule(self, workspace) -> None:
        workspace.repo("repoA")
        marker = workspace.file("repoA/pom.xml")
        assert is_submodule(marker, workspace.root) is False

    def test_workspace_root_git_file_is_ignored(self, workspace) -> None:
        workspace.file(".git", "gitdir: elsewhere\n")
        marker = workspace.file("service/pom.xml")
        assert is_submodule(marker, workspace.root) is False

    def test_missing_path_is_not_submodule(self, workspace) -> None:
        assert is_submodule(workspace.path("nowhere/pom.xml"), workspace.root) is False


class TestIsInNxWorkspace:
    """Tests for is_in_nx_workspace."""

    def test_package_below_nx_json(self, workspace) -> None:
        workspace.file("frontend/nx.json", "{}")
        package = workspace.file("frontend/apps/shop/package.json", "{}")
        assert is_in_nx_workspace(package, workspace.root) is True

    def test_package_next_to_nx_json(self, workspace) -> None:
        workspace.file("frontend/nx.json", "{}")
        package = workspace.file("frontend/package.json", "{}")
        assert is_in_nx_workspace(package, workspace.root) is True

    def test_standalone_package(self, workspace) -> None:
        workspace.file("frontend/nx.json", "{}")
        package = workspace.file("tools/cli/package.json", "{}")
        assert is_in_nx_workspace(package, workspace.root) is False


class TestFindRepoRoot:
    """Tests for find_repo_root."""

    def test_finds_ancestor_checkout(self, workspace) -> None:
        repo = workspace.repo("repoA")
        start = workspace.dir("repoA/services/api")
        assert find_repo_root(start, ceiling=workspace.root) == repo

    def test_path_itself_can_be_root(self, workspace) -> None:
        repo = workspace.repo("repoA")
        assert find_repo_root(repo, ceiling=workspace.root) == repo

    def test_is_idempotent(self, workspace) -> None:
        workspace.repo("repoA")
        root = find_repo_root(workspace.dir("repoA/a/b"), ceiling=workspace.root)
        assert root is not None
        assert find_repo_root(root, ceiling=workspace.root) == root

    def test_submodule_git_file_marks_root(self, workspace) -> None:
        workspace.repo("repoA")
        submodule = workspace.submodule("repoA/vendor/libX")
        start = workspace.dir("repoA/vendor/libX/src")
        assert find_repo_root(start, ceiling=workspace.root) == submodule

    def test_nearest_root_wins(self, workspace) -> None:
        workspace.repo("outer")
        inner = workspace.repo("outer/inner")
        assert find_repo_root(workspace.dir("outer/inner/x"), ceiling=workspace.root) == inner

    def test_none_without_repository(self, workspace) -> None:
        start = workspace.dir("loose/project")
        assert find_repo_root(start, ceiling=workspace.root) is None

    def test_ceiling_itself_is_tested(self, workspace) -> None:
        workspace.dir(".git")
        start = workspace.dir("service")
        assert find_repo_root(start, ceiling=workspace.root) == workspace.root

    def test_respects_max_depth(self, workspace) -> None:
        repo = workspace.repo("repoA")
        start = workspace.dir("repoA/a/b/c")
        assert find_repo_root(start, ceiling=workspace.root, max_depth=2) is None
        assert find_repo_root(start, ceiling=workspace.root, max_depth=4) == repo


class TestRepoRootResolver:
    """Tests for RepoRootResolver memoization."""

    def test_resolves_like_find_repo_root(self, workspace) -> None:
        repo = workspace.repo("repoA")
        resolver = RepoRootResolver(workspace.root)
        assert resolver.resolve(workspace.dir("repoA/api")) == repo

    def test_memoizes_by_input_path(self, workspace) -> None:
        workspace.repo("repoA")
        start = workspace.dir("repoA/api")
        resolver = RepoRootResolver(workspace.root)

        with patch.object(
            repository, "find_repo_root", wraps=repository.find_repo_root
        ) as mock_find:
            first = resolver.resolve(start)
            second = resolver.resolve(start)

        assert first == second
        assert mock_find.call_count == 1
        assert resolver.cache_size() == 1

    def test_caches_negative_results(self, workspace) -> None:
        start = workspace.dir("loose")
        resolver = RepoRootResolver(workspace.root)

        with patch.object(
            repository, "find_repo_root", wraps=repository.find_repo_root
        ) as mock_find:
            assert resolver.resolve(start) is None
            assert resolver.resolve(start) is None

        assert mock_find.call_count == 1

    def test_clear_empties_cache(self, workspace) -> None:
        workspace.repo("repoA")
        resolver = RepoRootResolver(workspace.root)
        resolver.resolve(workspace.dir("repoA/api"))
        resolver.clear()
        assert resolver.cache_size() == 0
