"""Shared fixtures for polycov tests."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

import pytest

from polycov.config.models import PolycovConfig
from polycov.core.models import LogicalProject, RunContext, Technology


class WorkspaceBuilder:
    """Builds a throwaway monorepo layout below ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def path(self, relative: str) -> Path:
        return self.root / relative

    def dir(self, relative: str) -> Path:
        directory = self.root / relative
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def file(self, relative: str, content: str = "") -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def repo(self, relative: str) -> Path:
        """A regular checkout: ``<relative>/.git`` is a directory."""
        directory = self.dir(relative)
        (directory / ".git").mkdir(exist_ok=True)
        return directory

    def submodule(self, relative: str) -> Path:
        """A submodule checkout: ``<relative>/.git`` is a file."""
        directory = self.dir(relative)
        (directory / ".git").write_text("gitdir: ../../.git/modules/x\n", encoding="utf-8")
        return directory


@pytest.fixture(autouse=True)
def reset_polycov_logger():
    """Undo CLI logging configuration between tests."""
    yield
    logger = logging.getLogger("polycov")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    root = tmp_path / "ws"
    root.mkdir()
    return WorkspaceBuilder(root)


@pytest.fixture
def make_project() -> Callable[..., LogicalProject]:
    """Factory for logical projects rooted at their own directory."""

    def factory(
        technology: Technology,
        directory: Path,
        marker_name: Optional[str] = None,
        kind: Optional[str] = None,
    ) -> LogicalProject:
        if technology == Technology.POSTGRESQL:
            marker = directory
        else:
            marker = directory / (marker_name or "marker")
        return LogicalProject(
            technology=technology,
            marker=marker,
            directory=directory,
            repo_root=directory,
            kind=kind or technology.value,
        )

    return factory


@pytest.fixture
def run_context(tmp_path: Path) -> RunContext:
    return RunContext(
        workspace_root=tmp_path / "ws",
        output_dir=tmp_path / "results",
        config=PolycovConfig(),
    )
