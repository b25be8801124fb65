"""Preview command: discovery only, no tools are run."""

from __future__ import annotations

import sys
from argparse import Namespace
from pathlib import Path
from typing import IO, Dict, Optional

from polycov.cli.commands import Command
from polycov.cli.exit_codes import EXIT_INVALID_USAGE, EXIT_SUCCESS
from polycov.config.models import PolycovConfig
from polycov.core.errors import ToolUnavailableError
from polycov.core.logging import get_logger
from polycov.core.models import Technology
from polycov.discovery.engine import ProjectDiscovery
from polycov.plugins.coverage import get_coverage_plugins
from polycov.plugins.coverage.base import CoveragePlugin

LOGGER = get_logger(__name__)


class PreviewCommand(Command):
    """Lists logical projects per technology and whether their tools exist."""

    def __init__(
        self,
        output: Optional[IO[str]] = None,
        plugins: Optional[Dict[Technology, CoveragePlugin]] = None,
    ):
        self._output = output
        self._plugins = plugins

    @property
    def name(self) -> str:
        return "preview"

    def execute(self, args: Namespace, config: PolycovConfig | None = None) -> int:
        workspace = Path(args.path).resolve()
        if not workspace.is_dir():
            LOGGER.error(f"Workspace is not a directory: {workspace}")
            return EXIT_INVALID_USAGE

        config = config or PolycovConfig()
        out = self._output or sys.stdout
        plugins = self._plugins if self._plugins is not None else get_coverage_plugins()
        output_dir = config.output.resolve_dir(workspace)

        result = ProjectDiscovery(workspace, config, exclude_paths=[output_dir]).discover()

        print(f"Workspace: {workspace}", file=out)
        print("Git submodules are excluded to prevent duplicate counting.", file=out)
        for tech, projects in result.projects.items():
            print("", file=out)
            print(f"{tech.label} ({len(projects)} found, {self._tool_status(plugins.get(tech))})", file=out)
            for project in projects:
                kind = f" [{project.kind}]" if tech == Technology.WEB else ""
                print(f"  {project.relative_to(workspace)}{kind}", file=out)
            stats = result.stats[tech]
            skipped = stats.submodule + stats.filtered + stats.no_repo_root + stats.duplicate
            if skipped:
                print(
                    f"  skipped: {stats.submodule} in submodules, {stats.duplicate} duplicate, "
                    f"{stats.filtered} filtered, {stats.no_repo_root} outside any repository",
                    file=out,
                )

        print("", file=out)
        print(f"Total logical projects: {result.total}", file=out)
        return EXIT_SUCCESS

    @staticmethod
    def _tool_status(plugin: Optional[CoveragePlugin]) -> str:
        if plugin is None:
            return "no coverage plugin"
        if not plugin.requirements:
            return "no tool required"
        try:
            plugin.ensure_binary()
        except ToolUnavailableError as e:
            return f"{e.tool} not installed"
        return "tools available"
