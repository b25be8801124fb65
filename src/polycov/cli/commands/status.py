"""Status command implementation."""

from __future__ import annotations

import platform
import sys
from argparse import Namespace
from typing import IO, Dict, Optional

from polycov.cli.commands import Command
from polycov.cli.exit_codes import EXIT_SUCCESS
from polycov.config.loader import find_global_config, get_polycov_home
from polycov.config.models import PolycovConfig
from polycov.core.errors import ToolUnavailableError
from polycov.core.models import Technology
from polycov.plugins.coverage import get_coverage_plugins
from polycov.plugins.coverage.base import CoveragePlugin
from polycov.plugins.reporters import list_available_reporters
from polycov.plugins.utils import get_cli_version


class StatusCommand(Command):
    """Shows each technology's coverage tools and whether they are installed."""

    def __init__(
        self,
        version: str,
        output: Optional[IO[str]] = None,
        plugins: Optional[Dict[Technology, CoveragePlugin]] = None,
    ):
        self._version = version
        self._output = output
        self._plugins = plugins

    @property
    def name(self) -> str:
        return "status"

    def execute(self, args: Namespace, config: PolycovConfig | None = None) -> int:
        """Print tool status. Always succeeds; missing tools only skip projects."""
        out = self._output or sys.stdout
        plugins = self._plugins if self._plugins is not None else get_coverage_plugins()

        print(f"polycov version: {self._version}", file=out)
        print(f"Platform: {platform.system().lower()}-{platform.machine()}", file=out)
        global_config = find_global_config()
        if global_config is not None:
            print(f"Global config: {global_config}", file=out)
        else:
            print(f"Global config: {get_polycov_home() / 'config.yml'} (not found)", file=out)
        print("", file=out)

        missing = 0
        print("Coverage tools:", file=out)
        for tech in Technology:
            plugin = plugins.get(tech)
            if plugin is None:
                print(f"  {tech.label}: no coverage plugin", file=out)
                continue
            if not plugin.requirements:
                print(f"  {tech.label}: {plugin.name} (no external tool required)", file=out)
                continue
            print(f"  {tech.label}: {plugin.name}", file=out)
            for requirement in plugin.requirements:
                try:
                    binary = requirement.locate()
                except ToolUnavailableError:
                    missing += 1
                    print(f"    {requirement.binary}: not installed ({requirement.install_hint})", file=out)
                    continue
                version = get_cli_version(binary, requirement.version_flag)
                print(f"    {requirement.binary}: {version.splitlines()[0]} ({binary})", file=out)

        print("", file=out)
        print(f"Reporters: {', '.join(list_available_reporters())}", file=out)
        if missing:
            print(
                f"{missing} tool(s) missing; projects needing them are skipped during a scan.",
                file=out,
            )
        return EXIT_SUCCESS
