"""CLI runner orchestration.

This module handles command dispatch and execution for the polycov CLI.
"""

from __future__ import annotations

from argparse import Namespace
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Iterable, Optional

from polycov.cli.arguments import build_parser
from polycov.cli.commands.preview import PreviewCommand
from polycov.cli.commands.scan import ScanCommand
from polycov.cli.commands.status import StatusCommand
from polycov.cli.config_bridge import ConfigBridge
from polycov.cli.exit_codes import EXIT_INVALID_USAGE, EXIT_RUN_FAILURE, EXIT_SUCCESS
from polycov.config import ConfigError, PolycovConfig, load_config
from polycov.core.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)


def get_version() -> str:
    """Get polycov version from package metadata, or the source fallback."""
    try:
        return version("polycov")
    except PackageNotFoundError:
        from polycov import __version__
        return __version__


class CLIRunner:
    """Orchestrates CLI execution with subcommand dispatch."""

    def __init__(self) -> None:
        self.parser = build_parser()
        self._version = get_version()
        self.scan_cmd = ScanCommand(version=self._version)
        self.preview_cmd = PreviewCommand()
        self.status_cmd = StatusCommand(version=self._version)

    def run(self, argv: Optional[Iterable[str]] = None) -> int:
        """Run the CLI.

        Args:
            argv: Command-line arguments (defaults to sys.argv).

        Returns:
            Exit code.
        """
        argv_list = list(argv) if argv is not None else None
        try:
            args = self.parser.parse_args(argv_list)
        except SystemExit as e:
            # argparse exits 0 for --help and 2 for usage errors.
            return EXIT_SUCCESS if e.code in (0, None) else EXIT_INVALID_USAGE

        configure_logging(
            debug=args.debug,
            verbose=args.verbose,
            quiet=args.quiet,
        )

        if args.version:
            print(self._version)
            return EXIT_SUCCESS

        command = getattr(args, "command", None)
        if command == "scan":
            return self._handle_with_config(self.scan_cmd, args)
        if command == "preview":
            return self._handle_with_config(self.preview_cmd, args)
        if command == "status":
            return self.status_cmd.execute(args)

        self.parser.print_help()
        return EXIT_SUCCESS

    def _load_config(self, args: Namespace) -> PolycovConfig:
        return load_config(
            project_root=Path(args.path).resolve(),
            cli_config_path=getattr(args, "config", None),
            cli_overrides=ConfigBridge.args_to_overrides(args),
        )

    def _handle_with_config(self, command, args: Namespace) -> int:
        try:
            config = self._load_config(args)
        except ConfigError as e:
            LOGGER.error(str(e))
            return EXIT_INVALID_USAGE

        try:
            return command.execute(args, config)
        except Exception as e:
            if args.debug:
                import traceback
                traceback.print_exc()
            LOGGER.error(f"{command.name} failed: {e}")
            return EXIT_RUN_FAILURE


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Console script entry point."""
    return CLIRunner().run(argv)
