"""Scan command implementation."""

from __future__ import annotations

import sys
from argparse import Namespace
from pathlib import Path
from typing import IO, Optional

from polycov.cli.commands import Command
from polycov.cli.exit_codes import EXIT_INVALID_USAGE, EXIT_RUN_FAILURE, EXIT_SUCCESS
from polycov.config.models import PolycovConfig
from polycov.core.errors import CancelledError, OutputDirectoryError
from polycov.core.logging import get_logger
from polycov.core.streaming import CLIStreamHandler
from polycov.pipeline import CoveragePipeline
from polycov.plugins.reporters import get_reporter_plugin, list_available_reporters

LOGGER = get_logger(__name__)


class ScanCommand(Command):
    """Measures coverage of every discovered project and prints the report."""

    def __init__(self, version: str, output: Optional[IO[str]] = None):
        self._version = version
        self._output = output

    @property
    def name(self) -> str:
        return "scan"

    def execute(self, args: Namespace, config: PolycovConfig | None = None) -> int:
        if config is None:
            LOGGER.error("Configuration is required for scan command")
            return EXIT_INVALID_USAGE

        workspace = Path(args.path).resolve()
        if not workspace.is_dir():
            LOGGER.error(f"Workspace is not a directory: {workspace}")
            return EXIT_INVALID_USAGE

        output_format = config.output.format or "table"
        reporter = get_reporter_plugin(output_format)
        if reporter is None:
            LOGGER.error(
                f"Reporter plugin '{output_format}' not found. "
                f"Available: {', '.join(list_available_reporters())}"
            )
            return EXIT_INVALID_USAGE

        stream_handler = CLIStreamHandler() if getattr(args, "stream", False) else None
        pipeline = CoveragePipeline(workspace, config, stream_handler=stream_handler)

        try:
            report = pipeline.run()
        except OutputDirectoryError as e:
            LOGGER.error(str(e))
            return EXIT_RUN_FAILURE
        except (CancelledError, KeyboardInterrupt):
            pipeline.cancel_event.set()
            LOGGER.error("Coverage run interrupted")
            return EXIT_RUN_FAILURE

        output = self._output or sys.stdout
        reporter.report(report, output)
        if report.summary_file is not None:
            LOGGER.info(f"Detailed results in: {pipeline.output_dir}")
        return EXIT_SUCCESS
