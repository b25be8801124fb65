"""Argument parser construction for the polycov CLI.

Subcommands:
- polycov scan    - Measure coverage of every discovered project
- polycov preview - List the projects a scan would measure
- polycov status  - Show which coverage tools are installed
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List

from polycov.core.models import Technology

TECHNOLOGY_CHOICES: List[str] = [t.value for t in Technology]


def _add_global_options(parser: argparse.ArgumentParser) -> None:
    """Add global options available to all commands."""
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show polycov version and exit.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (info-level) logging.",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Reduce logging output to errors only.",
    )


def _add_workspace_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Workspace root to scan (default: current directory).",
    )
    parser.add_argument(
        "--only",
        nargs="+",
        choices=TECHNOLOGY_CHOICES,
        metavar="TECH",
        help=f"Restrict to these technologies ({', '.join(TECHNOLOGY_CHOICES)}).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        metavar="FILE",
        help="Use this config file instead of the workspace's .polycov.yml.",
    )


def _build_scan_parser(subparsers: argparse._SubParsersAction) -> None:
    scan_parser = subparsers.add_parser(
        "scan",
        help="Run tests with coverage for every discovered project.",
        description=(
            "Discover projects by marker file, run each ecosystem's coverage "
            "tool, and aggregate line coverage per technology and overall."
        ),
    )
    _add_workspace_options(scan_parser)

    output_group = scan_parser.add_argument_group("output")
    output_group.add_argument(
        "--format",
        metavar="FORMAT",
        help="Report format: table, json, summary, or an installed reporter (default: table).",
    )
    output_group.add_argument(
        "--output-dir",
        metavar="DIR",
        help="Directory for raw reports and the run summary (default: coverage-results-complete).",
    )
    output_group.add_argument(
        "--stream",
        action="store_true",
        help="Echo tool output live while projects are measured.",
    )

    exec_group = scan_parser.add_argument_group("execution")
    exec_group.add_argument(
        "--max-workers",
        type=int,
        metavar="N",
        help="Measure up to N projects in parallel (default: 1).",
    )
    exec_group.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Wall-clock limit per tool invocation (default: none).",
    )


def _build_preview_parser(subparsers: argparse._SubParsersAction) -> None:
    preview_parser = subparsers.add_parser(
        "preview",
        help="List the projects a scan would measure, without running anything.",
    )
    _add_workspace_options(preview_parser)


def _build_status_parser(subparsers: argparse._SubParsersAction) -> None:
    subparsers.add_parser(
        "status",
        help="Show coverage tools and whether they are installed.",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser for the polycov CLI."""
    parser = argparse.ArgumentParser(
        prog="polycov",
        description="Unit-test coverage across a polyglot monorepo.",
    )
    _add_global_options(parser)

    subparsers = parser.add_subparsers(dest="command", title="commands")
    _build_scan_parser(subparsers)
    _build_preview_parser(subparsers)
    _build_status_parser(subparsers)

    return parser
