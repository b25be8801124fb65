"""CLI commands package.

This module provides the base Command class and exports all command implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from argparse import Namespace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from polycov.config.models import PolycovConfig


class Command(ABC):
    """Base class for CLI commands."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Command identifier."""

    @abstractmethod
    def execute(self, args: Namespace, config: "PolycovConfig | None" = None) -> int:
        """Execute the command.

        Args:
            args: Parsed command-line arguments.
            config: Loaded configuration, for commands that need one.

        Returns:
            Exit code.
        """


# ruff: noqa: E402
from polycov.cli.commands.preview import PreviewCommand
from polycov.cli.commands.scan import ScanCommand
from polycov.cli.commands.status import StatusCommand

__all__ = [
    "Command",
    "PreviewCommand",
    "ScanCommand",
    "StatusCommand",
]
