"""Exception hierarchy for polycov.

Adapters raise these; the coverage plugin base class turns them into
per-project statuses so that one project never aborts the whole run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class PolycovError(Exception):
    """Base class for all polycov errors."""


class ToolUnavailableError(PolycovError, FileNotFoundError):
    """A required external tool is not installed or not on PATH."""

    def __init__(self, tool: str, install_hint: Optional[str] = None) -> None:
        self.tool = tool
        self.install_hint = install_hint
        message = f"{tool} is not installed or not on PATH"
        if install_hint:
            message = f"{message}. Install with:\n  {install_hint}"
        super().__init__(message)


class InvocationFailedError(PolycovError):
    """A tool ran but could not produce anything usable (e.g. restore failed)."""

    def __init__(self, tool: str, returncode: int, detail: str = "") -> None:
        self.tool = tool
        self.returncode = returncode
        message = f"{tool} exited with code {returncode}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ReportMissingError(PolycovError):
    """No coverage report was produced, or it carried no usable totals."""


class ProjectDirectoryError(PolycovError):
    """The project directory cannot be used as a working directory."""

    def __init__(self, path: Path, reason: str = "") -> None:
        self.path = path
        message = f"Cannot use {path} as working directory"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class OutputDirectoryError(PolycovError):
    """The results directory cannot be created or written. Fatal for the run."""


class CancelledError(PolycovError):
    """The run was cancelled while a tool was executing."""
