"""Shared helpers for coverage plugins."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from polycov.core.errors import ProjectDirectoryError, ToolUnavailableError
from polycov.core.logging import get_logger

LOGGER = get_logger(__name__)


def find_binary(
    binary_name: str,
    install_hint: Optional[str] = None,
    project_dir: Optional[Path] = None,
    local_name: Optional[str] = None,
) -> Path:
    """Locate a tool, preferring a project-local wrapper.

    Args:
        binary_name: Executable looked up on PATH.
        install_hint: Shown to the user when the tool is missing.
        project_dir: Directory searched for ``local_name`` first.
        local_name: Project-local wrapper, e.g. ``gradlew``.

    Returns:
        Path to the executable.

    Raises:
        ToolUnavailableError: If the tool cannot be found.
    """
    if project_dir is not None and local_name:
        local = project_dir / local_name
        if local.is_file():
            return local

    system_binary = shutil.which(binary_name)
    if system_binary:
        return Path(system_binary)

    raise ToolUnavailableError(binary_name, install_hint)


def get_cli_version(
    binary: Path,
    version_flag: str = "--version",
    parser: Optional[Callable[[str], str]] = None,
    timeout: int = 30,
) -> str:
    """Get version from a CLI tool, or 'unknown'."""
    try:
        result = subprocess.run(
            [str(binary), version_flag],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except (OSError, subprocess.SubprocessError) as e:
        LOGGER.debug(f"Cannot get version of {binary}: {e}")
        return "unknown"

    if result.returncode != 0:
        return "unknown"
    output = result.stdout.strip()
    if parser:
        output = parser(output)
    return output or "unknown"


def first_line(output: str) -> str:
    return output.splitlines()[0].strip() if output else ""


def check_project_directory(directory: Path) -> None:
    """Raise ProjectDirectoryError unless ``directory`` is usable as cwd."""
    if not directory.is_dir():
        raise ProjectDirectoryError(directory, "not a directory")
    if not os.access(directory, os.R_OK | os.X_OK):
        raise ProjectDirectoryError(directory, "permission denied")


def find_reports(
    root: Path,
    file_name: str,
    parent_suffix: Optional[str] = None,
    exclude_dirs: Iterable[str] = (),
) -> List[Path]:
    """Recursively find report files below ``root`` in sorted order.

    Args:
        root: Directory to search.
        file_name: Exact report file name.
        parent_suffix: If set, the report's parent directories must end with
            this relative path (e.g. ``build/reports/jacoco/test``).
        exclude_dirs: Directory names that are not descended into.
    """
    if not root.is_dir():
        return []

    excluded = set(exclude_dirs)
    suffix = tuple(Path(parent_suffix).parts) if parent_suffix else ()
    found: List[Path] = []

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        if file_name not in filenames:
            continue
        current = Path(dirpath)
        if suffix and current.parts[-len(suffix):] != suffix:
            continue
        found.append(current / file_name)

    return found


def module_name(report: Path, project_dir: Path, marker_parts: int) -> str:
    """Name of the module a report belongs to, derived from its location.

    ``marker_parts`` is the number of trailing path components that belong to
    the report layout rather than to the module (report file included).
    """
    try:
        rel = report.relative_to(project_dir)
    except ValueError:
        return ""
    module_parts = rel.parts[:-marker_parts] if marker_parts else rel.parts
    return "_".join(module_parts)


def copy_report(
    report: Path,
    results_dir: Path,
    project_key: str,
    module: str = "",
) -> Optional[Path]:
    """Copy a raw report to ``<results_dir>/<project>[_<module>]_<file>``.

    A failed copy is logged and does not affect the project's result.
    """
    prefix = f"{project_key}_{module}" if module else project_key
    destination = results_dir / f"{prefix}_{report.name}"
    if destination.resolve() == report.resolve():
        return destination
    try:
        results_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(report, destination)
    except OSError as e:
        LOGGER.warning(f"Could not copy {report} to {destination}: {e}")
        return None
    return destination
