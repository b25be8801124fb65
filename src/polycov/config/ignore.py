"""Gitignore-style path exclusion for the discovery walk.

Patterns come from ``discovery.ignore`` in the config and from a
``.polycovignore`` file in the workspace root.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

import pathspec

from polycov.core.logging import get_logger

LOGGER = get_logger(__name__)

IGNORE_FILE_NAME = ".polycovignore"


class IgnorePatterns:
    """Compiled gitignore-style patterns."""

    def __init__(self, patterns: Iterable[str], source: str = "config") -> None:
        self._raw_patterns = list(patterns)
        self._source = source
        clean = [
            p.strip()
            for p in self._raw_patterns
            if p.strip() and not p.strip().startswith("#")
        ]
        self._spec = pathspec.GitIgnoreSpec.from_lines(clean)
        self._empty = not clean

    @property
    def patterns(self) -> List[str]:
        return list(self._raw_patterns)

    def matches(self, path: Path, root: Path, is_dir: bool = False) -> bool:
        """Check if ``path`` (under ``root``) is excluded."""
        if self._empty:
            return False
        try:
            rel = path.relative_to(root).as_posix()
        except ValueError:
            return False
        if not rel or rel == ".":
            return False
        if self._spec.match_file(rel):
            return True
        return is_dir and self._spec.match_file(rel + "/")

    @classmethod
    def from_file(cls, ignore_file: Path) -> Optional["IgnorePatterns"]:
        if not ignore_file.is_file():
            return None
        try:
            lines = ignore_file.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            LOGGER.warning(f"Failed to read {ignore_file}: {e}")
            return None
        LOGGER.debug(f"Loaded {len(lines)} ignore lines from {ignore_file}")
        return cls(lines, source=str(ignore_file))

    @classmethod
    def merge(cls, *sources: Optional["IgnorePatterns"]) -> "IgnorePatterns":
        combined: List[str] = []
        for source in sources:
            if source is not None:
                combined.extend(source.patterns)
        return cls(combined, source="merged")


def load_ignore_patterns(workspace_root: Path, config_patterns: List[str]) -> IgnorePatterns:
    """Combine config patterns with the workspace ``.polycovignore`` file."""
    from_file = IgnorePatterns.from_file(workspace_root / IGNORE_FILE_NAME)
    from_config = IgnorePatterns(config_patterns) if config_patterns else None
    return IgnorePatterns.merge(from_file, from_config)
