"""Git repository boundaries.

A ``.git`` directory marks an ordinary checkout; a ``.git`` file marks a
submodule checkout (the file points into the superproject's git dir). The
content of a ``.git`` file is not inspected: any regular file named ``.git``
counts as a submodule mount point.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from polycov.core.logging import get_logger

LOGGER = get_logger(__name__)

GIT_METADATA = ".git"
NX_WORKSPACE_MARKER = "nx.json"
DEFAULT_MAX_DEPTH = 20

PathLike = Union[str, Path]


def _normalize(path: PathLike) -> str:
    # abspath is lexical: relative input terminates and symlinks are not followed.
    return os.path.abspath(os.fspath(path))


def _starting_directory(path: str) -> str:
    return path if os.path.isdir(path) else os.path.dirname(path)


def _search_parent_chain(
    path: PathLike,
    workspace_root: PathLike,
    predicate: Callable[[str], bool],
) -> bool:
    """Walk up from ``path`` until the workspace root, testing each level.

    The starting level is the path itself when it is a directory, else its
    parent. The workspace root is never tested. The walk also ends at the
    filesystem root.
    """
    ceiling = _normalize(workspace_root)
    current = _starting_directory(_normalize(path))

    while current and current != ceiling:
        if predicate(current):
            return True
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return False


def is_submodule(path: PathLike, workspace_root: PathLike) -> bool:
    """Whether ``path`` lives inside a git submodule checkout.

    Paths that do not exist are treated as plain files, so the walk starts at
    their parent and usually finds nothing; such paths are later rejected by
    repository root resolution instead.
    """
    return _search_parent_chain(
        path,
        workspace_root,
        lambda level: os.path.isfile(os.path.join(level, GIT_METADATA)),
    )


def is_in_nx_workspace(path: PathLike, workspace_root: PathLike) -> bool:
    """Whether an ``nx.json`` exists at ``path``'s level or above it."""
    return _search_parent_chain(
        path,
        workspace_root,
        lambda level: os.path.isfile(os.path.join(level, NX_WORKSPACE_MARKER)),
    )


def find_repo_root(
    path: PathLike,
    ceiling: Optional[PathLike] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Optional[Path]:
    """Find the nearest ancestor-or-self holding a ``.git`` directory or file.

    Args:
        path: Starting path (tested itself first).
        ceiling: Highest directory that may be returned. The walk never goes
            above it.
        max_depth: Maximum number of levels tested.

    Returns:
        The repository root, or None if none was found within the limits.
    """
    current = _normalize(path)
    limit = _normalize(ceiling) if ceiling is not None else None

    for _ in range(max_depth):
        if os.path.lexists(os.path.join(current, GIT_METADATA)):
            return Path(current)
        if current == limit:
            return None
        parent = os.path.dirname(current)
        if parent == current or parent == ".":
            return None
        current = parent
    return None


class RepoRootResolver:
    """Memoizing ``find_repo_root`` for one discovery run.

    Results, including negative ones, are cached by the exact input path.
    Create one resolver per run; the cache is never persisted.
    """

    def __init__(self, workspace_root: PathLike, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._workspace_root = Path(_normalize(workspace_root))
        self._max_depth = max_depth
        self._cache: Dict[str, Optional[Path]] = {}
        self._lock = threading.Lock()

    @property
    def workspace_root(self) -> Path:
        return self._workspace_root

    def resolve(self, path: PathLike) -> Optional[Path]:
        key = os.fspath(path)
        with self._lock:
            if key in self._cache:
                return self._cache[key]

        root = find_repo_root(key, ceiling=self._workspace_root, max_depth=self._max_depth)
        if root is None:
            LOGGER.debug(f"No repository root found for {key}")

        with self._lock:
            self._cache.setdefault(key, root)
            return self._cache[key]

    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
