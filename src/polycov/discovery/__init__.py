"""Project discovery: marker files, repository roots and deduplication."""

from polycov.discovery.engine import (
    DiscoveryResult,
    ProjectDiscovery,
    TechnologyProjectSet,
    discover_projects,
)
from polycov.discovery.repository import (
    RepoRootResolver,
    find_repo_root,
    is_in_nx_workspace,
    is_submodule,
)

__all__ = [
    "DiscoveryResult",
    "ProjectDiscovery",
    "RepoRootResolver",
    "TechnologyProjectSet",
    "discover_projects",
    "find_repo_root",
    "is_in_nx_workspace",
    "is_submodule",
]
