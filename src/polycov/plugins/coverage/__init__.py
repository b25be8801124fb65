"""Coverage plugins, one per technology.

Additional plugins are discovered via the ``polycov.coverage`` entry point
group; an entry point named after a technology tag replaces the built-in.
"""

from __future__ import annotations

from typing import Dict, Type

from polycov.core.logging import get_logger
from polycov.core.models import Technology
from polycov.plugins.coverage.base import CoveragePlugin, ToolRequirement
from polycov.plugins.coverage.dotnet import DotnetCoveragePlugin
from polycov.plugins.coverage.gradle import GradleCoveragePlugin
from polycov.plugins.coverage.maven import MavenCoveragePlugin
from polycov.plugins.coverage.postgresql import PostgresCoveragePlugin, SqlCoverageEstimator
from polycov.plugins.coverage.tarpaulin import TarpaulinCoveragePlugin
from polycov.plugins.coverage.web import WebCoveragePlugin
from polycov.plugins.discovery import COVERAGE_ENTRY_POINT_GROUP, discover_plugins

LOGGER = get_logger(__name__)

BUILTIN_COVERAGE_PLUGINS: Dict[Technology, Type[CoveragePlugin]] = {
    Technology.DOTNET: DotnetCoveragePlugin,
    Technology.JAVA: MavenCoveragePlugin,
    Technology.KOTLIN: GradleCoveragePlugin,
    Technology.RUST: TarpaulinCoveragePlugin,
    Technology.POSTGRESQL: PostgresCoveragePlugin,
    Technology.WEB: WebCoveragePlugin,
}


def discover_coverage_plugins() -> Dict[str, Type[CoveragePlugin]]:
    """Installed coverage plugins keyed by entry point name."""
    return discover_plugins(COVERAGE_ENTRY_POINT_GROUP, CoveragePlugin)


def get_coverage_plugins() -> Dict[Technology, CoveragePlugin]:
    """One instantiated plugin per technology, installed ones taking precedence."""
    classes: Dict[Technology, Type[CoveragePlugin]] = dict(BUILTIN_COVERAGE_PLUGINS)
    for name, plugin_class in discover_coverage_plugins().items():
        try:
            classes[Technology(name)] = plugin_class
        except ValueError:
            LOGGER.warning(f"Ignoring coverage plugin '{name}': not a known technology")
    return {tech: classes[tech]() for tech in Technology}


__all__ = [
    "BUILTIN_COVERAGE_PLUGINS",
    "CoveragePlugin",
    "SqlCoverageEstimator",
    "ToolRequirement",
    "discover_coverage_plugins",
    "get_coverage_plugins",
]
