"""Reporter plugins for polycov output formatting.

Plugins are discovered via Python entry points (polycov.reporters group).
"""

from __future__ import annotations

from typing import Dict, List, Optional, Type

from polycov.plugins.discovery import REPORTER_ENTRY_POINT_GROUP, discover_plugins
from polycov.plugins.reporters.base import ReporterPlugin
from polycov.plugins.reporters.json_reporter import JSONReporter
from polycov.plugins.reporters.summary_reporter import SummaryReporter
from polycov.plugins.reporters.table_reporter import TableReporter

BUILTIN_REPORTERS: Dict[str, Type[ReporterPlugin]] = {
    "table": TableReporter,
    "json": JSONReporter,
    "summary": SummaryReporter,
}


def discover_reporter_plugins() -> Dict[str, Type[ReporterPlugin]]:
    """Built-in reporters merged with installed ones."""
    reporters = dict(BUILTIN_REPORTERS)
    reporters.update(discover_plugins(REPORTER_ENTRY_POINT_GROUP, ReporterPlugin))
    return reporters


def get_reporter_plugin(name: str) -> Optional[ReporterPlugin]:
    reporter_class = discover_reporter_plugins().get(name)
    return reporter_class() if reporter_class else None


def list_available_reporters() -> List[str]:
    return sorted(discover_reporter_plugins())


__all__ = [
    "ReporterPlugin",
    "JSONReporter",
    "TableReporter",
    "SummaryReporter",
    "discover_reporter_plugins",
    "get_reporter_plugin",
    "list_available_reporters",
]
