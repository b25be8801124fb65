"""Bridge between CLI arguments and configuration overrides."""

from __future__ import annotations

import argparse
from typing import Any, Dict


class ConfigBridge:
    """Translates CLI arguments to a config override dict."""

    @staticmethod
    def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
        """Convert explicitly given CLI arguments to nested config overrides."""
        overrides: Dict[str, Any] = {}

        only = getattr(args, "only", None)
        if only:
            overrides.setdefault("discovery", {})["technologies"] = list(only)

        output_format = getattr(args, "format", None)
        if output_format:
            overrides.setdefault("output", {})["format"] = output_format

        output_dir = getattr(args, "output_dir", None)
        if output_dir:
            overrides.setdefault("output", {})["dir"] = str(output_dir)

        max_workers = getattr(args, "max_workers", None)
        if max_workers is not None:
            overrides.setdefault("pipeline", {})["max_workers"] = max_workers

        timeout = getattr(args, "timeout", None)
        if timeout is not None:
            overrides.setdefault("pipeline", {})["timeout"] = timeout

        return overrides
