"""Configuration file loading and merging.

Layers, lowest to highest precedence:

- Built-in defaults
- Global config (``$POLYCOV_HOME/config.yml``, default ``~/.polycov/config.yml``)
- Project config (``.polycov.yml`` in the workspace root) or ``--config``
- CLI flag overrides

String values support ``${VAR}`` and ``${VAR:-default}`` expansion.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from polycov.config.models import (
    DiscoveryConfig,
    OutputConfig,
    PipelineConfig,
    PolycovConfig,
    SqlConfig,
    ToolConfig,
)
from polycov.config.validation import (
    ConfigValidationIssue,
    ValidationSeverity,
    has_errors,
    validate_config,
)
from polycov.core.errors import PolycovError
from polycov.core.logging import get_logger
from polycov.core.models import Technology

LOGGER = get_logger(__name__)

PROJECT_CONFIG_NAMES = [".polycov.yml", ".polycov.yaml", "polycov.yml", "polycov.yaml"]
GLOBAL_CONFIG_NAME = "config.yml"
HOME_ENV_VAR = "POLYCOV_HOME"

ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(PolycovError):
    """Configuration loading, parsing or validation error."""


def get_polycov_home() -> Path:
    """Directory holding the global config."""
    env_home = os.environ.get(HOME_ENV_VAR)
    if env_home:
        return Path(env_home).expanduser()
    return Path.home() / ".polycov"


def load_config(
    project_root: Path,
    cli_config_path: Optional[Path] = None,
    cli_overrides: Optional[Dict[str, Any]] = None,
) -> PolycovConfig:
    """Load configuration with proper precedence.

    Args:
        project_root: Workspace root searched for a project config file.
        cli_config_path: Explicit config file (``--config``). Replaces the
            project config lookup.
        cli_overrides: Nested dict of values set by CLI flags.

    Returns:
        Merged PolycovConfig instance.

    Raises:
        ConfigError: If a requested file is missing, unparsable or invalid.
    """
    sources: List[str] = []
    merged: Dict[str, Any] = {}

    global_path = find_global_config()
    if global_path is not None:
        try:
            merged = merge_configs(merged, _load_layer(global_path))
            sources.append(f"global:{global_path}")
            LOGGER.debug(f"Loaded global config from {global_path}")
        except ConfigError as e:
            LOGGER.warning(f"Ignoring global config: {e}")

    if cli_config_path is not None:
        if not cli_config_path.is_file():
            raise ConfigError(f"Config file not found: {cli_config_path}")
        merged = merge_configs(merged, _load_layer(cli_config_path))
        sources.append(f"custom:{cli_config_path}")
        LOGGER.debug(f"Loaded custom config from {cli_config_path}")
    else:
        project_path = find_project_config(project_root)
        if project_path is not None:
            merged = merge_configs(merged, _load_layer(project_path))
            sources.append(f"project:{project_path}")
            LOGGER.debug(f"Loaded project config from {project_path}")

    if cli_overrides:
        issues = validate_config(cli_overrides, source="command line")
        if has_errors(issues):
            raise ConfigError(_format_errors(issues))
        merged = merge_configs(merged, cli_overrides)
        sources.append("cli")

    config = dict_to_config(merged)
    config._config_sources = sources

    LOGGER.debug(f"Config loaded from sources: {sources}")
    return config


def find_project_config(project_root: Path) -> Optional[Path]:
    for name in PROJECT_CONFIG_NAMES:
        config_path = project_root / name
        if config_path.is_file():
            return config_path
    return None


def find_global_config() -> Optional[Path]:
    config_path = get_polycov_home() / GLOBAL_CONFIG_NAME
    if config_path.is_file():
        return config_path
    return None


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML config file, expanding environment variables.

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML or is not
            a mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: config must be a YAML mapping, got {type(data).__name__}")

    return expand_env_vars(data)


def expand_env_vars(data: Any) -> Any:
    """Recursively expand ``${VAR}`` and ``${VAR:-default}`` in strings."""
    if isinstance(data, dict):
        return {k: expand_env_vars(v) for k, v in data.items()}
    if isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    if isinstance(data, str):
        return ENV_VAR_PATTERN.sub(_env_var_replacer, data)
    return data


def _env_var_replacer(match: re.Match[str]) -> str:
    var_name = match.group(1)
    default_value = match.group(2)

    value = os.environ.get(var_name)
    if value is not None:
        return value
    if default_value is not None:
        return default_value

    LOGGER.warning(f"Environment variable ${var_name} is not set and has no default")
    return ""


def merge_configs(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two config dicts; overlay wins, lists are replaced whole."""
    result = base.copy()
    for key, overlay_value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(overlay_value, dict):
            result[key] = merge_configs(result[key], overlay_value)
        else:
            result[key] = overlay_value
    return result


def dict_to_config(data: Dict[str, Any]) -> PolycovConfig:
    """Convert a validated, merged mapping into a typed config."""
    output_data = data.get("output") or {}
    output = OutputConfig(
        dir=output_data.get("dir", OutputConfig.dir),
        format=output_data.get("format", OutputConfig.format),
        write_summary=output_data.get("write_summary", OutputConfig.write_summary),
    )

    discovery_data = data.get("discovery") or {}
    discovery = DiscoveryConfig()
    if "technologies" in discovery_data:
        discovery.technologies = [Technology(t) for t in discovery_data["technologies"]]
    if "exclude_dirs" in discovery_data:
        discovery.exclude_dirs = list(discovery_data["exclude_dirs"])
    if "ignore" in discovery_data:
        discovery.ignore = list(discovery_data["ignore"])
    if "max_repo_depth" in discovery_data:
        discovery.max_repo_depth = discovery_data["max_repo_depth"]

    pipeline_data = data.get("pipeline") or {}
    timeout = pipeline_data.get("timeout")
    pipeline = PipelineConfig(
        max_workers=pipeline_data.get("max_workers", PipelineConfig.max_workers),
        timeout=float(timeout) if timeout is not None else None,
        report_parser=pipeline_data.get("report_parser", PipelineConfig.report_parser),
    )

    sql_data = data.get("sql") or {}
    sql = SqlConfig()
    for key in ("assertions_per_routine", "scheme_dir_suffix", "routines_dir", "tests_dir"):
        if key in sql_data:
            setattr(sql, key, sql_data[key])
    if "scheme_dir_names" in sql_data:
        sql.scheme_dir_names = list(sql_data["scheme_dir_names"])

    tools: Dict[str, ToolConfig] = {}
    for tech, tool_data in (data.get("tools") or {}).items():
        if tech not in {t.value for t in Technology}:
            continue
        tools[tech] = ToolConfig(extra_args=list((tool_data or {}).get("extra_args", [])))

    return PolycovConfig(
        output=output,
        discovery=discovery,
        pipeline=pipeline,
        sql=sql,
        tools=tools,
    )


def _load_layer(path: Path) -> Dict[str, Any]:
    data = load_yaml_file(path)
    issues = validate_config(data, source=str(path))
    if has_errors(issues):
        raise ConfigError(_format_errors(issues))
    return data


def _format_errors(issues: List[ConfigValidationIssue]) -> str:
    errors = [str(i) for i in issues if i.severity == ValidationSeverity.ERROR]
    return "Invalid configuration:\n  " + "\n  ".join(errors)
