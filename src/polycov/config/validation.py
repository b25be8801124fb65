"""Configuration validation for polycov.

Unknown keys produce warnings with close-match suggestions; values of the
wrong type or outside the allowed set produce errors, which the loader turns
into a ConfigError.
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import get_close_matches
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from polycov.config.models import REPORT_PARSER_MODES
from polycov.core.logging import get_logger
from polycov.core.models import Technology

LOGGER = get_logger(__name__)


class ValidationSeverity(Enum):
    """Severity level for validation issues."""

    ERROR = "error"  # Config cannot be used
    WARNING = "warning"  # Likely mistake but config usable


@dataclass
class ConfigValidationIssue:
    """A validation issue for configuration with severity."""

    message: str
    source: str
    severity: ValidationSeverity
    key: Optional[str] = None
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        text = f"{self.source}: {self.message}"
        if self.suggestion:
            text = f"{text} (did you mean '{self.suggestion}'?)"
        return text


VALID_TOP_LEVEL_KEYS: Set[str] = {"output", "discovery", "pipeline", "sql", "tools"}
VALID_OUTPUT_KEYS: Set[str] = {"dir", "format", "write_summary"}
VALID_DISCOVERY_KEYS: Set[str] = {"technologies", "exclude_dirs", "ignore", "max_repo_depth"}
VALID_PIPELINE_KEYS: Set[str] = {"max_workers", "timeout", "report_parser"}
VALID_SQL_KEYS: Set[str] = {
    "assertions_per_routine",
    "scheme_dir_names",
    "scheme_dir_suffix",
    "routines_dir",
    "tests_dir",
}
VALID_TOOL_KEYS: Set[str] = {"extra_args"}
VALID_TECHNOLOGIES: Set[str] = {t.value for t in Technology}


def validate_config(data: Dict[str, Any], source: str = "config") -> List[ConfigValidationIssue]:
    """Validate a raw configuration mapping.

    Args:
        data: Parsed YAML mapping.
        source: Description of where the data came from, for messages.

    Returns:
        List of validation issues (warnings and errors).
    """
    issues: List[ConfigValidationIssue] = []

    _check_unknown_keys(data, VALID_TOP_LEVEL_KEYS, "", source, issues)

    output = _section(data, "output", source, issues)
    if output is not None:
        _check_unknown_keys(output, VALID_OUTPUT_KEYS, "output.", source, issues)
        _check_type(output, "dir", str, "output.", source, issues)
        _check_type(output, "format", str, "output.", source, issues)
        _check_type(output, "write_summary", bool, "output.", source, issues)

    discovery = _section(data, "discovery", source, issues)
    if discovery is not None:
        _check_unknown_keys(discovery, VALID_DISCOVERY_KEYS, "discovery.", source, issues)
        _check_string_list(discovery, "exclude_dirs", "discovery.", source, issues)
        _check_string_list(discovery, "ignore", "discovery.", source, issues)
        if _check_string_list(discovery, "technologies", "discovery.", source, issues):
            for tech in discovery["technologies"]:
                if tech not in VALID_TECHNOLOGIES:
                    issues.append(ConfigValidationIssue(
                        message=f"Unknown technology '{tech}'",
                        source=source,
                        severity=ValidationSeverity.ERROR,
                        key="discovery.technologies",
                        suggestion=_suggest_key(tech, VALID_TECHNOLOGIES),
                    ))
        _check_positive_int(discovery, "max_repo_depth", "discovery.", source, issues)

    pipeline = _section(data, "pipeline", source, issues)
    if pipeline is not None:
        _check_unknown_keys(pipeline, VALID_PIPELINE_KEYS, "pipeline.", source, issues)
        _check_positive_int(pipeline, "max_workers", "pipeline.", source, issues)
        timeout = pipeline.get("timeout")
        if timeout is not None and (
            isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0
        ):
            issues.append(ConfigValidationIssue(
                message="'pipeline.timeout' must be a positive number of seconds or null",
                source=source,
                severity=ValidationSeverity.ERROR,
                key="pipeline.timeout",
            ))
        _check_choice(pipeline, "report_parser", REPORT_PARSER_MODES, "pipeline.", source, issues)

    sql = _section(data, "sql", source, issues)
    if sql is not None:
        _check_unknown_keys(sql, VALID_SQL_KEYS, "sql.", source, issues)
        _check_positive_int(sql, "assertions_per_routine", "sql.", source, issues)
        _check_string_list(sql, "scheme_dir_names", "sql.", source, issues)
        for key in ("scheme_dir_suffix", "routines_dir", "tests_dir"):
            _check_type(sql, key, str, "sql.", source, issues)

    tools = _section(data, "tools", source, issues)
    if tools is not None:
        for tech, tool_data in tools.items():
            if tech not in VALID_TECHNOLOGIES:
                issues.append(ConfigValidationIssue(
                    message=f"Unknown key 'tools.{tech}'",
                    source=source,
                    severity=ValidationSeverity.WARNING,
                    key=f"tools.{tech}",
                    suggestion=_suggest_key(tech, VALID_TECHNOLOGIES),
                ))
            if not isinstance(tool_data, dict):
                issues.append(ConfigValidationIssue(
                    message=f"'tools.{tech}' must be a mapping",
                    source=source,
                    severity=ValidationSeverity.ERROR,
                    key=f"tools.{tech}",
                ))
                continue
            _check_unknown_keys(tool_data, VALID_TOOL_KEYS, f"tools.{tech}.", source, issues)
            _check_string_list(tool_data, "extra_args", f"tools.{tech}.", source, issues)

    for issue in issues:
        if issue.severity == ValidationSeverity.WARNING:
            LOGGER.warning(str(issue))

    return issues


def has_errors(issues: List[ConfigValidationIssue]) -> bool:
    return any(i.severity == ValidationSeverity.ERROR for i in issues)


def _section(
    data: Dict[str, Any],
    key: str,
    source: str,
    issues: List[ConfigValidationIssue],
) -> Optional[Dict[str, Any]]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        issues.append(ConfigValidationIssue(
            message=f"'{key}' must be a mapping, got {type(value).__name__}",
            source=source,
            severity=ValidationSeverity.ERROR,
            key=key,
        ))
        return None
    return value


def _check_unknown_keys(
    data: Dict[str, Any],
    valid_keys: Set[str],
    prefix: str,
    source: str,
    issues: List[ConfigValidationIssue],
) -> None:
    for key in data:
        if key not in valid_keys:
            issues.append(ConfigValidationIssue(
                message=f"Unknown key '{prefix}{key}'",
                source=source,
                severity=ValidationSeverity.WARNING,
                key=f"{prefix}{key}",
                suggestion=_suggest_key(str(key), valid_keys),
            ))


def _check_type(
    data: Dict[str, Any],
    key: str,
    expected: type,
    prefix: str,
    source: str,
    issues: List[ConfigValidationIssue],
) -> None:
    value = data.get(key)
    if value is not None and not isinstance(value, expected):
        issues.append(ConfigValidationIssue(
            message=f"'{prefix}{key}' must be a {expected.__name__}",
            source=source,
            severity=ValidationSeverity.ERROR,
            key=f"{prefix}{key}",
        ))


def _check_choice(
    data: Dict[str, Any],
    key: str,
    choices: tuple,
    prefix: str,
    source: str,
    issues: List[ConfigValidationIssue],
) -> None:
    value = data.get(key)
    if value is not None and value not in choices:
        issues.append(ConfigValidationIssue(
            message=f"'{prefix}{key}' must be one of: {', '.join(choices)}",
            source=source,
            severity=ValidationSeverity.ERROR,
            key=f"{prefix}{key}",
            suggestion=_suggest_key(str(value), set(choices)),
        ))


def _check_string_list(
    data: Dict[str, Any],
    key: str,
    prefix: str,
    source: str,
    issues: List[ConfigValidationIssue],
) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        issues.append(ConfigValidationIssue(
            message=f"'{prefix}{key}' must be a list of strings",
            source=source,
            severity=ValidationSeverity.ERROR,
            key=f"{prefix}{key}",
        ))
        return False
    return True


def _check_positive_int(
    data: Dict[str, Any],
    key: str,
    prefix: str,
    source: str,
    issues: List[ConfigValidationIssue],
) -> None:
    value = data.get(key)
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        issues.append(ConfigValidationIssue(
            message=f"'{prefix}{key}' must be a positive integer",
            source=source,
            severity=ValidationSeverity.ERROR,
            key=f"{prefix}{key}",
        ))


def _suggest_key(invalid_key: str, valid_keys: Set[str]) -> Optional[str]:
    """Suggest a valid key for a likely typo."""
    matches = get_close_matches(invalid_key, sorted(valid_keys), n=1, cutoff=0.6)
    return matches[0] if matches else None
