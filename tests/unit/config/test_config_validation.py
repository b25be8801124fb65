"""Tests for polycov.config.validation."""

from __future__ import annotations

from polycov.config.validation import (
    ValidationSeverity,
    _suggest_key,
    has_errors,
    validate_config,
)


class TestSuggestKey:
    """Tests for _suggest_key function."""

    def test_suggests_close_match(self) -> None:
        assert _suggest_key("outptu", {"output", "discovery", "pipeline"}) == "output"

    def test_returns_none_for_no_match(self) -> None:
        assert _suggest_key("xyz", {"output", "discovery"}) is None

    def test_handles_empty_valid_keys(self) -> None:
        assert _suggest_key("test", set()) is None


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config(self) -> None:
        data = {
            "output": {"dir": "out", "format": "json", "write_summary": False},
            "discovery": {
                "technologies": ["java", "web"],
                "exclude_dirs": [".git"],
                "ignore": ["legacy/"],
                "max_repo_depth": 10,
            },
            "pipeline": {"max_workers": 4, "timeout": 900, "report_parser": "pattern"},
            "sql": {"assertions_per_routine": 5, "scheme_dir_names": ["scheme", "db"]},
            "tools": {"dotnet": {"extra_args": ["--no-build"]}},
        }
        assert validate_config(data, source="test.yml") == []

    def test_unknown_top_level_key_warns(self) -> None:
        issues = validate_config({"outptu": {}}, source="test.yml")
        assert len(issues) == 1
        assert issues[0].severity == ValidationSeverity.WARNING
        assert issues[0].suggestion == "output"
        assert "did you mean 'output'?" in str(issues[0])
        assert not has_errors(issues)

    def test_unknown_nested_key_warns(self) -> None:
        issues = validate_config({"pipeline": {"max_worker": 2}})
        assert issues[0].key == "pipeline.max_worker"
        assert issues[0].suggestion == "max_workers"

    def test_unknown_technology_errors(self) -> None:
        issues = validate_config({"discovery": {"technologies": ["jav"]}})
        assert has_errors(issues)
        assert issues[0].suggestion == "java"

    def test_section_must_be_mapping(self) -> None:
        issues = validate_config({"output": "json"})
        assert has_errors(issues)

    def test_non_positive_integers_error(self) -> None:
        issues = validate_config({"sql": {"assertions_per_routine": 0}})
        assert has_errors(issues)
        issues = validate_config({"pipeline": {"max_workers": True}})
        assert has_errors(issues)

    def test_timeout_must_be_positive(self) -> None:
        assert has_errors(validate_config({"pipeline": {"timeout": -1}}))
        assert not has_errors(validate_config({"pipeline": {"timeout": 2.5}}))

    def test_report_parser_choice(self) -> None:
        issues = validate_config({"pipeline": {"report_parser": "structure"}})
        assert has_errors(issues)
        assert issues[0].suggestion == "structured"

    def test_string_lists(self) -> None:
        assert has_errors(validate_config({"discovery": {"ignore": "legacy/"}}))
        assert has_errors(validate_config({"tools": {"java": {"extra_args": [1]}}}))

    def test_unknown_tool_section_warns(self) -> None:
        issues = validate_config({"tools": {"rustt": {"extra_args": []}}})
        assert not has_errors(issues)
        assert issues[0].suggestion == "rust"

    def test_output_format_accepts_any_name(self) -> None:
        assert validate_config({"output": {"format": "sarif"}}) == []
