"""Tests for polycov.core.logging and polycov.core.streaming."""

from __future__ import annotations

import io
import logging

from polycov.core.logging import configure_logging, get_logger
from polycov.core.streaming import CLIStreamHandler, StreamEvent, StreamType


class TestLogging:
    """Tests for logger configuration."""

    def test_loggers_live_under_polycov(self) -> None:
        assert get_logger("polycov.discovery").name == "polycov.discovery"
        assert get_logger("elsewhere").name == "polycov.elsewhere"
        assert get_logger().name == "polycov"

    def test_levels(self) -> None:
        configure_logging(quiet=True, debug=True)
        assert logging.getLogger("polycov").level == logging.ERROR
        configure_logging(verbose=True)
        assert logging.getLogger("polycov").level == logging.INFO
        configure_logging()
        assert logging.getLogger("polycov").level == logging.WARNING

    def test_reconfiguring_replaces_handler(self) -> None:
        stream = io.StringIO()
        configure_logging(stream=io.StringIO())
        configure_logging(stream=stream)

        get_logger("polycov.test").warning("no tests found")

        assert logging.getLogger("polycov").handlers[0].stream is stream
        assert len(logging.getLogger("polycov").handlers) == 1
        assert stream.getvalue() == "WARNING: no tests found\n"


class TestCLIStreamHandler:
    """Tests for CLIStreamHandler."""

    def test_echoes_tool_output(self) -> None:
        output = io.StringIO()
        handler = CLIStreamHandler(output=output)

        handler.start_tool("maven-jacoco")
        handler.emit(StreamEvent("maven-jacoco", StreamType.STDOUT, "BUILD SUCCESS"))
        handler.end_tool("maven-jacoco", False)

        assert output.getvalue().splitlines() == [
            "[maven-jacoco] Starting...",
            "  maven-jacoco: BUILD SUCCESS",
            "[maven-jacoco] Exited with errors",
        ]

    def test_status_only(self) -> None:
        output = io.StringIO()
        handler = CLIStreamHandler(output=output, show_output=False)

        handler.emit(StreamEvent("npm-test", StreamType.STDERR, "noise"))
        handler.emit(StreamEvent("npm-test", StreamType.STATUS, "retrying"))

        assert output.getvalue() == "[npm-test] retrying\n"
