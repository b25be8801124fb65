"""Tests for polycov.core.subprocess_runner."""

from __future__ import annotations

import subprocess
import sys
import threading
from pathlib import Path
from typing import List

import pytest

from polycov.core.errors import CancelledError, ProjectDirectoryError, ToolUnavailableError
from polycov.core.streaming import StreamEvent, StreamHandler
from polycov.core.subprocess_runner import run_tool


class RecordingHandler(StreamHandler):
    """Collects stream events for assertions."""

    def __init__(self) -> None:
        self.events: List[StreamEvent] = []
        self.started: List[str] = []
        self.ended: List[tuple] = []

    def emit(self, event: StreamEvent) -> None:
        self.events.append(event)

    def start_tool(self, tool_name: str) -> None:
        self.started.append(tool_name)

    def end_tool(self, tool_name: str, success: bool) -> None:
        self.ended.append((tool_name, success))


class TestRunTool:
    """Tests for run_tool."""

    def test_missing_working_directory(self, tmp_path: Path) -> None:
        with pytest.raises(ProjectDirectoryError):
            run_tool([sys.executable, "-c", "pass"], tmp_path / "missing", "python")

    def test_missing_executable(self, tmp_path: Path) -> None:
        with pytest.raises(ToolUnavailableError) as exc_info:
            run_tool(["polycov-no-such-tool-xyz"], tmp_path, "missing")
        assert exc_info.value.tool == "polycov-no-such-tool-xyz"
        assert isinstance(exc_info.value, FileNotFoundError)

    def test_captures_output_in_working_directory(self, tmp_path: Path) -> None:
        result = run_tool(
            [sys.executable, "-c", "import os; print(os.getcwd())"],
            tmp_path,
            "python",
        )
        assert result.returncode == 0
        assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()

    def test_non_zero_exit_is_returned(self, tmp_path: Path) -> None:
        result = run_tool([sys.executable, "-c", "import sys; sys.exit(3)"], tmp_path, "python")
        assert result.returncode == 3

    def test_streams_lines(self, tmp_path: Path) -> None:
        handler = RecordingHandler()
        run_tool(
            [sys.executable, "-c", "print('one'); print('two')"],
            tmp_path,
            "python",
            stream_handler=handler,
        )
        assert [e.content for e in handler.events] == ["one", "two"]
        assert handler.started == ["python"]
        assert handler.ended == [("python", True)]

    def test_timeout_terminates_tool(self, tmp_path: Path) -> None:
        with pytest.raises(subprocess.TimeoutExpired):
            run_tool(
                [sys.executable, "-c", "import time; time.sleep(30)"],
                tmp_path,
                "sleeper",
                timeout=0.5,
            )

    def test_cancel_event_terminates_tool(self, tmp_path: Path) -> None:
        cancel_event = threading.Event()
        timer = threading.Timer(0.3, cancel_event.set)
        timer.start()
        try:
            with pytest.raises(CancelledError):
                run_tool(
                    [sys.executable, "-c", "import time; time.sleep(30)"],
                    tmp_path,
                    "sleeper",
                    cancel_event=cancel_event,
                )
        finally:
            timer.cancel()
