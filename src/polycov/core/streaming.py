"""Live tool output during coverage runs.

Tool invocations can take minutes. With ``--stream`` the raw output of each
build/test tool is echoed line by line, prefixed with the tool and project.
"""

from __future__ import annotations

import sys
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, TextIO


class StreamType(str, Enum):
    """Type of stream output."""

    STDOUT = "stdout"
    STDERR = "stderr"
    STATUS = "status"


@dataclass
class StreamEvent:
    """A streaming event from a tool execution."""

    tool_name: str
    stream_type: StreamType
    content: str
    line_number: Optional[int] = None


class StreamHandler(ABC):
    """Abstract base class for stream handlers.

    Implementations must be thread-safe as projects may be measured
    concurrently from different worker threads.
    """

    @abstractmethod
    def emit(self, event: StreamEvent) -> None:
        """Emit a stream event."""

    @abstractmethod
    def start_tool(self, tool_name: str) -> None:
        """Signal that a tool has started execution."""

    @abstractmethod
    def end_tool(self, tool_name: str, success: bool) -> None:
        """Signal that a tool has finished execution."""


class NullStreamHandler(StreamHandler):
    """No-op handler used when streaming is off."""

    def emit(self, event: StreamEvent) -> None:
        pass

    def start_tool(self, tool_name: str) -> None:
        pass

    def end_tool(self, tool_name: str, success: bool) -> None:
        pass


class CLIStreamHandler(StreamHandler):
    """Thread-safe console handler that echoes tool output to stderr."""

    def __init__(self, output: TextIO = sys.stderr, show_output: bool = True) -> None:
        """Initialize CLIStreamHandler.

        Args:
            output: Output stream to write to (default: stderr).
            show_output: Whether to show raw tool output lines, or only
                start/finish status lines.
        """
        self._output = output
        self._show_output = show_output
        self._lock = threading.Lock()

    def emit(self, event: StreamEvent) -> None:
        if event.stream_type != StreamType.STATUS and not self._show_output:
            return

        with self._lock:
            if event.stream_type == StreamType.STATUS:
                self._write(f"[{event.tool_name}] {event.content}")
            else:
                self._write(f"  {event.tool_name}: {event.content}")

    def start_tool(self, tool_name: str) -> None:
        with self._lock:
            self._write(f"[{tool_name}] Starting...")

    def end_tool(self, tool_name: str, success: bool) -> None:
        with self._lock:
            self._write(f"[{tool_name}] {'Done' if success else 'Exited with errors'}")

    def _write(self, line: str) -> None:
        print(line, file=self._output, flush=True)
