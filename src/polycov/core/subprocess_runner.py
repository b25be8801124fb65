"""Subprocess runner for external build and coverage tools.

Every invocation receives an explicit working directory; the process-wide
current directory is never changed, which keeps concurrent project runs safe.
Each child runs in its own process group so that a timeout, a cancelled run or
Ctrl-C terminates the whole tool tree (Gradle daemons, test hosts, node
workers) rather than only the direct child.
"""

from __future__ import annotations

import os
import signal
import subprocess
import threading
import time
from pathlib import Path
from typing import IO, List, Mapping, Optional, Union

from polycov.core.errors import CancelledError, ProjectDirectoryError, ToolUnavailableError
from polycov.core.logging import get_logger
from polycov.core.streaming import (
    NullStreamHandler,
    StreamEvent,
    StreamHandler,
    StreamType,
)

LOGGER = get_logger(__name__)

POLL_INTERVAL = 0.2
TERMINATE_GRACE_PERIOD = 5.0


def run_tool(
    cmd: List[str],
    cwd: Union[str, Path],
    tool_name: str,
    stream_handler: Optional[StreamHandler] = None,
    timeout: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
    env: Optional[Mapping[str, str]] = None,
) -> subprocess.CompletedProcess:
    """Run a tool to completion and capture its output.

    A non-zero exit status is returned, not raised: failing tests are an
    expected outcome and coverage reports may still have been written.

    Args:
        cmd: Command and arguments to run.
        cwd: Working directory for the command.
        tool_name: Name of the tool (used in stream events and logs).
        stream_handler: Handler for live output. Defaults to no streaming.
        timeout: Wall-clock budget in seconds. None means wait indefinitely.
        cancel_event: When set, the running tool tree is terminated.
        env: Optional environment for the child process.

    Returns:
        CompletedProcess with stdout/stderr captured.

    Raises:
        ProjectDirectoryError: If ``cwd`` cannot be used as working directory.
        ToolUnavailableError: If the executable cannot be found.
        subprocess.TimeoutExpired: If the timeout elapsed.
        CancelledError: If ``cancel_event`` was set during the run.
    """
    handler = stream_handler or NullStreamHandler()
    cwd_path = Path(cwd)
    if not cwd_path.is_dir():
        raise ProjectDirectoryError(cwd_path, "not a directory")

    LOGGER.debug(f"Running in {cwd_path}: {' '.join(cmd)}")

    try:
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            cwd=str(cwd_path),
            env=dict(env) if env is not None else None,
            start_new_session=os.name == "posix",
        )
    except FileNotFoundError as e:
        raise ToolUnavailableError(cmd[0]) from e
    except (NotADirectoryError, PermissionError) as e:
        raise ProjectDirectoryError(cwd_path, str(e)) from e

    handler.start_tool(tool_name)

    stdout_lines: List[str] = []
    stderr_lines: List[str] = []
    readers = [
        _start_reader(proc.stdout, StreamType.STDOUT, stdout_lines, tool_name, handler),
        _start_reader(proc.stderr, StreamType.STDERR, stderr_lines, tool_name, handler),
    ]

    deadline = time.monotonic() + timeout if timeout else None
    finished = False
    try:
        while True:
            try:
                proc.wait(timeout=POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if cancel_event is not None and cancel_event.is_set():
                    LOGGER.warning(f"{tool_name}: cancelled, terminating process tree")
                    terminate_process_tree(proc)
                    raise CancelledError(f"{tool_name} was cancelled")
                if deadline is not None and time.monotonic() >= deadline:
                    LOGGER.warning(f"{tool_name}: timed out after {timeout} seconds")
                    terminate_process_tree(proc)
                    raise subprocess.TimeoutExpired(cmd, timeout or 0)
        finished = True
    except KeyboardInterrupt:
        terminate_process_tree(proc)
        raise
    finally:
        for reader in readers:
            reader.join(timeout=1)
        handler.end_tool(tool_name, finished and proc.returncode == 0)

    return subprocess.CompletedProcess(
        args=cmd,
        returncode=proc.returncode,
        stdout="\n".join(stdout_lines),
        stderr="\n".join(stderr_lines),
    )


def terminate_process_tree(proc: subprocess.Popen, grace_period: float = TERMINATE_GRACE_PERIOD) -> None:
    """Terminate a child and every process in its group.

    Sends SIGTERM to the group, waits up to ``grace_period`` seconds, then
    sends SIGKILL. On platforms without process groups only the direct child
    is terminated.
    """
    if proc.poll() is not None:
        return

    if os.name == "posix":
        _signal_group(proc.pid, signal.SIGTERM)
        try:
            proc.wait(timeout=grace_period)
            return
        except subprocess.TimeoutExpired:
            _signal_group(proc.pid, signal.SIGKILL)
    else:
        proc.terminate()
        try:
            proc.wait(timeout=grace_period)
            return
        except subprocess.TimeoutExpired:
            proc.kill()

    proc.wait()


def _signal_group(pgid: int, sig: int) -> None:
    try:
        os.killpg(pgid, sig)
    except ProcessLookupError:
        pass


def _start_reader(
    stream: Optional[IO[str]],
    stream_type: StreamType,
    lines: List[str],
    tool_name: str,
    handler: StreamHandler,
) -> threading.Thread:
    def read() -> None:
        if stream is None:
            return
        with stream:
            for line_num, line in enumerate(stream, 1):
                line = line.rstrip("\n\r")
                lines.append(line)
                handler.emit(
                    StreamEvent(
                        tool_name=tool_name,
                        stream_type=stream_type,
                        content=line,
                        line_number=line_num,
                    )
                )

    thread = threading.Thread(target=read, daemon=True)
    thread.start()
    return thread
