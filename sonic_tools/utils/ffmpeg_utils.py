"""
This module provides the process-level interface to FFmpeg and ffprobe.

`run_cmd` executes one external command and captures its output. `FFmpegEngine`
is the engine capability handed to the services: `encode(args)` runs ffmpeg
with a prepared argument list, `probe(path, entries)` queries ffprobe for JSON.
Both go through `run_cmd`, so the configured timeout applies to either.
Services only see this small interface, so tests can swap in a fake engine
that records arguments instead of running anything.
"""

import json
import os
import shlex
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from ..config.common import ENGINE_TIMEOUT_SECONDS, ERROR_LOG_DIR, MODULE_PATH
from ..domain.exceptions import EngineExecutionException, ProbeParseException
from ..services.logging_service import ErrorLog


@dataclass
class EngineResult:
    returncode: int
    stdout: bytes
    stderr: str


def format_cmd(cmd_list: List[str]) -> str:
    """Joins an argument list into a string that can be pasted into a shell."""
    if os.name == "nt":
        return subprocess.list2cmdline(cmd_list)
    return shlex.join(cmd_list)


def run_cmd(
    cmd_list: List[str],
    timeout: Optional[float] = None,
    error_log_dir: Optional[Path] = None,
) -> EngineResult:
    """
    Executes an external command and captures its output.

    This is a wrapper around `subprocess.run` with logging and uniform error
    reporting. The command is never passed through a shell.

    Args:
        cmd_list: The executable followed by its arguments.
        timeout: Wall-clock limit in seconds. The process is killed on expiry.
        error_log_dir: If given, spawn failures and non-zero exits are also
                       appended to `error.txt` in this directory.

    Returns:
        An `EngineResult` with the exit status, raw stdout and decoded stderr.
        A non-zero exit status is returned, not raised.

    Raises:
        EngineExecutionException: If the process cannot be started or times out.
    """
    if not cmd_list:
        raise EngineExecutionException("Refusing to run an empty command.")

    display_cmd_str = format_cmd(cmd_list)
    logger.debug(f"Executing: {display_cmd_str}")

    try:
        completed = subprocess.run(
            cmd_list,
            capture_output=True,
            shell=False,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        message = f"Command not found: '{cmd_list[0]}'. Ensure it is in PATH or set paths.ffmpeg_dir"
        logger.error(message)
        _report(error_log_dir, display_cmd_str, "Error: Command not found (FileNotFoundError).")
        raise EngineExecutionException(message, command=cmd_list) from e
    except subprocess.TimeoutExpired as e:
        stderr = _decode(e.stderr)
        message = f"Command timed out after {timeout}s"
        logger.error(f"{message}: {display_cmd_str}")
        _report(error_log_dir, display_cmd_str, message, stderr)
        raise EngineExecutionException(message, stderr=stderr, command=cmd_list) from e
    except OSError as e:
        message = f"Failed to start '{cmd_list[0]}': {e}"
        logger.error(message)
        _report(error_log_dir, display_cmd_str, message)
        raise EngineExecutionException(message, command=cmd_list) from e

    stderr = _decode(completed.stderr)
    if completed.stdout:
        logger.trace(f"Command stdout ({len(completed.stdout)} bytes)")
    if completed.returncode != 0:
        logger.debug(f"Command stderr (error, rc={completed.returncode}): {stderr}")
        _report(error_log_dir, display_cmd_str, f"Exit status: {completed.returncode}", stderr)
    elif stderr:
        logger.trace(f"Command stderr (non-error): {stderr}")

    return EngineResult(returncode=completed.returncode, stdout=completed.stdout or b"", stderr=stderr)


def _decode(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return str(raw)


def _report(error_log_dir: Optional[Path], display_cmd_str: str, *lines: str):
    if error_log_dir:
        ErrorLog(error_log_dir).write(f"Command: {display_cmd_str}", *[line for line in lines if line])


def executable_path(name: str, module_path: Optional[Path] = MODULE_PATH) -> str:
    """
    Determines the command used to launch an FFmpeg executable.

    The configured `ffmpeg_dir` wins if it contains the executable; otherwise the
    bare name is returned and resolved through the system PATH.
    """
    exe_name = f"{name}.exe" if sys.platform == "win32" else name
    if module_path and module_path.is_dir():
        configured = module_path / exe_name
        if configured.is_file():
            return str(configured)
        logger.warning(f"`ffmpeg_dir` is configured, but '{exe_name}' was not found there. Falling back to system PATH.")
    return name


class FFmpegEngine:
    """
    The real engine capability, backed by the FFmpeg command-line tools.

    Attributes:
        ffmpeg_cmd (str): Command or path used for encoding.
        ffprobe_cmd (str): Command or path used for probing.
        timeout (Optional[float]): Wall-clock limit per encode process.
        error_log_dir (Optional[Path]): Where failure reports are appended.
    """

    def __init__(
        self,
        ffmpeg_cmd: Optional[str] = None,
        ffprobe_cmd: Optional[str] = None,
        timeout: Optional[float] = ENGINE_TIMEOUT_SECONDS,
        error_log_dir: Optional[Path] = ERROR_LOG_DIR,
    ):
        self.ffmpeg_cmd = ffmpeg_cmd or executable_path("ffmpeg")
        self.ffprobe_cmd = ffprobe_cmd or executable_path("ffprobe")
        self.timeout = timeout
        self.error_log_dir = error_log_dir

    def encode(self, args: List[str]) -> EngineResult:
        """Runs ffmpeg with `args` (everything after the executable name)."""
        return run_cmd([self.ffmpeg_cmd, *args], timeout=self.timeout, error_log_dir=self.error_log_dir)

    def probe(self, path: Path, entries: str) -> Dict[str, Any]:
        """
        Runs ffprobe on `path`, restricted to `entries` (e.g. "format=bit_rate").

        ffprobe runs through `run_cmd` with `-show_format -show_streams -of json`,
        so a hung ffprobe is killed after `timeout` seconds like any encode.

        Returns:
            The ffprobe JSON output as a dictionary.

        Raises:
            EngineExecutionException: If ffprobe cannot be started, times out or fails.
            ProbeParseException: If ffprobe does not print valid JSON.
        """
        cmd = [
            self.ffprobe_cmd,
            "-show_format",
            "-show_streams",
            "-of", "json",
            "-show_entries", entries,
            str(path),
        ]
        result = run_cmd(cmd, timeout=self.timeout, error_log_dir=self.error_log_dir)
        if result.returncode != 0:
            logger.error(f"ffprobe failed for {path.name}: {result.stderr.strip()}")
            raise EngineExecutionException(
                "ffprobe failed", stderr=result.stderr, returncode=result.returncode, command=cmd
            )
        try:
            return json.loads(result.stdout.decode("utf-8", errors="replace"))
        except ValueError as e:
            raise ProbeParseException(f"ffprobe printed no valid JSON for {path.name}: {e}") from e
