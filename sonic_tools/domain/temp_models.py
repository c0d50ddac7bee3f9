"""
Defines the scratch workspace that bridges in-memory payloads and the
file-based interface of the external media engine.

FFmpeg reads and writes files, while requests carry bytes. Every byte string
the engine has to see is written to a `ScratchFile`, and every output the
engine produces lands in one. All of them belong to a `ScratchWorkspace`, and
leaving the workspace deletes them no matter how the block was left.

Lifecycle:
1. An operation opens a workspace with `with ScratchWorkspace() as workspace:`.
2. It calls `acquire()` for inputs, `acquire_empty()` for engine outputs and
   `acquire_text()` for helper files such as concat lists.
3. Intermediate files may be released early with `release()`; releasing twice
   is a no-op.
4. On exit, normal or by exception, the workspace releases every file it
   handed out and removes its private directory.
"""

import os
import tempfile
from pathlib import Path
from typing import List, Optional

from loguru import logger

from ..config.common import SCRATCH_PREFIX, TEMP_WORK_DIR
from .exceptions import ScratchIOException


def _suffix_for(extension_hint: Optional[str]) -> str:
    if not extension_hint:
        return ""
    return "." + extension_hint.strip().lstrip(".").lower()


class ScratchFile:
    """
    A uniquely named temporary file owned by one operation.

    Attributes:
        path (Path): Location of the file on disk.
        extension_hint (Optional[str]): Extension given at creation, without the dot.
        released (bool): True once the file has been deleted.
    """

    def __init__(self, path: Path, extension_hint: Optional[str] = None):
        self.path = path
        self.extension_hint = extension_hint
        self.released = False

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"ScratchFile({str(self.path)!r}, {state})"

    def __str__(self) -> str:
        return str(self.path)

    def __enter__(self) -> "ScratchFile":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()

    def exists(self) -> bool:
        return not self.released and self.path.is_file()

    def size(self) -> int:
        return self.path.stat().st_size if self.exists() else 0

    def read_bytes(self) -> bytes:
        if self.released:
            raise ScratchIOException(f"Scratch file {self.path.name} was already released.")
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise ScratchIOException(f"Failed to read scratch file {self.path.name}: {e}") from e

    def release(self):
        """Deletes the file. Only the first call does anything."""
        if self.released:
            return
        self.released = True
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            # The directory cleanup of the owning workspace retries the removal.
            logger.warning(f"Could not delete scratch file {self.path}: {e}")


class ScratchWorkspace:
    """
    A private temporary directory plus the scratch files created in it.

    Workspaces are never shared between requests, so file lifetimes cannot
    cross request boundaries. Names are generated with `tempfile.mkstemp`, which
    makes them collision-free even when several workspaces share a parent dir.

    Args:
        base_dir: Parent directory for the workspace. Defaults to the configured
                  `temp_work_dir`, or the system temporary directory when unset.
    """

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = base_dir if base_dir is not None else TEMP_WORK_DIR
        self.files: List[ScratchFile] = []
        self._temp_dir: Optional[tempfile.TemporaryDirectory] = None
        self.root: Optional[Path] = None

    def __enter__(self) -> "ScratchWorkspace":
        effective_base = self.base_dir if self.base_dir and self.base_dir.is_dir() else None
        if self.base_dir and effective_base is None:
            logger.warning(f"Temp work dir '{self.base_dir}' is not a directory. Using the system default.")
        try:
            self._temp_dir = tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX, dir=effective_base)
        except OSError as e:
            raise ScratchIOException(f"Failed to create scratch workspace: {e}") from e
        self.root = Path(self._temp_dir.name)
        logger.trace(f"Opened scratch workspace {self.root}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        for scratch in self.files:
            scratch.release()
        if self._temp_dir is not None:
            try:
                self._temp_dir.cleanup()
            except OSError as e:
                logger.warning(f"Could not remove scratch workspace {self.root}: {e}")
            logger.trace(f"Closed scratch workspace {self.root} ({len(self.files)} file(s))")
            self._temp_dir = None

    def _new_path(self, extension_hint: Optional[str]) -> Path:
        if self.root is None:
            raise ScratchIOException("Scratch workspace is not open. Use it as a context manager.")
        try:
            fd, name = tempfile.mkstemp(prefix=SCRATCH_PREFIX, suffix=_suffix_for(extension_hint), dir=self.root)
        except OSError as e:
            raise ScratchIOException(f"Failed to create scratch file: {e}") from e
        os.close(fd)
        return Path(name)

    def _register(self, path: Path, extension_hint: Optional[str]) -> ScratchFile:
        scratch = ScratchFile(path, extension_hint)
        self.files.append(scratch)
        return scratch

    def acquire(self, data: bytes, extension_hint: Optional[str] = None) -> ScratchFile:
        """
        Writes `data` to a new scratch file.

        Args:
            data: The bytes to materialize.
            extension_hint: Optional extension so the engine can recognize the
                            container from the filename.

        Raises:
            ScratchIOException: If the file cannot be created or written.
        """
        scratch = self._register(self._new_path(extension_hint), extension_hint)
        try:
            scratch.path.write_bytes(data)
        except OSError as e:
            scratch.release()
            raise ScratchIOException(f"Failed to write scratch file {scratch.path.name}: {e}") from e
        return scratch

    def acquire_empty(self, extension_hint: Optional[str] = None) -> ScratchFile:
        """Reserves a new, empty scratch file for the engine to write into."""
        return self._register(self._new_path(extension_hint), extension_hint)

    def acquire_text(self, text: str, extension_hint: Optional[str] = "txt") -> ScratchFile:
        return self.acquire(text.encode("utf-8"), extension_hint)
