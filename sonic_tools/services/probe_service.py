"""
Probe service: reads the media properties that bitrate arithmetic depends on.
"""
from typing import Callable, Optional

from loguru import logger

from ..domain.exceptions import ProbeParseException
from ..domain.media import MediaBlob
from ..domain.temp_models import ScratchWorkspace


class ProbeService:
    """
    Queries the engine for the container bit rate and duration of a payload.

    Each query writes the payload to a scratch file in a workspace of its own,
    asks ffprobe for a single `format` entry, and parses it as a number.

    Args:
        engine: Engine capability with `probe(path, entries) -> dict`.
        workspace_factory: Callable returning a fresh `ScratchWorkspace`.
    """

    def __init__(self, engine, workspace_factory: Callable[[], ScratchWorkspace] = ScratchWorkspace):
        self.engine = engine
        self.workspace_factory = workspace_factory

    def bit_rate(self, blob: MediaBlob) -> int:
        """Returns the overall bit rate in bits per second."""
        raw = self._probe_format_field(blob, "bit_rate")
        try:
            return int(str(raw).strip())
        except ValueError:
            raise ProbeParseException(f"Could not parse bitrate from '{raw}'") from None

    def duration_seconds(self, blob: MediaBlob) -> float:
        """Returns the duration in seconds. Zero or negative durations are rejected."""
        raw = self._probe_format_field(blob, "duration")
        try:
            seconds = float(str(raw).strip())
        except ValueError:
            raise ProbeParseException(f"Could not parse duration from '{raw}'") from None
        if seconds <= 0:
            raise ProbeParseException(f"Probed duration is not positive: {seconds}")
        return seconds

    def _probe_format_field(self, blob: MediaBlob, field: str) -> Optional[str]:
        with self.workspace_factory() as workspace:
            scratch = workspace.acquire(blob.data, blob.extension)
            data = self.engine.probe(scratch.path, f"format={field}")

        value = (data.get("format") or {}).get(field) if isinstance(data, dict) else None
        if value is None or str(value).strip().upper() in ("", "N/A"):
            raise ProbeParseException(f"ffprobe returned no usable '{field}' (got {value!r})")
        logger.debug(f"Probed {field}={value}")
        return value
