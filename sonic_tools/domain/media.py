"""
In-memory media payloads, operation requests, and their results.

Requests arrive already decoded from the host: a list of file payloads, an
index-aligned list of filenames, and the parameters of one operation. Every
payload stays in memory for the duration of the request; the scratch workspace
only materializes it on disk while the engine needs it.
"""
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Iterator, List, Optional, Tuple

from ..config.common import DEFAULT_OUTPUT_FILENAME


def split_filename(filename: str) -> Tuple[str, Optional[str]]:
    """
    Splits a filename into its stem and its extension without the dot.

    Only the last suffix counts, so "live.set.flac" gives ("live.set", "flac").
    A name without a suffix gives (name, None).
    """
    path = PurePath(filename or DEFAULT_OUTPUT_FILENAME)
    suffix = path.suffix
    if not suffix or suffix == ".":
        return path.name, None
    return path.stem, suffix[1:].lower()


@dataclass
class MediaBlob:
    """Raw bytes of one audio file plus an optional extension used as a decoding hint."""

    data: bytes
    extension: Optional[str] = None

    @classmethod
    def from_named(cls, filename: str, data: bytes) -> "MediaBlob":
        _, extension = split_filename(filename)
        return cls(data=data, extension=extension)


@dataclass
class OperationResult:
    filename: str
    data: bytes
    format: str


# The host hands results back in the same shape.
Response = OperationResult


@dataclass
class OperationRequest:
    """
    Common part of every operation request.

    Attributes:
        file_data: Payloads in request order.
        filenames: Names aligned by index with `file_data`. Missing trailing names
                   fall back to `DEFAULT_OUTPUT_FILENAME`.
    """

    file_data: List[bytes]
    filenames: List[str] = field(default_factory=list)

    def filename_at(self, index: int) -> str:
        if index < len(self.filenames) and self.filenames[index]:
            return self.filenames[index]
        return DEFAULT_OUTPUT_FILENAME

    def iter_inputs(self) -> Iterator[Tuple[str, bytes]]:
        for index, data in enumerate(self.file_data):
            yield self.filename_at(index), data


@dataclass
class CompressPercentageRequest(OperationRequest):
    percentage: float = 100


@dataclass
class CompressSizeRequest(OperationRequest):
    size_mb: float = 0


@dataclass
class CompressQualityRequest(OperationRequest):
    quality: str = "medium"


@dataclass
class ConvertRequest(OperationRequest):
    output_format: str = ""
    bitrate_kbps: int = 0


@dataclass
class BoostRequest(OperationRequest):
    gain_db: float = 0
    output_format: Optional[str] = None


@dataclass
class NormalizeRequest(OperationRequest):
    output_format: Optional[str] = None


@dataclass
class TrimRequest(OperationRequest):
    start: Optional[float] = None
    end: Optional[float] = None
    action: str = "keep"
    output_format: Optional[str] = None


@dataclass
class MergeRequest(OperationRequest):
    output_format: str = ""
    bitrate_kbps: int = 0


@dataclass
class MetadataRequest(OperationRequest):
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    year: Optional[str] = None
    cover_art: Optional[bytes] = None

    def text_tags(self) -> List[Tuple[str, str]]:
        """Returns the (ffmpeg key, value) pairs for every non-blank text field, in a fixed order."""
        candidates = (
            ("title", self.title),
            ("artist", self.artist),
            ("album", self.album),
            ("date", self.year),
        )
        return [(key, value.strip()) for key, value in candidates if value and value.strip()]

    def any_metadata_requested(self) -> bool:
        return bool(self.text_tags()) or bool(self.cover_art)
