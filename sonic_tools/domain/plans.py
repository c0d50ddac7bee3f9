"""
Encode and tagging plans for every audio format the service can produce.

A plan is the fixed part of an FFmpeg invocation for one output format: the
muxer passed with `-f`, the codec flags, whether a target bitrate means
anything for the codec, and the canonical file extension. Plans are looked up
by format name and never guessed.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from .exceptions import UnsupportedFormatException


@dataclass(frozen=True)
class EncodePlan:
    muxer: str
    codec_args: Tuple[str, ...]
    bitrate_applicable: bool
    extension: str


class CoverMode(Enum):
    NONE = "none"
    MP3_ATTACHED = "mp3_attached"  # ID3v2 APIC frame
    MP4_COVER_ATOM = "mp4_cover_atom"  # covr atom


@dataclass(frozen=True)
class MetadataPlan:
    muxer: str
    extra_args: Tuple[str, ...]
    cover_mode: CoverMode
    supports_tags: bool
    extension: str


_MP3 = EncodePlan("mp3", ("-c:a", "libmp3lame"), True, "mp3")
_OGG = EncodePlan("ogg", ("-c:a", "libvorbis"), True, "ogg")
_OPUS = EncodePlan("ogg", ("-c:a", "libopus"), True, "opus")
_AAC = EncodePlan("adts", ("-c:a", "aac"), True, "aac")
_M4A = EncodePlan("mp4", ("-c:a", "aac", "-movflags", "+faststart"), True, "m4a")
_WMA = EncodePlan("asf", ("-c:a", "wmav2", "-ar", "44100", "-ac", "2"), True, "wma")
_WAV = EncodePlan("wav", ("-c:a", "pcm_s16le"), False, "wav")
_FLAC = EncodePlan("flac", ("-c:a", "flac"), False, "flac")
_AIFF = EncodePlan("aiff", ("-c:a", "pcm_s16be"), False, "aiff")

ENCODE_PLANS: Dict[str, EncodePlan] = {
    "mp3": _MP3,
    "ogg": _OGG,
    "opus": _OPUS,
    "aac": _AAC,
    "m4a": _M4A,
    "alac": _M4A,
    "wma": _WMA,
    "wav": _WAV,
    "flac": _FLAC,
    "aiff": _AIFF,
    "aif": _AIFF,
}

_TEXT_ONLY = ()

METADATA_PLANS: Dict[str, MetadataPlan] = {
    "mp3": MetadataPlan(
        "mp3", ("-id3v2_version", "3", "-write_id3v1", "1"), CoverMode.MP3_ATTACHED, True, "mp3"
    ),
    "m4a": MetadataPlan("mp4", ("-movflags", "+faststart"), CoverMode.MP4_COVER_ATOM, True, "m4a"),
    "mp4": MetadataPlan("mp4", ("-movflags", "+faststart"), CoverMode.MP4_COVER_ATOM, True, "mp4"),
    "alac": MetadataPlan("mp4", ("-movflags", "+faststart"), CoverMode.MP4_COVER_ATOM, True, "m4a"),
    "wma": MetadataPlan("asf", _TEXT_ONLY, CoverMode.NONE, True, "wma"),
    "aac": MetadataPlan("adts", _TEXT_ONLY, CoverMode.NONE, False, "aac"),
    "ogg": MetadataPlan("ogg", _TEXT_ONLY, CoverMode.NONE, True, "ogg"),
    "opus": MetadataPlan("ogg", _TEXT_ONLY, CoverMode.NONE, True, "opus"),
    "wav": MetadataPlan("wav", _TEXT_ONLY, CoverMode.NONE, True, "wav"),
    "flac": MetadataPlan("flac", _TEXT_ONLY, CoverMode.NONE, True, "flac"),
    "aiff": MetadataPlan("aiff", _TEXT_ONLY, CoverMode.NONE, True, "aiff"),
    "aif": MetadataPlan("aiff", _TEXT_ONLY, CoverMode.NONE, True, "aiff"),
}


def normalize_format(format_name: str) -> str:
    """Lowercases a format name and strips whitespace and a leading dot ('.MP3' -> 'mp3')."""
    return (format_name or "").strip().lower().lstrip(".")


def resolve_plan(format_name: str) -> EncodePlan:
    """
    Maps an output format name to its encode plan.

    Args:
        format_name: A format such as "mp3", "M4A" or "aif". Matching is case-insensitive.

    Returns:
        The `EncodePlan` for the format.

    Raises:
        UnsupportedFormatException: If the format is not one the service can produce.
    """
    key = normalize_format(format_name)
    try:
        return ENCODE_PLANS[key]
    except KeyError:
        raise UnsupportedFormatException(
            f"Unsupported output format '{format_name}'. Supported: {', '.join(supported_formats())}"
        ) from None


def resolve_metadata_plan(format_name: str) -> MetadataPlan:
    """
    Maps a file format to the tagging plan used by metadata-write.

    Raises:
        UnsupportedFormatException: If the format has no tagging plan at all.
    """
    key = normalize_format(format_name)
    try:
        return METADATA_PLANS[key]
    except KeyError:
        raise UnsupportedFormatException(
            f"Unsupported extension for metadata: '{format_name}'"
        ) from None


def supported_formats() -> Tuple[str, ...]:
    return tuple(sorted(ENCODE_PLANS))
