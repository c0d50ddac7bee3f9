"""
Configuration settings related to audio processing.

This module defines the constants used by the operation strategies: the
bitrate floors and tiers for compression, the loudness-normalization target,
the lossless intermediate format used for cutting and joining, and the fixed
flags passed to every FFmpeg invocation.
"""

# ======================================================================================
# Engine Invocation
# ======================================================================================

# Flags placed at the front of every FFmpeg command: overwrite the output and
# keep the engine quiet except for real errors, which end up in stderr.
GLOBAL_FFMPEG_FLAGS = ("-y", "-hide_banner", "-loglevel", "error")

# Lossless intermediate used by trim and merge. PCM WAV can be cut and
# concatenated with stream copy at sample accuracy.
INTERMEDIATE_FORMAT = "wav"


# ======================================================================================
# Compression
# ======================================================================================

# No computed target bitrate goes below this value (kbps).
MIN_TARGET_BITRATE_KBPS = 32

# Fixed bitrates (kbps) for the quality tiers of compress-by-quality.
QUALITY_BITRATES_KBPS = {
    "low": 64,
    "medium": 128,
    "high": 256,
}

# Used for an unknown or empty quality tier.
DEFAULT_QUALITY_BITRATE_KBPS = 128

# Appended to the stem of files produced by compress-by-size.
COMPRESSED_SUFFIX = "_compressed"


# ======================================================================================
# Loudness
# ======================================================================================

# EBU R128 single-pass normalization target.
LOUDNORM_INTEGRATED_LUFS = -16
LOUDNORM_TRUE_PEAK_DBTP = -1.5
LOUDNORM_LOUDNESS_RANGE_LU = 11

LOUDNORM_FILTER = (
    f"loudnorm=I={LOUDNORM_INTEGRATED_LUFS}"
    f":TP={LOUDNORM_TRUE_PEAK_DBTP}"
    f":LRA={LOUDNORM_LOUDNESS_RANGE_LU}"
)


# ======================================================================================
# Trim and Merge
# ======================================================================================

TRIM_ACTION_KEEP = "keep"
TRIM_ACTION_REMOVE = "remove"

# Stem of the single file produced by merge.
MERGED_FILENAME_STEM = "merged"
