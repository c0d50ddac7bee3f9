"""
This module defines the single-pass encoding strategies.

Each class here decodes one input file and encodes it once more with FFmpeg:
the compress variants choose a target bitrate, convert switches the container
and codec, and boost and normalize run an audio filter on the way through.
"""

import math

from loguru import logger

from ..config.audio import (
    COMPRESSED_SUFFIX,
    DEFAULT_QUALITY_BITRATE_KBPS,
    LOUDNORM_FILTER,
    MIN_TARGET_BITRATE_KBPS,
    QUALITY_BITRATES_KBPS,
)
from ..domain.exceptions import InvalidArgumentException
from ..domain.media import (
    BoostRequest,
    CompressPercentageRequest,
    CompressQualityRequest,
    CompressSizeRequest,
    ConvertRequest,
    MediaBlob,
    NormalizeRequest,
    OperationResult,
    split_filename,
)
from ..domain.plans import resolve_plan
from ..domain.temp_models import ScratchWorkspace
from .encoder_base import AudioOperation


def target_bitrate_from_percentage(bit_rate_bps: int, percentage: float) -> int:
    """
    Computes the target bitrate (kbps) as a percentage of the source bit rate.

    `floor(bps * percentage / 100 / 1000)`, never below `MIN_TARGET_BITRATE_KBPS`.
    For example, 320000 bps at 50% gives 160 kbps.
    """
    target = math.floor(bit_rate_bps * percentage / 100 / 1000)
    return max(target, MIN_TARGET_BITRATE_KBPS)


def target_bitrate_from_size(size_mb: float, duration_seconds: float) -> int:
    """
    Computes the bitrate (kbps) that makes `duration_seconds` of audio fit in `size_mb`.

    `floor(size_mb * 1024 * 1024 * 8 / duration / 1000)`, never below
    `MIN_TARGET_BITRATE_KBPS`. One megabyte over 60 seconds gives 139 kbps.
    """
    target = math.floor(size_mb * 1024 * 1024 * 8 / duration_seconds / 1000)
    return max(target, MIN_TARGET_BITRATE_KBPS)


def bitrate_for_quality(quality: str) -> int:
    """Maps a quality tier to its fixed bitrate; unknown tiers get the default."""
    return QUALITY_BITRATES_KBPS.get((quality or "").strip().lower(), DEFAULT_QUALITY_BITRATE_KBPS)


class AudioEncoder(AudioOperation):
    """
    Encodes a file into its target format with an optional bitrate and filters.

    Subclasses decide the bitrate, the filters, the target format and the
    output name; the encode itself is the same for all of them.
    """

    name = "encode"

    def process_file(self, filename, data, request, workspace: ScratchWorkspace) -> OperationResult:
        output_format = getattr(request, "output_format", None)
        plan = self.target_plan(filename, output_format)
        blob = MediaBlob.from_named(filename, data)
        bitrate_kbps = self.bitrate_kbps(blob, request)

        source = workspace.acquire(blob.data, blob.extension)
        encoded = self.encoding_service.encode(workspace, source, plan, self.filters(request), bitrate_kbps)
        return OperationResult(
            filename=self.result_name(filename, plan, request),
            data=encoded.read_bytes(),
            format=plan.extension,
        )

    def bitrate_kbps(self, blob: MediaBlob, request) -> int:
        return 0

    def filters(self, request):
        return []

    def result_name(self, filename, plan, request) -> str:
        return self.output_name(filename, plan, getattr(request, "output_format", None))


class PercentageCompressor(AudioEncoder):
    name = "compress-percentage"

    def validate(self, request: CompressPercentageRequest):
        super().validate(request)
        if request.percentage is None or request.percentage <= 0:
            raise InvalidArgumentException(f"percentage must be positive, got {request.percentage}")

    def bitrate_kbps(self, blob, request: CompressPercentageRequest) -> int:
        original = self.probe_service.bit_rate(blob)
        target = target_bitrate_from_percentage(original, request.percentage)
        logger.debug(f"[{self.name}] {original} bps at {request.percentage}% -> {target} kbps")
        return target


class SizeCompressor(AudioEncoder):
    name = "compress-size"

    def validate(self, request: CompressSizeRequest):
        super().validate(request)
        if request.size_mb is None or request.size_mb <= 0:
            raise InvalidArgumentException(f"target size must be positive, got {request.size_mb} MB")

    def bitrate_kbps(self, blob, request: CompressSizeRequest) -> int:
        duration = self.probe_service.duration_seconds(blob)
        target = target_bitrate_from_size(request.size_mb, duration)
        logger.debug(f"[{self.name}] {request.size_mb} MB over {duration:.2f}s -> {target} kbps")
        return target

    def result_name(self, filename, plan, request) -> str:
        stem, extension = split_filename(filename)
        return f"{stem}{COMPRESSED_SUFFIX}.{extension or plan.extension}"


class QualityCompressor(AudioEncoder):
    name = "compress-quality"

    def bitrate_kbps(self, blob, request: CompressQualityRequest) -> int:
        return bitrate_for_quality(request.quality)


class FormatConverter(AudioEncoder):
    name = "convert"

    def validate(self, request: ConvertRequest):
        super().validate(request)
        if not (request.output_format or "").strip():
            raise InvalidArgumentException("output_format is required (e.g. mp3, wav, flac, m4a)")
        resolve_plan(request.output_format)

    def bitrate_kbps(self, blob, request: ConvertRequest) -> int:
        return request.bitrate_kbps or 0


class VolumeBooster(AudioEncoder):
    name = "boost"

    def validate(self, request: BoostRequest):
        super().validate(request)
        if request.output_format:
            resolve_plan(request.output_format)

    def filters(self, request: BoostRequest):
        gain = request.gain_db
        if float(gain).is_integer():
            gain = int(gain)
        return [f"volume={gain}dB"]


class LoudnessNormalizer(AudioEncoder):
    name = "normalize"

    def validate(self, request: NormalizeRequest):
        super().validate(request)
        if request.output_format:
            resolve_plan(request.output_format)

    def filters(self, request: NormalizeRequest):
        return [LOUDNORM_FILTER]
