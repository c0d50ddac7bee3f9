"""
The engine invoker: builds FFmpeg argument lists and runs them against
scratch files.

Every invocation follows the same shape: global flags, inputs, processing
options, output muxer, output path. The output is always a fresh scratch file
from the caller's workspace. If the engine fails, that file is released before
the error propagates, so a caller never sees a half-written output.
"""
from typing import Iterable, List, Optional, Sequence

from loguru import logger

from ..config.audio import GLOBAL_FFMPEG_FLAGS, INTERMEDIATE_FORMAT
from ..domain.exceptions import EngineExecutionException
from ..domain.plans import EncodePlan
from ..domain.temp_models import ScratchFile, ScratchWorkspace


def format_seconds(value: float) -> str:
    """Renders a time offset for -ss/-to without a trailing '.0' on whole seconds."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.3f}".rstrip("0").rstrip(".")


def build_encode_args(
    input_path: str,
    output_path: str,
    plan: EncodePlan,
    filters: Optional[Sequence[str]] = None,
    bitrate_kbps: Optional[int] = None,
) -> List[str]:
    """
    Builds the ffmpeg arguments (without the executable) for one encode.

    Order: global flags, input, -vn, optional filter chain, optional bitrate,
    plan codec flags, output muxer, output path. The bitrate is only added when
    the plan accepts one and a positive value is given.
    """
    args: List[str] = [*GLOBAL_FFMPEG_FLAGS, "-i", input_path, "-vn"]
    if filters:
        args.extend(["-af", ",".join(filters)])
    if plan.bitrate_applicable and bitrate_kbps and bitrate_kbps > 0:
        args.extend(["-b:a", f"{int(bitrate_kbps)}k"])
    args.extend(plan.codec_args)
    args.extend(["-f", plan.muxer, output_path])
    return args


def build_concat_list(paths: Iterable[str]) -> str:
    """
    Renders a concat demuxer list, one `file '<path>'` line per part.

    Single quotes inside a path are closed, escaped and reopened ('\\'').
    """
    lines = []
    for path in paths:
        escaped = path.replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
    return "\n".join(lines) + "\n"


class EncodingService:
    """
    Runs FFmpeg invocations for the operation strategies.

    Args:
        engine: The engine capability. Anything with `encode(args) -> EngineResult`
                works; the real one is `FFmpegEngine`.
    """

    def __init__(self, engine):
        self.engine = engine

    def encode(
        self,
        workspace: ScratchWorkspace,
        source: ScratchFile,
        plan: EncodePlan,
        filters: Optional[Sequence[str]] = None,
        bitrate_kbps: Optional[int] = None,
    ) -> ScratchFile:
        """
        Encodes `source` according to `plan` into a new scratch file.

        Raises:
            EngineExecutionException: If the engine fails or writes nothing.
        """
        if bitrate_kbps and not plan.bitrate_applicable:
            logger.warning(f"'{plan.extension}' is lossless; target bitrate {bitrate_kbps}k has no effect.")
        output = workspace.acquire_empty(plan.extension)
        args = build_encode_args(str(source.path), str(output.path), plan, filters, bitrate_kbps)
        return self._run(args, output, f"encode to {plan.extension}")

    def cut(
        self,
        workspace: ScratchWorkspace,
        source: ScratchFile,
        start: Optional[float] = None,
        end: Optional[float] = None,
    ) -> ScratchFile:
        """
        Copies the `[start, end)` range of an intermediate WAV without re-encoding.

        Either bound may be None, which leaves that side open.
        """
        output = workspace.acquire_empty(INTERMEDIATE_FORMAT)
        args: List[str] = [*GLOBAL_FFMPEG_FLAGS, "-i", str(source.path)]
        if start is not None:
            args.extend(["-ss", format_seconds(start)])
        if end is not None:
            args.extend(["-to", format_seconds(end)])
        args.extend(["-c", "copy", "-f", INTERMEDIATE_FORMAT, str(output.path)])
        return self._run(args, output, f"cut [{start}, {end})")

    def concat(self, workspace: ScratchWorkspace, parts: Sequence[ScratchFile]) -> ScratchFile:
        """Joins intermediate WAV parts in the given order with stream copy."""
        if not parts:
            raise EngineExecutionException("No parts to concatenate.")
        list_file = workspace.acquire_text(build_concat_list(str(part.path) for part in parts))
        output = workspace.acquire_empty(INTERMEDIATE_FORMAT)
        args = [
            *GLOBAL_FFMPEG_FLAGS,
            "-f", "concat",
            "-safe", "0",
            "-i", str(list_file.path),
            "-c", "copy",
            "-f", INTERMEDIATE_FORMAT,
            str(output.path),
        ]
        try:
            return self._run(args, output, f"concat of {len(parts)} part(s)")
        finally:
            list_file.release()

    def apply(
        self,
        workspace: ScratchWorkspace,
        input_args: Sequence[str],
        output_args: Sequence[str],
        extension: Optional[str] = None,
    ) -> ScratchFile:
        """
        Runs a custom invocation: global flags, `input_args`, `output_args`, output path.

        Used where the argument list does not fit an encode plan, e.g. tagging.
        """
        output = workspace.acquire_empty(extension)
        args = [*GLOBAL_FFMPEG_FLAGS, *input_args, *output_args, str(output.path)]
        return self._run(args, output, "custom invocation")

    def _run(self, args: List[str], output: ScratchFile, description: str) -> ScratchFile:
        try:
            result = self.engine.encode(args)
        except EngineExecutionException:
            output.release()
            raise

        if result.returncode != 0:
            output.release()
            raise EngineExecutionException(
                f"ffmpeg failed during {description} (exit status {result.returncode})",
                stderr=result.stderr,
                returncode=result.returncode,
                command=args,
            )
        if not output.exists() or output.size() == 0:
            output.release()
            raise EngineExecutionException(
                f"ffmpeg reported success during {description} but wrote no output",
                stderr=result.stderr,
                returncode=result.returncode,
                command=args,
            )
        logger.debug(f"ffmpeg {description} finished: {output.path.name} ({output.size()} bytes)")
        return output
