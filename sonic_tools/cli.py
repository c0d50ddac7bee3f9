"""
Command-Line Interface (CLI) for Sonic Tools.

This module defines the subcommands with `argparse`, turns the parsed
arguments into an operation request, and runs it through `AudioToolkit`.
The response file is written into the output directory.
"""
import argparse
import functools
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger

from .config.audio import TRIM_ACTION_KEEP, TRIM_ACTION_REMOVE
from .config.common import LOG_FILE, LOG_LEVEL, MAX_FILES, MAX_UPLOAD_SIZE, TEMP_WORK_DIR
from .domain.exceptions import InvalidArgumentException, SonicToolsException
from .domain.media import (
    BoostRequest,
    CompressPercentageRequest,
    CompressQualityRequest,
    CompressSizeRequest,
    ConvertRequest,
    MergeRequest,
    MetadataRequest,
    NormalizeRequest,
    OperationRequest,
    Response,
    TrimRequest,
)
from .domain.plans import supported_formats
from .domain.temp_models import ScratchWorkspace
from .pipeline.batch_pipeline import AudioToolkit
from .services.logging_service import configure_logging
from .utils.engine_check import Modules
from .utils.format_utils import formatted_size, unique_archive_names

# Subcommand -> AudioToolkit method.
OPERATIONS = {
    "compress-percentage": "compress_percentage",
    "compress-size": "compress_size",
    "compress-quality": "compress_quality",
    "convert": "convert",
    "boost": "boost",
    "normalize": "normalize",
    "trim": "trim",
    "merge": "merge",
    "metadata": "write_metadata",
}


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("files", nargs="+", type=Path, help="Input audio files.")
    common.add_argument(
        "--output-dir", type=Path, default=Path.cwd(), help="Directory the result is written to."
    )
    common.add_argument(
        "--log-level", type=str.upper, default=LOG_LEVEL,
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"], help="Set the logging level."
    )
    common.add_argument(
        "--temp-work-dir", type=Path, default=None,
        help="Directory for scratch files. Useful for pointing to a RAM disk to reduce HDD/SSD writes."
    )
    common.add_argument(
        "--skip-engine-check", action="store_true", help="Do not run `ffmpeg -version` before starting."
    )

    formats = ", ".join(supported_formats())
    parser = argparse.ArgumentParser(prog="sonic-tools", description="Audio file tools powered by FFmpeg.")
    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    sub = subparsers.add_parser("compress-percentage", parents=[common], help="Compress to a percentage of the bit rate.")
    sub.add_argument("--percentage", type=float, required=True, help="Target bit rate in percent of the original.")

    sub = subparsers.add_parser("compress-size", parents=[common], help="Compress to a target file size.")
    sub.add_argument("--size", type=float, required=True, help="Target size in megabytes.")

    sub = subparsers.add_parser("compress-quality", parents=[common], help="Compress to a quality tier.")
    sub.add_argument("--quality", default="medium", help="low (64k), medium (128k) or high (256k).")

    sub = subparsers.add_parser("convert", parents=[common], help="Convert to another format.")
    sub.add_argument("--format", dest="output_format", required=True, help=f"One of: {formats}.")
    sub.add_argument("--bitrate", type=int, default=0, help="Target bit rate in kbps (lossy formats only).")

    sub = subparsers.add_parser("boost", parents=[common], help="Change the volume by a fixed gain.")
    sub.add_argument("--gain", type=float, required=True, help="Gain in dB. Negative values attenuate.")
    sub.add_argument("--format", dest="output_format", default=None, help=f"Optional output format: {formats}.")

    sub = subparsers.add_parser("normalize", parents=[common], help="Normalize loudness (EBU R128).")
    sub.add_argument("--format", dest="output_format", default=None, help=f"Optional output format: {formats}.")

    sub = subparsers.add_parser("trim", parents=[common], help="Keep or remove a time range.")
    sub.add_argument("--start", type=float, default=None, help="Range start in seconds.")
    sub.add_argument("--end", type=float, default=None, help="Range end in seconds.")
    sub.add_argument("--action", choices=[TRIM_ACTION_KEEP, TRIM_ACTION_REMOVE], default=TRIM_ACTION_KEEP)
    sub.add_argument("--format", dest="output_format", default=None, help=f"Optional output format: {formats}.")

    sub = subparsers.add_parser("merge", parents=[common], help="Join all files in the given order.")
    sub.add_argument("--format", dest="output_format", required=True, help=f"One of: {formats}.")
    sub.add_argument("--bitrate", type=int, default=0, help="Target bit rate in kbps (lossy formats only).")

    sub = subparsers.add_parser("metadata", parents=[common], help="Write tags and cover art.")
    sub.add_argument("--title", default=None)
    sub.add_argument("--artist", default=None)
    sub.add_argument("--album", default=None)
    sub.add_argument("--year", default=None)
    sub.add_argument("--cover", type=Path, default=None, help="Cover image (JPEG or PNG).")

    return parser


def get_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for Sonic Tools.

    Returns:
        argparse.Namespace: The subcommand in `command`, the input paths in
                            `files`, and the options of that subcommand.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # Validate temp_work_dir if provided. If it doesn't exist, try to create it.
    if args.temp_work_dir:
        if not args.temp_work_dir.is_dir():
            try:
                args.temp_work_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                parser.error(f"The temporary working directory '{args.temp_work_dir}' could not be created: {e}")
        args.temp_work_dir = args.temp_work_dir.resolve()

    return args


def read_inputs(paths: List[Path]):
    """
    Reads the input files and enforces the upload limits.

    Returns:
        A (payloads, filenames) pair in the order given on the command line.

    Raises:
        InvalidArgumentException: If there are too many files, they are too large
                                  together, or one cannot be read.
    """
    if len(paths) > MAX_FILES:
        raise InvalidArgumentException(f"Too many files: {len(paths)} (at most {MAX_FILES})")

    file_data, filenames = [], []
    total = 0
    for path in paths:
        try:
            data = path.read_bytes()
        except OSError as e:
            raise InvalidArgumentException(f"Cannot read '{path}': {e}") from e
        total += len(data)
        if total > MAX_UPLOAD_SIZE:
            raise InvalidArgumentException(
                f"Upload too large: more than {formatted_size(MAX_UPLOAD_SIZE)} in total"
            )
        file_data.append(data)
        filenames.append(path.name)
    return file_data, filenames


def build_request(args: argparse.Namespace, file_data: List[bytes], filenames: List[str]) -> OperationRequest:
    """Creates the request object for the parsed subcommand."""
    common = {"file_data": file_data, "filenames": filenames}
    command = args.command
    if command == "compress-percentage":
        return CompressPercentageRequest(percentage=args.percentage, **common)
    if command == "compress-size":
        return CompressSizeRequest(size_mb=args.size, **common)
    if command == "compress-quality":
        return CompressQualityRequest(quality=args.quality, **common)
    if command == "convert":
        return ConvertRequest(output_format=args.output_format, bitrate_kbps=args.bitrate, **common)
    if command == "boost":
        return BoostRequest(gain_db=args.gain, output_format=args.output_format, **common)
    if command == "normalize":
        return NormalizeRequest(output_format=args.output_format, **common)
    if command == "trim":
        return TrimRequest(
            start=args.start, end=args.end, action=args.action, output_format=args.output_format, **common
        )
    if command == "merge":
        return MergeRequest(output_format=args.output_format, bitrate_kbps=args.bitrate, **common)
    if command == "metadata":
        cover_art = None
        if args.cover:
            try:
                cover_art = args.cover.read_bytes()
            except OSError as e:
                raise InvalidArgumentException(f"Cannot read cover '{args.cover}': {e}") from e
        return MetadataRequest(
            title=args.title, artist=args.artist, album=args.album, year=args.year, cover_art=cover_art, **common
        )
    raise InvalidArgumentException(f"Unknown command '{command}'")


def write_response(response: Response, output_dir: Path, inputs: Sequence[Path] = ()) -> Path:
    """
    Writes the response file into `output_dir`.

    An input file is never overwritten: when the response name points at one
    of `inputs`, the name gets a `_(n)` suffix before the extension instead.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / response.filename
    protected = {path.resolve() for path in inputs}
    if output_path.resolve() in protected:
        taken = [path.name for path in protected if path.parent == output_dir.resolve()]
        output_path = output_dir / unique_archive_names([*taken, response.filename])[-1]
        logger.warning(f"{response.filename} would overwrite an input file; writing {output_path.name} instead.")
    output_path.write_bytes(response.data)
    return output_path


def main(argv: Optional[List[str]] = None, toolkit: Optional[AudioToolkit] = None) -> int:
    """
    Runs one subcommand end to end.

    Steps:
    1. Parses the arguments and configures logging.
    2. Verifies that ffmpeg and ffprobe can run (unless skipped or a toolkit is injected).
    3. Reads the inputs within the upload limits and builds the request.
    4. Runs the operation and writes the response into the output directory.

    Returns:
        0 on success, 1 if the operation failed.
    """
    args = get_args(argv)
    configure_logging(args.log_level, LOG_FILE)
    logger.debug(f"Parsed arguments: {args}")

    if toolkit is None:
        if not args.skip_engine_check and not Modules.run_all():
            logger.warning("FFmpeg check failed; the operation will most likely fail too.")
        base_dir = args.temp_work_dir or TEMP_WORK_DIR
        toolkit = AudioToolkit(workspace_factory=functools.partial(ScratchWorkspace, base_dir=base_dir))

    try:
        file_data, filenames = read_inputs(args.files)
        request = build_request(args, file_data, filenames)
        logger.info(f"Running {args.command} on {len(file_data)} file(s)")
        response = getattr(toolkit, OPERATIONS[args.command])(request)
        output_path = write_response(response, args.output_dir, args.files)
    except SonicToolsException as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except OSError as e:
        logger.error(f"Could not write the result: {e}")
        return 1

    logger.success(f"{args.command} finished: {output_path} ({formatted_size(len(response.data))})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
