"""
This module writes tags and cover art into audio files without re-encoding
the audio stream.
"""

from typing import List, Sequence, Tuple

from loguru import logger

from ..config.common import DEFAULT_AUDIO_FORMAT
from ..domain.exceptions import EngineExecutionException, UnsupportedMetadataTargetException
from ..domain.media import MediaBlob, MetadataRequest, OperationResult, split_filename
from ..domain.plans import CoverMode, MetadataPlan, resolve_metadata_plan
from ..domain.temp_models import ScratchWorkspace
from .encoder_base import AudioOperation

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
MP4_COVER_TAG_ERROR = "could not find tag for codec"
MP4_COVER_HINT = "Hint: some cover formats are not allowed in MP4. Try JPEG or PNG."
ADTS_METADATA_ERROR = "Raw AAC (.aac/ADTS) does not support embedded metadata. Use .m4a instead."


def cover_extension(cover_art: bytes) -> str:
    return "png" if cover_art.startswith(PNG_SIGNATURE) else "jpg"


def build_metadata_output_args(
    plan: MetadataPlan,
    with_cover: bool,
    tags: Sequence[Tuple[str, str]],
) -> List[str]:
    """
    Builds the output side of a tagging invocation: stream mapping, per-format
    flags, one `-metadata key=value` pair per tag, and the muxer.

    With a cover the audio comes from input 0 and the picture from input 1.
    MP3 pictures are re-encoded to MJPEG, MP4 pictures are copied as they are.
    Without a cover only the audio streams are copied, which drops any video
    or subtitle streams of the input.
    """
    args: List[str] = []
    if with_cover and plan.cover_mode == CoverMode.MP3_ATTACHED:
        args.extend(["-map", "0:a", "-map", "1:v", "-c:a", "copy", "-c:v", "mjpeg", "-disposition:v", "attached_pic"])
    elif with_cover and plan.cover_mode == CoverMode.MP4_COVER_ATOM:
        args.extend(["-map", "0:a", "-map", "1:v", "-c:a", "copy", "-c:v", "copy", "-disposition:v", "attached_pic"])
    else:
        args.extend(["-map", "0:a", "-c", "copy"])

    args.extend(plan.extra_args)
    for key, value in tags:
        args.extend(["-metadata", f"{key}={value}"])
    args.extend(["-f", plan.muxer])
    return args


class MetadataOperation(AudioOperation):
    """
    Sets title, artist, album and year, and optionally embeds a cover image.

    The tagging plan is picked from the input's extension (mp3 when there is
    none). Formats without a cover mode get the text tags only; raw ADTS AAC
    cannot hold tags at all and is rejected before anything runs.
    """

    name = "metadata"

    @staticmethod
    def metadata_plan(filename: str) -> MetadataPlan:
        _, extension = split_filename(filename)
        return resolve_metadata_plan(extension or DEFAULT_AUDIO_FORMAT)

    def validate(self, request: MetadataRequest):
        super().validate(request)
        requested = request.any_metadata_requested()
        for filename, _ in request.iter_inputs():
            plan = self.metadata_plan(filename)
            if requested and not plan.supports_tags:
                raise UnsupportedMetadataTargetException(f"{filename}: {ADTS_METADATA_ERROR}")
            if request.cover_art and plan.cover_mode == CoverMode.NONE:
                logger.warning(f"[{self.name}] {filename}: '{plan.extension}' cannot hold cover art; writing text tags only.")

    def process_file(self, filename, data, request: MetadataRequest, workspace: ScratchWorkspace) -> OperationResult:
        plan = self.metadata_plan(filename)
        blob = MediaBlob.from_named(filename, data)
        source = workspace.acquire(blob.data, blob.extension)

        input_args = ["-i", str(source.path)]
        with_cover = bool(request.cover_art) and plan.cover_mode != CoverMode.NONE
        if with_cover:
            cover = workspace.acquire(request.cover_art, cover_extension(request.cover_art))
            input_args.extend(["-i", str(cover.path)])

        tags = request.text_tags()
        logger.debug(f"[{self.name}] {filename}: tags={[key for key, _ in tags]} cover={with_cover}")
        output_args = build_metadata_output_args(plan, with_cover, tags)
        try:
            tagged = self.encoding_service.apply(workspace, input_args, output_args, plan.extension)
        except EngineExecutionException as e:
            raise self._with_cover_hint(e, plan, with_cover) from e

        return OperationResult(
            filename=self.output_name(filename, plan),
            data=tagged.read_bytes(),
            format=plan.extension,
        )

    @staticmethod
    def _with_cover_hint(
        error: EngineExecutionException, plan: MetadataPlan, with_cover: bool
    ) -> EngineExecutionException:
        stderr = error.stderr or ""
        if with_cover and plan.cover_mode == CoverMode.MP4_COVER_ATOM and MP4_COVER_TAG_ERROR in stderr:
            stderr = f"{stderr.rstrip()}\n{MP4_COVER_HINT}"
        return EngineExecutionException(
            error.message,
            stderr=stderr,
            returncode=error.returncode,
            command=error.command,
        )
