"""
This module defines the operations that edit the timeline of the audio:
trimming a range out of (or keeping a range of) a file, and merging several
files into one.

Both work on an intermediate WAV decode so that cuts and concatenation can be
done by stream copy at sample accuracy; the final encode happens once, at the
end.
"""

import time
from typing import List, Optional

from loguru import logger

from ..config.audio import INTERMEDIATE_FORMAT, MERGED_FILENAME_STEM, TRIM_ACTION_KEEP, TRIM_ACTION_REMOVE
from ..domain.exceptions import EngineExecutionException, InvalidArgumentException, SonicToolsException
from ..domain.media import MediaBlob, MergeRequest, OperationResult, TrimRequest
from ..domain.plans import resolve_plan
from ..domain.temp_models import ScratchFile, ScratchWorkspace
from ..utils.format_utils import formatted_size
from .encoder_base import AudioOperation


def normalize_trim_action(action: Optional[str]) -> str:
    """Lowercases the action; an empty action means keep."""
    return (action or "").strip().lower() or TRIM_ACTION_KEEP


class TrimOperation(AudioOperation):
    """
    Keeps or removes the `[start, end)` range of each input file.

    keep:   the result is the range itself. An open bound extends to the start
            or the end of the file.
    remove: the result is the head `[0, start)` followed by the tail
            `[end, ...)`. A head is only cut when start > 0, a tail only when
            end is given. A cut that fails is logged and left out.
    """

    name = "trim"

    def validate(self, request: TrimRequest):
        super().validate(request)
        action = normalize_trim_action(request.action)
        if action not in (TRIM_ACTION_KEEP, TRIM_ACTION_REMOVE):
            raise InvalidArgumentException(f"Unknown trim action '{request.action}'. Use 'keep' or 'remove'.")

        for label, value in (("start", request.start), ("end", request.end)):
            if value is not None and value < 0:
                raise InvalidArgumentException(f"{label} must not be negative, got {value}")
        if request.start is not None and request.end is not None and request.start >= request.end:
            raise InvalidArgumentException(f"start ({request.start}) must be before end ({request.end})")

        if action == TRIM_ACTION_REMOVE:
            if request.start is None and request.end is None:
                raise InvalidArgumentException("remove needs a start or an end")
            if request.end is None and request.start <= 0:
                raise InvalidArgumentException("removing from 0 to the end would leave nothing")

        if request.output_format:
            resolve_plan(request.output_format)

    def process_file(self, filename, data, request: TrimRequest, workspace: ScratchWorkspace) -> OperationResult:
        plan = self.target_plan(filename, request.output_format)
        blob = MediaBlob.from_named(filename, data)

        source = workspace.acquire(blob.data, blob.extension)
        decoded = self.encoding_service.encode(workspace, source, resolve_plan(INTERMEDIATE_FORMAT))
        source.release()

        if normalize_trim_action(request.action) == TRIM_ACTION_KEEP:
            logger.debug(f"[{self.name}] keeping [{request.start}, {request.end}) of {filename}")
            joined = self.encoding_service.cut(workspace, decoded, request.start, request.end)
        else:
            logger.debug(f"[{self.name}] removing [{request.start}, {request.end}) from {filename}")
            joined = self._remove_range(workspace, decoded, request.start, request.end)

        encoded = self.encoding_service.encode(workspace, joined, plan)
        return OperationResult(
            filename=self.output_name(filename, plan, request.output_format),
            data=encoded.read_bytes(),
            format=plan.extension,
        )

    def _remove_range(
        self,
        workspace: ScratchWorkspace,
        decoded: ScratchFile,
        start: Optional[float],
        end: Optional[float],
    ) -> ScratchFile:
        segments = []
        if start is not None and start > 0:
            segments.append((None, start))
        if end is not None:
            segments.append((end, None))

        parts: List[ScratchFile] = []
        last_error: Optional[EngineExecutionException] = None
        for seg_start, seg_end in segments:
            try:
                parts.append(self.encoding_service.cut(workspace, decoded, seg_start, seg_end))
            except EngineExecutionException as e:
                logger.warning(f"[{self.name}] skipping segment [{seg_start}, {seg_end}): {e}")
                last_error = e

        if not parts:
            raise EngineExecutionException(
                "No segment left after removing the range",
                stderr=last_error.stderr if last_error else "",
                returncode=last_error.returncode if last_error else None,
                command=last_error.command if last_error else None,
            )
        if len(parts) == 1:
            return parts[0]
        return self.encoding_service.concat(workspace, parts)


class MergeOperation(AudioOperation):
    """
    Joins all inputs, in request order, into a single file named `merged.<ext>`.

    Every input is decoded to the intermediate WAV first so that inputs of
    different formats and codecs can be concatenated by stream copy.
    """

    name = "merge"

    def validate(self, request: MergeRequest):
        super().validate(request)
        if not (request.output_format or "").strip():
            raise InvalidArgumentException("output_format is required for merge")
        resolve_plan(request.output_format)

    def execute(self, request: MergeRequest) -> List[OperationResult]:
        self.validate(request)
        plan = resolve_plan(request.output_format)
        total = len(request.file_data)
        started = time.monotonic()

        try:
            with self.workspace_factory() as workspace:
                parts: List[ScratchFile] = []
                for index, (filename, data) in enumerate(request.iter_inputs(), start=1):
                    logger.info(f"[{self.name}] decoding {index}/{total}: {filename} ({formatted_size(len(data))})")
                    blob = MediaBlob.from_named(filename, data)
                    source = workspace.acquire(blob.data, blob.extension)
                    parts.append(self.encoding_service.encode(workspace, source, resolve_plan(INTERMEDIATE_FORMAT)))
                    source.release()

                joined = parts[0] if len(parts) == 1 else self.encoding_service.concat(workspace, parts)
                encoded = self.encoding_service.encode(workspace, joined, plan, bitrate_kbps=request.bitrate_kbps)
                result = OperationResult(
                    filename=f"{MERGED_FILENAME_STEM}.{plan.extension}",
                    data=encoded.read_bytes(),
                    format=plan.extension,
                )
        except SonicToolsException as e:
            logger.error(f"[{self.name}] merging {total} file(s) failed: {e}")
            raise

        logger.info(
            f"[{self.name}] {total} file(s) -> {result.filename} "
            f"({formatted_size(len(result.data))}, {time.monotonic() - started:.2f}s)"
        )
        return [result]
