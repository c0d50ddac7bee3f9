"""
The request pipeline: runs one operation over a batch and packs the results
into a single response.

`AudioToolkit` is the entry point used by hosts. It wires the engine, the
scratch workspaces, the encoding and probe services and the operation
strategies together, and exposes one method per operation.
"""

import io
import zipfile
from typing import Callable, List, Optional

from loguru import logger

from ..config.common import BUNDLE_FILENAME, BUNDLE_FORMAT
from ..domain.exceptions import InvalidArgumentException
from ..domain.media import (
    BoostRequest,
    CompressPercentageRequest,
    CompressQualityRequest,
    CompressSizeRequest,
    ConvertRequest,
    MergeRequest,
    MetadataRequest,
    NormalizeRequest,
    OperationRequest,
    OperationResult,
    Response,
    TrimRequest,
)
from ..domain.temp_models import ScratchWorkspace
from ..services.audio_encoder import (
    FormatConverter,
    LoudnessNormalizer,
    PercentageCompressor,
    QualityCompressor,
    SizeCompressor,
    VolumeBooster,
)
from ..services.encoder_base import AudioOperation
from ..services.encoding_service import EncodingService
from ..services.metadata_writer import MetadataOperation
from ..services.probe_service import ProbeService
from ..services.timeline_editor import MergeOperation, TrimOperation
from ..utils.ffmpeg_utils import FFmpegEngine
from ..utils.format_utils import formatted_size, unique_archive_names


def make_zip_bundle(results: List[OperationResult]) -> bytes:
    """
    Packs several results into one zip archive.

    Entries are stored without compression, since audio payloads are already
    compressed or are PCM that the caller asked for explicitly. Entry names are
    flattened and de-duplicated with `unique_archive_names`.
    """
    buffer = io.BytesIO()
    names = unique_archive_names(result.filename for result in results)
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_STORED) as archive:
        for name, result in zip(names, results):
            archive.writestr(name, result.data)
    return buffer.getvalue()


class BatchPipeline:
    """Runs an operation and turns its results into exactly one `Response`."""

    def run(self, request: OperationRequest, operation: AudioOperation) -> Response:
        results = operation.execute(request)
        if not results:
            raise InvalidArgumentException(f"{operation.name} produced no output")
        if len(results) == 1:
            return results[0]

        bundle = make_zip_bundle(results)
        logger.info(f"[{operation.name}] bundled {len(results)} results into {BUNDLE_FILENAME} ({formatted_size(len(bundle))})")
        return Response(filename=BUNDLE_FILENAME, data=bundle, format=BUNDLE_FORMAT)


class AudioToolkit:
    """
    Facade over all operations.

    Args:
        engine: Engine capability. Defaults to a real `FFmpegEngine`.
        workspace_factory: Returns a fresh `ScratchWorkspace`. Tests point it at a
                           temporary directory to check that nothing is left behind.
    """

    def __init__(self, engine=None, workspace_factory: Optional[Callable[[], ScratchWorkspace]] = None):
        self.engine = engine if engine is not None else FFmpegEngine()
        self.workspace_factory = workspace_factory or ScratchWorkspace
        self.encoding_service = EncodingService(self.engine)
        self.probe_service = ProbeService(self.engine, self.workspace_factory)
        self.pipeline = BatchPipeline()

    def _operation(self, operation_class) -> AudioOperation:
        return operation_class(self.encoding_service, self.probe_service, self.workspace_factory)

    def _run(self, operation_class, request: OperationRequest) -> Response:
        return self.pipeline.run(request, self._operation(operation_class))

    def compress_percentage(self, request: CompressPercentageRequest) -> Response:
        return self._run(PercentageCompressor, request)

    def compress_size(self, request: CompressSizeRequest) -> Response:
        return self._run(SizeCompressor, request)

    def compress_quality(self, request: CompressQualityRequest) -> Response:
        return self._run(QualityCompressor, request)

    def convert(self, request: ConvertRequest) -> Response:
        return self._run(FormatConverter, request)

    def boost(self, request: BoostRequest) -> Response:
        return self._run(VolumeBooster, request)

    def normalize(self, request: NormalizeRequest) -> Response:
        return self._run(LoudnessNormalizer, request)

    def trim(self, request: TrimRequest) -> Response:
        return self._run(TrimOperation, request)

    def merge(self, request: MergeRequest) -> Response:
        return self._run(MergeOperation, request)

    def write_metadata(self, request: MetadataRequest) -> Response:
        return self._run(MetadataOperation, request)
