import time
from typing import Callable, List, Optional

from loguru import logger

from ..config.common import DEFAULT_AUDIO_FORMAT
from ..domain.exceptions import InvalidArgumentException, SonicToolsException, UnsupportedFormatException
from ..domain.media import OperationRequest, OperationResult, split_filename
from ..domain.plans import ENCODE_PLANS, EncodePlan, normalize_format, resolve_plan, supported_formats
from ..domain.temp_models import ScratchWorkspace
from ..utils.format_utils import formatted_size
from .encoding_service import EncodingService
from .probe_service import ProbeService


class AudioOperation:
    """
    Base class for the operation strategies.

    A strategy turns one request into a list of results. The default `execute`
    validates the request, then processes each input file on its own, strictly
    in request order, inside a fresh scratch workspace. The first failure stops
    the batch and propagates; there are no partial results.

    Subclasses implement `process_file` and may extend `validate`. Strategies
    whose output does not map one-to-one onto the inputs (merge) override
    `execute` instead.

    Attributes:
        name (str): Operation name used in log messages.
        encoding_service (EncodingService): Runs the engine invocations.
        probe_service (ProbeService): Reads bit rate and duration.
        workspace_factory: Returns a new `ScratchWorkspace` per file.
    """

    name: str = "operation"

    def __init__(
        self,
        encoding_service: EncodingService,
        probe_service: Optional[ProbeService] = None,
        workspace_factory: Callable[[], ScratchWorkspace] = ScratchWorkspace,
    ):
        self.encoding_service = encoding_service
        self.probe_service = probe_service
        self.workspace_factory = workspace_factory

    def execute(self, request: OperationRequest) -> List[OperationResult]:
        self.validate(request)
        total = len(request.file_data)
        results: List[OperationResult] = []
        for index, (filename, data) in enumerate(request.iter_inputs(), start=1):
            logger.info(f"[{self.name}] {index}/{total}: {filename} ({formatted_size(len(data))})")
            started = time.monotonic()
            try:
                with self.workspace_factory() as workspace:
                    result = self.process_file(filename, data, request, workspace)
            except SonicToolsException as e:
                logger.error(f"[{self.name}] {filename} failed, aborting batch: {e}")
                raise
            logger.info(
                f"[{self.name}] {filename} -> {result.filename} "
                f"({formatted_size(len(result.data))}, {time.monotonic() - started:.2f}s)"
            )
            results.append(result)
        return results

    def validate(self, request: OperationRequest):
        if not request.file_data:
            raise InvalidArgumentException("no files provided")

    def process_file(
        self,
        filename: str,
        data: bytes,
        request: OperationRequest,
        workspace: ScratchWorkspace,
    ) -> OperationResult:
        raise NotImplementedError("Subclasses must implement process_file().")

    @staticmethod
    def target_plan(filename: str, output_format: Optional[str] = None) -> EncodePlan:
        """
        Picks the output plan: the requested format if there is one, else the
        input's own extension, else the default format.

        An input extension that cannot be encoded back (mp4, m4b, ...) needs
        an explicit output format.
        """
        if output_format:
            return resolve_plan(output_format)
        _, extension = split_filename(filename)
        if not extension:
            return resolve_plan(DEFAULT_AUDIO_FORMAT)
        if normalize_format(extension) not in ENCODE_PLANS:
            raise UnsupportedFormatException(
                f"Cannot keep the format of '{filename}': '{extension}' is not an output format. "
                f"Choose one of: {', '.join(supported_formats())}"
            )
        return resolve_plan(extension)

    @staticmethod
    def output_name(filename: str, plan: EncodePlan, output_format: Optional[str] = None) -> str:
        """
        Names the output file.

        The input name is kept when the file stays in its own format. When a
        different format was requested, or the input had no extension, the
        stem gets the plan's canonical extension.
        """
        stem, extension = split_filename(filename)
        if output_format or extension is None:
            return f"{stem}.{plan.extension}"
        return filename
