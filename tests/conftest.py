import functools
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sonic_tools.domain.temp_models import ScratchWorkspace  # noqa: E402
from sonic_tools.pipeline.batch_pipeline import AudioToolkit  # noqa: E402
from sonic_tools.utils.ffmpeg_utils import EngineResult  # noqa: E402


class FakeEngine:
    """
    Stands in for FFmpegEngine. Records every argument list, writes `output`
    to the last argument (the output path) and answers probes from `probe_data`.

    Set `fail_when` to a predicate over the argument list to make matching
    invocations exit with status 1 and `fail_stderr`.
    """

    def __init__(self, output=b"encoded-audio", probe_data=None):
        self.output = output
        self.calls = []
        self.probe_calls = []
        self.fail_when = None
        self.fail_stderr = "boom"
        self.probe_data = probe_data if probe_data is not None else {"bit_rate": "320000", "duration": "60.000000"}

    def encode(self, args):
        args = list(args)
        self.calls.append(args)
        if self.fail_when is not None and self.fail_when(args):
            return EngineResult(returncode=1, stdout=b"", stderr=self.fail_stderr)
        Path(args[-1]).write_bytes(self.output)
        return EngineResult(returncode=0, stdout=b"", stderr="")

    def probe(self, path, entries):
        self.probe_calls.append((Path(path), entries))
        assert Path(path).is_file()
        field = entries.split("=", 1)[1]
        if field in self.probe_data:
            return {"format": {field: self.probe_data[field]}}
        return {"format": {}}


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def scratch_dir(tmp_path):
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def workspace_factory(scratch_dir):
    return functools.partial(ScratchWorkspace, base_dir=scratch_dir)


@pytest.fixture
def toolkit(engine, workspace_factory):
    return AudioToolkit(engine=engine, workspace_factory=workspace_factory)
