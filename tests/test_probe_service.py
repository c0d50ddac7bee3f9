import pytest

from conftest import FakeEngine
from sonic_tools.domain.exceptions import ProbeParseException
from sonic_tools.domain.media import MediaBlob
from sonic_tools.services.probe_service import ProbeService


def make_service(workspace_factory, **fields):
    engine = FakeEngine(probe_data=fields)
    return engine, ProbeService(engine, workspace_factory)


class TestProbeService:
    def test_bit_rate(self, workspace_factory, scratch_dir):
        engine, service = make_service(workspace_factory, bit_rate="320000")
        assert service.bit_rate(MediaBlob(b"data", "mp3")) == 320000
        path, entries = engine.probe_calls[0]
        assert entries == "format=bit_rate"
        assert path.suffix == ".mp3"
        assert list(scratch_dir.iterdir()) == []

    def test_duration(self, workspace_factory):
        engine, service = make_service(workspace_factory, duration="61.5")
        assert service.duration_seconds(MediaBlob(b"data")) == pytest.approx(61.5)
        assert engine.probe_calls[0][1] == "format=duration"

    @pytest.mark.parametrize("raw", ["N/A", "", "abc"])
    def test_unusable_bit_rate(self, workspace_factory, raw):
        _, service = make_service(workspace_factory, bit_rate=raw)
        with pytest.raises(ProbeParseException):
            service.bit_rate(MediaBlob(b"data"))

    def test_missing_field(self, workspace_factory):
        _, service = make_service(workspace_factory)
        with pytest.raises(ProbeParseException):
            service.duration_seconds(MediaBlob(b"data"))

    @pytest.mark.parametrize("raw", ["0", "-1.0"])
    def test_non_positive_duration(self, workspace_factory, raw):
        _, service = make_service(workspace_factory, duration=raw)
        with pytest.raises(ProbeParseException):
            service.duration_seconds(MediaBlob(b"data"))
