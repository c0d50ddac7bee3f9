import pytest

from sonic_tools.domain.exceptions import EngineExecutionException, InvalidArgumentException, UnsupportedFormatException
from sonic_tools.domain.media import MergeRequest, TrimRequest


def option(args, flag):
    return args[args.index(flag) + 1]


def is_cut(args):
    return "-ss" in args or "-to" in args


def is_concat(args):
    return "concat" in args


class TestTrimKeep:
    def test_keep_range(self, toolkit, engine, scratch_dir):
        response = toolkit.trim(TrimRequest(file_data=[b"x"], filenames=["song.mp3"], start=5, end=10))
        decode, cut, encode = engine.calls
        assert option(decode, "-f") == "wav"
        assert option(cut, "-ss") == "5"
        assert option(cut, "-to") == "10"
        assert option(cut, "-c") == "copy"
        assert option(encode, "-f") == "mp3"
        assert option(encode, "-i") == cut[-1]
        assert response.filename == "song.mp3"
        assert list(scratch_dir.iterdir()) == []

    def test_open_end(self, toolkit, engine):
        toolkit.trim(TrimRequest(file_data=[b"x"], filenames=["a.wav"], start=2.5))
        cut = engine.calls[1]
        assert option(cut, "-ss") == "2.5"
        assert "-to" not in cut

    def test_empty_action_means_keep(self, toolkit, engine):
        toolkit.trim(TrimRequest(file_data=[b"x"], filenames=["a.wav"], end=3, action=""))
        assert len(engine.calls) == 3

    def test_output_format(self, toolkit, engine):
        response = toolkit.trim(TrimRequest(file_data=[b"x"], filenames=["a.wav"], end=3, output_format="ogg"))
        assert response.filename == "a.ogg"
        assert response.format == "ogg"
        assert option(engine.calls[-1], "-c:a") == "libvorbis"


class TestTrimRemove:
    def test_remove_middle_joins_head_and_tail(self, toolkit, engine):
        toolkit.trim(TrimRequest(file_data=[b"x"], filenames=["a.mp3"], start=5, end=10, action="remove"))
        decode, head, tail, concat, encode = engine.calls
        assert "-ss" not in head and option(head, "-to") == "5"
        assert option(tail, "-ss") == "10" and "-to" not in tail
        assert is_concat(concat)
        assert option(encode, "-i") == concat[-1]

    def test_only_start_keeps_head(self, toolkit, engine):
        toolkit.trim(TrimRequest(file_data=[b"x"], filenames=["a.mp3"], start=10, action="REMOVE"))
        decode, head, encode = engine.calls
        assert option(head, "-to") == "10"
        assert not any(is_concat(call) for call in engine.calls)

    def test_start_at_zero_only_keeps_tail(self, toolkit, engine):
        toolkit.trim(TrimRequest(file_data=[b"x"], filenames=["a.mp3"], start=0, end=4, action="remove"))
        cuts = [call for call in engine.calls if is_cut(call)]
        assert len(cuts) == 1
        assert option(cuts[0], "-ss") == "4"

    def test_failing_segment_is_skipped(self, toolkit, engine):
        engine.fail_when = lambda args: "-ss" in args
        response = toolkit.trim(TrimRequest(file_data=[b"x"], filenames=["a.mp3"], start=5, end=10, action="remove"))
        assert response.data == b"encoded-audio"
        assert len(engine.calls) == 4
        assert not any(is_concat(call) for call in engine.calls)

    def test_no_surviving_segment(self, toolkit, engine, scratch_dir):
        engine.fail_when = is_cut
        engine.fail_stderr = "Invalid argument"
        with pytest.raises(EngineExecutionException) as excinfo:
            toolkit.trim(TrimRequest(file_data=[b"x"], filenames=["a.mp3"], start=5, end=10, action="remove"))
        assert excinfo.value.stderr == "Invalid argument"
        assert list(scratch_dir.iterdir()) == []


class TestTrimValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"start": 10, "end": 5},
            {"start": 5, "end": 5},
            {"start": 10, "end": 5, "action": "remove"},
            {"start": -1},
            {"end": -2},
            {"action": "remove"},
            {"start": 0, "action": "remove"},
            {"start": 1, "action": "cut"},
        ],
    )
    def test_rejected_before_engine_runs(self, toolkit, engine, kwargs):
        with pytest.raises(InvalidArgumentException):
            toolkit.trim(TrimRequest(file_data=[b"x"], filenames=["a.mp3"], **kwargs))
        assert engine.calls == []

    def test_unknown_output_format(self, toolkit, engine):
        with pytest.raises(UnsupportedFormatException):
            toolkit.trim(TrimRequest(file_data=[b"x"], filenames=["a.mp3"], end=3, output_format="nope"))
        assert engine.calls == []


class TestMerge:
    def test_merge_in_request_order(self, toolkit, engine, scratch_dir):
        response = toolkit.merge(
            MergeRequest(
                file_data=[b"1", b"2", b"3"],
                filenames=["a.mp3", "b.flac", "c.wav"],
                output_format="m4a",
                bitrate_kbps=192,
            )
        )
        assert response.filename == "merged.m4a"
        assert response.format == "m4a"
        decodes = engine.calls[:3]
        assert [option(call, "-i").rsplit(".", 1)[1] for call in decodes] == ["mp3", "flac", "wav"]
        assert all(option(call, "-f") == "wav" for call in decodes)
        concat, encode = engine.calls[3:]
        assert is_concat(concat)
        assert option(encode, "-b:a") == "192k"
        assert option(encode, "-f") == "mp4"
        assert list(scratch_dir.iterdir()) == []

    def test_single_input_skips_concat(self, toolkit, engine):
        response = toolkit.merge(MergeRequest(file_data=[b"1"], filenames=["a.mp3"], output_format="wav"))
        assert response.filename == "merged.wav"
        assert len(engine.calls) == 2
        assert "-b:a" not in engine.calls[-1]

    def test_format_is_required(self, toolkit, engine):
        with pytest.raises(InvalidArgumentException):
            toolkit.merge(MergeRequest(file_data=[b"1", b"2"], filenames=["a.mp3", "b.mp3"]))
        assert engine.calls == []

    def test_no_files(self, toolkit):
        with pytest.raises(InvalidArgumentException):
            toolkit.merge(MergeRequest(file_data=[], output_format="mp3"))

    def test_failed_decode_aborts(self, toolkit, engine, scratch_dir):
        engine.fail_when = lambda args: len(engine.calls) == 2
        with pytest.raises(EngineExecutionException):
            toolkit.merge(MergeRequest(file_data=[b"1", b"2", b"3"], filenames=["a", "b", "c"], output_format="mp3"))
        assert len(engine.calls) == 2
        assert list(scratch_dir.iterdir()) == []
