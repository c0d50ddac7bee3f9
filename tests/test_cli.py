import pytest

from sonic_tools import cli
from sonic_tools.domain.exceptions import InvalidArgumentException
from sonic_tools.domain.media import ConvertRequest, MetadataRequest, OperationResult, TrimRequest


class TestGetArgs:
    def test_convert(self, tmp_path):
        args = cli.get_args(["convert", "--format", "flac", "--bitrate", "0", str(tmp_path / "a.wav")])
        assert args.command == "convert"
        assert args.output_format == "flac"
        assert args.files == [tmp_path / "a.wav"]

    def test_trim_defaults(self):
        args = cli.get_args(["trim", "--start", "1.5", "a.mp3"])
        assert args.start == 1.5
        assert args.end is None
        assert args.action == "keep"

    def test_format_required_for_merge(self):
        with pytest.raises(SystemExit):
            cli.get_args(["merge", "a.mp3", "b.mp3"])

    def test_temp_work_dir_is_created(self, tmp_path):
        target = tmp_path / "ram" / "scratch"
        args = cli.get_args(["normalize", "--temp-work-dir", str(target), "a.mp3"])
        assert target.is_dir()
        assert args.temp_work_dir == target.resolve()


class TestReadInputs:
    def test_reads_in_order(self, tmp_path):
        paths = []
        for name, data in (("b.mp3", b"2"), ("a.mp3", b"1")):
            path = tmp_path / name
            path.write_bytes(data)
            paths.append(path)
        assert cli.read_inputs(paths) == ([b"2", b"1"], ["b.mp3", "a.mp3"])

    def test_too_many_files(self, tmp_path):
        with pytest.raises(InvalidArgumentException, match="Too many files"):
            cli.read_inputs([tmp_path / f"{i}.mp3" for i in range(11)])

    def test_too_large(self, tmp_path, monkeypatch):
        monkeypatch.setattr(cli, "MAX_UPLOAD_SIZE", 10)
        path = tmp_path / "big.wav"
        path.write_bytes(b"x" * 11)
        with pytest.raises(InvalidArgumentException, match="too large"):
            cli.read_inputs([path])

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(InvalidArgumentException, match="Cannot read"):
            cli.read_inputs([tmp_path / "missing.mp3"])


class TestBuildRequest:
    def test_trim_request(self):
        args = cli.get_args(["trim", "--start", "1", "--end", "2", "--action", "remove", "a.mp3"])
        request = cli.build_request(args, [b"x"], ["a.mp3"])
        assert request == TrimRequest(file_data=[b"x"], filenames=["a.mp3"], start=1, end=2, action="remove")

    def test_metadata_reads_cover(self, tmp_path):
        cover = tmp_path / "cover.jpg"
        cover.write_bytes(b"\xff\xd8jpeg")
        args = cli.get_args(["metadata", "--title", "T", "--cover", str(cover), "a.mp3"])
        request = cli.build_request(args, [b"x"], ["a.mp3"])
        assert isinstance(request, MetadataRequest)
        assert request.cover_art == b"\xff\xd8jpeg"
        assert request.title == "T"


class TestMain:
    def test_writes_response(self, tmp_path, toolkit, engine):
        source = tmp_path / "song.wav"
        source.write_bytes(b"pcm")
        out_dir = tmp_path / "out"
        code = cli.main(["convert", "--format", "mp3", "--output-dir", str(out_dir), str(source)], toolkit=toolkit)
        assert code == 0
        assert (out_dir / "song.mp3").read_bytes() == b"encoded-audio"

    def test_bundle_for_several_files(self, tmp_path, toolkit):
        paths = []
        for name in ("a.wav", "b.wav"):
            path = tmp_path / name
            path.write_bytes(b"pcm")
            paths.append(str(path))
        code = cli.main(["boost", "--gain", "3", "--output-dir", str(tmp_path / "out"), *paths], toolkit=toolkit)
        assert code == 0
        assert (tmp_path / "out" / "sonic-tools.zip").is_file()

    def test_input_file_is_never_overwritten(self, tmp_path, toolkit):
        source = tmp_path / "song.mp3"
        source.write_bytes(b"ORIGINAL")
        code = cli.main(
            ["compress-quality", "--quality", "low", "--output-dir", str(tmp_path), str(source)], toolkit=toolkit
        )
        assert code == 0
        assert source.read_bytes() == b"ORIGINAL"
        assert (tmp_path / "song_(1).mp3").read_bytes() == b"encoded-audio"

    def test_renamed_output_skips_other_inputs(self, tmp_path):
        first = tmp_path / "a.mp3"
        second = tmp_path / "a_(1).mp3"
        for path in (first, second):
            path.write_bytes(b"ORIGINAL")
        written = cli.write_response(OperationResult("a.mp3", b"new", "mp3"), tmp_path, [first, second])
        assert written == tmp_path / "a_(2).mp3"
        assert first.read_bytes() == second.read_bytes() == b"ORIGINAL"

    def test_output_in_other_directory_keeps_name(self, tmp_path):
        source = tmp_path / "song.mp3"
        source.write_bytes(b"ORIGINAL")
        written = cli.write_response(OperationResult("song.mp3", b"new", "mp3"), tmp_path / "out", [source])
        assert written == tmp_path / "out" / "song.mp3"

    def test_failure_exit_code(self, tmp_path, toolkit, engine):
        source = tmp_path / "song.wav"
        source.write_bytes(b"pcm")
        code = cli.main(["convert", "--format", "xyz", "--output-dir", str(tmp_path), str(source)], toolkit=toolkit)
        assert code == 1
        assert engine.calls == []

    def test_engine_failure_exit_code(self, tmp_path, toolkit, engine):
        engine.fail_when = lambda args: True
        source = tmp_path / "song.wav"
        source.write_bytes(b"pcm")
        code = cli.main(["normalize", "--output-dir", str(tmp_path / "out"), str(source)], toolkit=toolkit)
        assert code == 1
        assert not (tmp_path / "out").exists()


def test_every_command_has_a_toolkit_method():
    from sonic_tools.pipeline.batch_pipeline import AudioToolkit

    for method in cli.OPERATIONS.values():
        assert callable(getattr(AudioToolkit, method))


def test_convert_request_type():
    args = cli.get_args(["convert", "--format", "ogg", "a.wav"])
    assert isinstance(cli.build_request(args, [b"x"], ["a.wav"]), ConvertRequest)
