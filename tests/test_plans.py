import pytest

from sonic_tools.domain.exceptions import UnsupportedFormatException
from sonic_tools.domain.plans import (
    CoverMode,
    normalize_format,
    resolve_metadata_plan,
    resolve_plan,
    supported_formats,
)


class TestResolvePlan:
    @pytest.mark.parametrize("name", ["mp3", "MP3", " .Mp3 "])
    def test_matching_is_case_insensitive(self, name):
        plan = resolve_plan(name)
        assert plan.muxer == "mp3"
        assert plan.codec_args == ("-c:a", "libmp3lame")
        assert plan.extension == "mp3"

    def test_lossless_formats_ignore_bitrate(self):
        for name in ("wav", "flac", "aiff", "aif"):
            assert resolve_plan(name).bitrate_applicable is False

    def test_lossy_formats_take_bitrate(self):
        for name in ("mp3", "ogg", "opus", "aac", "m4a", "wma"):
            assert resolve_plan(name).bitrate_applicable is True

    def test_aliases_share_container(self):
        assert resolve_plan("alac") == resolve_plan("m4a")
        assert resolve_plan("aif").extension == "aiff"
        assert resolve_plan("opus").muxer == "ogg"
        assert resolve_plan("aac").muxer == "adts"

    def test_unknown_format_is_rejected(self):
        with pytest.raises(UnsupportedFormatException, match="xyz"):
            resolve_plan("xyz")

    def test_empty_format_is_rejected(self):
        with pytest.raises(UnsupportedFormatException):
            resolve_plan("")

    def test_supported_formats_is_sorted(self):
        formats = supported_formats()
        assert list(formats) == sorted(formats)
        assert "mp3" in formats


class TestResolveMetadataPlan:
    def test_mp3_uses_id3_and_attached_picture(self):
        plan = resolve_metadata_plan("mp3")
        assert plan.cover_mode == CoverMode.MP3_ATTACHED
        assert plan.extra_args == ("-id3v2_version", "3", "-write_id3v1", "1")

    def test_mp4_family_uses_cover_atom(self):
        for name in ("m4a", "mp4", "alac"):
            plan = resolve_metadata_plan(name)
            assert plan.muxer == "mp4"
            assert plan.cover_mode == CoverMode.MP4_COVER_ATOM
            assert plan.extra_args == ("-movflags", "+faststart")

    def test_adts_cannot_carry_tags(self):
        plan = resolve_metadata_plan("AAC")
        assert plan.supports_tags is False
        assert plan.muxer == "adts"

    def test_text_only_formats(self):
        for name in ("wma", "ogg", "opus", "wav", "flac", "aiff"):
            plan = resolve_metadata_plan(name)
            assert plan.cover_mode == CoverMode.NONE
            assert plan.supports_tags is True

    def test_unknown_extension(self):
        with pytest.raises(UnsupportedFormatException, match="metadata"):
            resolve_metadata_plan("txt")


def test_normalize_format():
    assert normalize_format(".FLAC ") == "flac"
    assert normalize_format(None) == ""
