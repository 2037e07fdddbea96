# tests/test_planner.py
import pytest
from pathlib import Path

from subrename.enums import ErrorKind
from subrename.exceptions import CountMismatchError, SourceMissingError
from subrename.planner import plan, build_target_name, stem


@pytest.mark.parametrize("name, expected", [
    ("Anime.S01E05.mkv", "Anime.S01E05"),
    ("noext", "noext"),
    (".hidden", ".hidden"),
    ("a.b.c", "a.b"),
])
def test_stem(name, expected):
    assert stem(name) == expected


@pytest.mark.parametrize("suffix, expected", [
    ("chs", "Anime.S01E05.chs.srt"),
    ("", "Anime.S01E05.srt"),
    (None, "Anime.S01E05.srt"),
])
def test_build_target_name(suffix, expected):
    assert build_target_name("Anime.S01E05.mkv", "Anime_ep5_cn.srt", suffix) == expected


def test_build_target_name_keeps_subtitle_extension_lowercased():
    assert build_target_name("[Grp] Show [01].mkv", "Show 01.ASS", "tc") == "[Grp] Show [01].tc.ass"


def test_count_mismatch_touches_no_filesystem(make_record, mocker):
    exists = mocker.patch.object(Path, 'exists')
    videos = [make_record("/v/a.mkv"), make_record("/v/b.mkv")]
    subs = [make_record("/s/a.srt")]

    with pytest.raises(CountMismatchError) as excinfo:
        plan(videos, subs, "chs")

    assert str(excinfo.value) == "Video count (2) does not match subtitle count (1)"
    assert excinfo.value.kind is ErrorKind.COUNT_MISMATCH
    exists.assert_not_called()


def test_missing_full_path_subtitle(tmp_path, make_record):
    videos = [make_record(tmp_path / "a.mkv")]
    subs = [make_record(tmp_path / "gone.srt")]
    with pytest.raises(SourceMissingError) as excinfo:
        plan(videos, subs)
    assert str(excinfo.value) == "Subtitle file not found: gone.srt"


def test_bare_names_are_preview_entries(make_record, mocker):
    exists = mocker.patch.object(Path, 'exists')
    entries = plan([make_record("Anime.S01E05.mkv")], [make_record("sub.srt")], "chs")
    assert len(entries) == 1
    assert entries[0].is_preview
    assert entries[0].target_name == "Anime.S01E05.chs.srt"
    assert entries[0].target_path is None
    exists.assert_not_called()


def test_positional_pairing(tmp_path, make_record):
    for n in ("x.srt", "y.srt"): (tmp_path / n).touch()
    videos = [make_record(tmp_path / "B.mkv"), make_record(tmp_path / "A.mkv")]
    subs = [make_record(tmp_path / "x.srt"), make_record(tmp_path / "y.srt")]
    entries = plan(videos, subs)
    assert [e.target_name for e in entries] == ["B.srt", "A.srt"]
    assert entries[0].target_path == tmp_path / "B.srt"


def test_empty_plan():
    assert plan([], [], "chs") == []


def test_build_target_name_subtitle_without_extension():
    assert build_target_name("Anime.S01E05.mkv", "subtitle", "chs") == "Anime.S01E05.chs"
    assert build_target_name("Anime.S01E05.mkv", ".srt") == "Anime.S01E05"
