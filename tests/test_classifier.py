# tests/test_classifier.py
import pytest
from pathlib import Path

from subrename.classifier import (
    classify, get_extension, is_video_file, is_subtitle_file, make_file_record,
    collect_paths, scan_directory, split_by_kind, gather_media,
    PICKER_VIDEO_EXTENSIONS, VIDEO_EXTENSIONS,
)
from subrename.enums import FileKind
from subrename.exceptions import FileOperationError
from subrename.models import FileRecord


@pytest.mark.parametrize("filename, expected", [
    ("a.mkv", FileKind.VIDEO),
    ("A.MKV", FileKind.VIDEO),
    ("Show.S01E01.m2ts", FileKind.VIDEO),
    ("sub.ASS", FileKind.SUBTITLE),
    ("notes.txt", FileKind.SUBTITLE),
    ("cover.jpg", FileKind.OTHER),
    ("README", FileKind.OTHER),
    ("archive.tar.gz", FileKind.OTHER),
    ("", FileKind.OTHER),
    (".srt", FileKind.OTHER),
    ("movie.rmvb", FileKind.OTHER),
])
def test_classify(filename, expected):
    assert classify(filename) is expected


def test_get_extension_uses_basename_only():
    assert get_extension("/media/dir.with.dots/file") == ""
    assert get_extension(r"C:\anime\ep01.MKV") == "mkv"
    assert get_extension("ep01.srt") == "srt"


def test_video_and_subtitle_are_disjoint():
    assert is_video_file("x.mp4") and not is_subtitle_file("x.mp4")
    assert is_subtitle_file("x.vtt") and not is_video_file("x.vtt")


def test_picker_filters_are_supersets():
    assert VIDEO_EXTENSIONS < PICKER_VIDEO_EXTENSIONS
    assert "rmvb" in PICKER_VIDEO_EXTENSIONS


def test_make_file_record_bare_name():
    record = make_file_record("sub.srt")
    assert record == FileRecord(name="sub.srt", path="sub.srt", kind=FileKind.SUBTITLE)
    assert record.to_dict() == {'name': 'sub.srt', 'path': 'sub.srt', 'is_video': False}


def test_file_record_from_dict_reclassifies():
    """Kind is derived from the name, not from the incoming is_video flag."""
    record = FileRecord.from_dict({'name': 'ep.mkv', 'path': '/x/ep.mkv', 'is_video': False})
    assert record.is_video


def test_collect_paths_skips_missing_dirs_and_other(media_dir: Path):
    video = next(media_dir.glob("*.mkv"))
    records = collect_paths([video, media_dir / "missing.mkv", media_dir / "extras", media_dir / "notes.nfo"])
    assert [r.name for r in records] == [video.name]


def test_scan_directory_flat_and_recursive(media_dir: Path):
    flat = scan_directory(media_dir)
    assert len(flat) == 6
    assert [r.name for r in flat] == sorted(r.name for r in flat)

    deep = scan_directory(media_dir, recursive=True)
    assert len(deep) == 7
    assert any("NCOP" in r.name for r in deep)


def test_scan_directory_kind_filter(media_dir: Path):
    subs = scan_directory(media_dir, kinds=(FileKind.SUBTITLE,))
    assert len(subs) == 3 and all(r.is_subtitle for r in subs)


def test_scan_directory_not_a_directory(tmp_path: Path):
    with pytest.raises(FileOperationError):
        scan_directory(tmp_path / "nope")


def test_split_by_kind_dedupes_and_sorts():
    b = make_file_record("/d/b.mkv"); a = make_file_record("/d/a.mkv"); s = make_file_record("/d/a.srt")
    videos, subtitles = split_by_kind([b, a, s, b])
    assert videos == [a, b]
    assert subtitles == [s]


def test_gather_media_mixes_dirs_and_files(media_dir: Path, tmp_path: Path):
    extra = tmp_path / "special.srt"; extra.touch()
    videos, subtitles = gather_media([media_dir, extra])
    assert len(videos) == 3
    assert len(subtitles) == 4
