# subrename/classifier.py
import logging
import os
from pathlib import Path
from typing import Iterable, List, Tuple, Sequence, Dict

from .enums import FileKind
from .exceptions import FileOperationError
from .models import FileRecord

log = logging.getLogger(__name__)

VIDEO_EXTENSIONS = frozenset({"mp4", "mkv", "avi", "mov", "wmv", "flv", "webm", "m4v", "mpeg", "mpg", "ts", "mts", "m2ts"})
SUBTITLE_EXTENSIONS = frozenset({"srt", "ass", "ssa", "sub", "idx", "vtt", "txt"})

# File-picker filters offer a few more formats than the core classifier accepts.
PICKER_VIDEO_EXTENSIONS = VIDEO_EXTENSIONS | {"rmvb", "3gp"}
PICKER_SUBTITLE_EXTENSIONS = SUBTITLE_EXTENSIONS | {"smi", "sbv", "dfxp"}


def get_extension(filename: str) -> str:
    """Lower-cased extension without the dot; '' when absent or for dotfiles such as '.srt'."""
    name = os.path.basename(filename.replace("\\", "/"))
    return os.path.splitext(name)[1][1:].lower()

def classify(filename: str) -> FileKind:
    ext = get_extension(filename)
    if ext in VIDEO_EXTENSIONS: return FileKind.VIDEO
    if ext in SUBTITLE_EXTENSIONS: return FileKind.SUBTITLE
    return FileKind.OTHER

def is_video_file(filename: str) -> bool:
    return classify(filename) is FileKind.VIDEO

def is_subtitle_file(filename: str) -> bool:
    return classify(filename) is FileKind.SUBTITLE

def make_file_record(path) -> FileRecord:
    path_str = str(path)
    name = os.path.basename(path_str.replace('\\', '/')) or path_str
    return FileRecord(name=name, path=path_str, kind=classify(name))


def collect_paths(paths: Iterable) -> List[FileRecord]:
    """
    Turns externally supplied paths (drag & drop, CLI arguments) into records.
    Missing paths, directories and files that are neither video nor subtitle are skipped.
    """
    records: List[FileRecord] = []
    for raw in paths:
        p = Path(raw)
        if not p.exists():
            log.debug(f"Skipping missing path '{raw}'")
            continue
        if not p.is_file():
            continue
        record = make_file_record(raw)
        if record.kind is FileKind.OTHER:
            log.debug(f"Skipping unsupported file '{record.name}'")
            continue
        records.append(record)
    return records


def scan_directory(root, recursive: bool = False, kinds: Sequence[FileKind] = (FileKind.VIDEO, FileKind.SUBTITLE)) -> List[FileRecord]:
    """Single implementation for flat and recursive scans. Results are sorted by name."""
    root_path = Path(root)
    if not root_path.is_dir():
        raise FileOperationError(f"Not a directory: '{root_path}'")
    wanted = set(kinds)
    records: List[FileRecord] = []
    try:
        iterator = root_path.rglob('*') if recursive else root_path.iterdir()
        for entry in iterator:
            if not entry.is_file(): continue
            record = make_file_record(entry)
            if record.kind in wanted:
                records.append(record)
    except OSError as e:
        raise FileOperationError(f"Failed to scan directory '{root_path}': {e}") from e
    log.debug(f"Scanned '{root_path}' (recursive={recursive}): {len(records)} file(s)")
    return sorted(records, key=lambda r: (r.name, r.path))


def split_by_kind(records: Iterable[FileRecord]) -> Tuple[List[FileRecord], List[FileRecord]]:
    """De-duplicates by path and returns (videos, subtitles), each sorted by name."""
    unique: Dict[str, FileRecord] = {}
    for r in records:
        unique[r.path] = r
    videos = sorted((r for r in unique.values() if r.kind is FileKind.VIDEO), key=lambda r: r.name)
    subtitles = sorted((r for r in unique.values() if r.kind is FileKind.SUBTITLE), key=lambda r: r.name)
    return videos, subtitles


def gather_media(paths: Iterable, recursive: bool = False) -> Tuple[List[FileRecord], List[FileRecord]]:
    """Expands directories and files given on the command line into (videos, subtitles)."""
    records: List[FileRecord] = []
    plain_files = []
    for raw in paths:
        if Path(raw).is_dir():
            records.extend(scan_directory(raw, recursive=recursive))
        else:
            plain_files.append(raw)
    records.extend(collect_paths(plain_files))
    return split_by_kind(records)
