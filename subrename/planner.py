# subrename/planner.py
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .classifier import get_extension
from .exceptions import CountMismatchError, SourceMissingError
from .models import FileRecord, RenamePlanEntry

log = logging.getLogger(__name__)


def stem(filename: str) -> str:
    """Name without its last extension; the full name when that would leave nothing."""
    base, sep, _ = filename.rpartition('.')
    if not sep or not base: return filename
    return base

def build_target_name(video_name: str, subtitle_name: str, suffix: Optional[str] = "") -> str:
    """
    Target for a subtitle paired with a video:
    ``stem(video) + ["." + suffix] + "." + ext(subtitle)``.
    A subtitle without an extension adds no trailing dot.

    >>> build_target_name("Anime.S01E05.mkv", "Anime_ep5_cn.srt", "chs")
    'Anime.S01E05.chs.srt'
    """
    target = stem(video_name)
    if suffix:
        target += f".{suffix}"
    ext = get_extension(subtitle_name)
    if ext:
        target += f".{ext}"
    return target


def plan(videos: Sequence[FileRecord], subtitles: Sequence[FileRecord], suffix: Optional[str] = "") -> List[RenamePlanEntry]:
    """
    Pairs ``videos[i]`` with ``subtitles[i]``. No rename happens here.

    Raises CountMismatchError before touching the filesystem when the lists differ
    in length, and SourceMissingError for a full subtitle path that does not exist.
    Bare filenames are preview entries and are never checked.
    """
    if len(videos) != len(subtitles):
        raise CountMismatchError(len(videos), len(subtitles))

    entries: List[RenamePlanEntry] = []
    for video, subtitle in zip(videos, subtitles):
        entry = RenamePlanEntry(video=video, subtitle=subtitle,
                                target_name=build_target_name(video.name, subtitle.name, suffix))
        if not entry.is_preview and not Path(subtitle.path).exists():
            raise SourceMissingError(subtitle.name)
        log.debug(f"Planned: '{subtitle.name}' -> '{entry.target_name}'")
        entries.append(entry)
    return entries
