# subrename/matcher.py
"""
Episode-keyed pairing of videos and subtitles.

The planner pairs purely by position, so callers run this matcher first to
line both lists up by episode number. Keys come from the first capture group
of ``episode_regex``; when it does not match, guessit's episode number is used.
"""
import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple

from .exceptions import AmbiguousEpisodeError, UnmatchedFilesError
from .filename_parser import parse_episode_number
from .models import FileRecord, MatchResult

log = logging.getLogger(__name__)

DEFAULT_EPISODE_REGEX = r'\[(\d{2})\]'


def _index_by_episode(records: Sequence[FileRecord], pattern) -> Tuple[Dict[int, FileRecord], List[FileRecord]]:
    """Returns ({episode: record}, [records without a key]). Duplicate keys are ambiguous."""
    keyed: Dict[int, FileRecord] = {}
    keyless: List[FileRecord] = []
    for record in records:
        episode = parse_episode_number(record.name, pattern)
        if episode is None:
            keyless.append(record)
            continue
        if episode in keyed:
            raise AmbiguousEpisodeError(episode, [keyed[episode].name, record.name])
        keyed[episode] = record
    return keyed, keyless


def match_by_episode(videos: Sequence[FileRecord], subtitles: Sequence[FileRecord],
                     episode_regex: Optional[str] = DEFAULT_EPISODE_REGEX, strict: bool = True) -> MatchResult:
    pattern = re.compile(episode_regex) if episode_regex else None

    video_keys, video_keyless = _index_by_episode(videos, pattern)
    sub_keys, sub_keyless = _index_by_episode(subtitles, pattern)
    log.debug(f"Episode keys: videos={sorted(video_keys)} subtitles={sorted(sub_keys)}")

    result = MatchResult()

    # --- Exact key matches, ascending ---
    for episode in sorted(video_keys):
        if episode in sub_keys:
            result.pairs.append((video_keys[episode], sub_keys[episode]))
            result.episodes.append(episode)
        else:
            result.unmatched_videos.append(video_keys[episode])
    result.unmatched_subtitles.extend(sub_keys[ep] for ep in sorted(sub_keys) if ep not in video_keys)

    # --- Key-less items pair ordinally with each other ---
    for video, subtitle in zip(video_keyless, sub_keyless):
        result.pairs.append((video, subtitle))
        result.episodes.append(None)
    result.unmatched_videos.extend(video_keyless[len(sub_keyless):])
    result.unmatched_subtitles.extend(sub_keyless[len(video_keyless):])

    if result.unmatched_videos or result.unmatched_subtitles:
        if strict:
            raise UnmatchedFilesError([v.name for v in result.unmatched_videos],
                                      [s.name for s in result.unmatched_subtitles])
        for v in result.unmatched_videos: log.info(f"Skipping video without subtitle: {v.name}")
        for s in result.unmatched_subtitles: log.info(f"Skipping subtitle without video: {s.name}")

    log.debug(f"Matched {len(result.pairs)} pair(s)")
    return result


def match_by_position(videos: Sequence[FileRecord], subtitles: Sequence[FileRecord]) -> MatchResult:
    """Index-based pairing. Length mismatches are left for the planner to reject."""
    result = MatchResult()
    for video, subtitle in zip(videos, subtitles):
        result.pairs.append((video, subtitle))
        result.episodes.append(None)
    result.unmatched_videos.extend(videos[len(subtitles):])
    result.unmatched_subtitles.extend(subtitles[len(videos):])
    return result
