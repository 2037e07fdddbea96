# subrename/filename_parser.py
"""Offline metadata extraction from filenames (no LLM backend involved)."""
import logging
import re
from functools import lru_cache
from typing import Any, Dict, Optional, Pattern, Set, Union

import langcodes
from guessit import guessit

from .schemas import ExtractedMetadata

log = logging.getLogger(__name__)

CODEC_NAMES = {'h.264': 'AVC', 'h.265': 'HEVC', 'xvid': 'XviD', 'divx': 'DivX', 'vp9': 'VP9', 'av1': 'AV1', 'mpeg-2': 'MPEG-2'}

# Tags used by fansub groups that are not BCP-47 codes.
LANGUAGE_ALIASES = {
    'chs': 'zh-Hans', 'sc': 'zh-Hans', 'gb': 'zh-Hans', 'jpsc': 'zh-Hans',
    'cht': 'zh-Hant', 'tc': 'zh-Hant', 'big5': 'zh-Hant', 'jptc': 'zh-Hant',
    'jp': 'ja', 'jpn': 'ja', 'eng': 'en', 'en': 'en',
}
_LANGUAGE_TOKEN = re.compile(r'(?:^|[\s._\-\[\]()&])(' + '|'.join(sorted(LANGUAGE_ALIASES, key=len, reverse=True)) + r')(?=$|[\s._\-\[\]()&])', re.IGNORECASE)

KEY_FIELDS = ('title', 'episode', 'screen_size', 'video_codec', 'release_group')


@lru_cache(maxsize=32)
def _compile(pattern: str) -> Pattern:
    return re.compile(pattern)

def _regex_episode(name: str, episode_regex: Union[str, Pattern, None]) -> Optional[int]:
    if not episode_regex: return None
    try:
        pattern = _compile(episode_regex) if isinstance(episode_regex, str) else episode_regex
    except re.error as e:
        log.error(f"Invalid episode regex '{episode_regex}': {e}")
        return None
    match = pattern.search(name)
    if not match: return None
    group = match.group(1) if match.groups() else match.group(0)
    try: return int(group)
    except (TypeError, ValueError):
        log.debug(f"Episode regex matched non-numeric '{group}' in '{name}'")
        return None

def _guess(name: str) -> Dict[str, Any]:
    try:
        return dict(guessit(name))
    except Exception as e:
        log.debug(f"Guessit failed on '{name}': {e}")
        return {}

def _first(value: Any) -> Any:
    if isinstance(value, list): return value[0] if value else None
    return value


def parse_episode_number(name: str, episode_regex: Union[str, Pattern, None] = None) -> Optional[int]:
    """Episode key for a filename: the regex's first group when it matches, guessit otherwise."""
    episode = _regex_episode(name, episode_regex)
    if episode is not None: return episode
    guess = _guess(name)
    ep = _first(guess.get('episode'))
    try: return int(ep) if ep is not None else None
    except (TypeError, ValueError): return None


def normalize_language_tag(tag: str) -> Optional[str]:
    candidate = LANGUAGE_ALIASES.get(tag.lower(), tag)
    try:
        return langcodes.standardize_tag(candidate)
    except ValueError:
        log.debug(f"Ignoring unknown language tag '{tag}'")
        return None

def detect_language_tags(name: str, guess: Optional[Dict[str, Any]] = None) -> Set[str]:
    tags: Set[str] = set()
    for match in _LANGUAGE_TOKEN.finditer(name):
        tag = normalize_language_tag(match.group(1))
        if tag: tags.add(tag)
    for key in ('subtitle_language', 'language'):
        langs = (guess or {}).get(key)
        if langs is None: continue
        for lang in (langs if isinstance(langs, list) else [langs]):
            code = getattr(lang, 'alpha3', None) or str(lang)
            tag = normalize_language_tag(code)
            if tag: tags.add(tag)
    return tags


def extract_from_filename(name: str, episode_regex: Union[str, Pattern, None] = None) -> ExtractedMetadata:
    guess = _guess(name)
    log.debug(f"Guessit: {guess}")

    episode = _regex_episode(name, episode_regex)
    if episode is None:
        ep = _first(guess.get('episode'))
        episode = int(ep) if isinstance(ep, int) else 0
    if episode > 0:
        guess.setdefault('episode', episode)

    season = _first(guess.get('season'))
    codec = guess.get('video_codec') or ""
    codec = CODEC_NAMES.get(str(codec).lower(), str(codec))
    special = _first(guess.get('episode_details'))

    found = sum(1 for key in KEY_FIELDS if guess.get(key))
    return ExtractedMetadata(
        title=str(guess.get('title') or ""),
        season=season if isinstance(season, int) else 1,
        episode=episode,
        special_type=str(special) if special else None,
        resolution=str(guess.get('screen_size') or ""),
        codec=codec,
        group=str(guess.get('release_group') or ""),
        language_tags=detect_language_tags(name, guess),
        confidence=round(found / len(KEY_FIELDS), 2),
    )
