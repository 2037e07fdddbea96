# subrename/bangumi_client.py
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from .exceptions import MetadataError
from .models import BangumiSubject, BangumiSubjectDetail

log = logging.getLogger(__name__)

BANGUMI_API_BASE = "https://api.bgm.tv"
SUBJECT_TYPE_ANIME = 2
DEFAULT_TIMEOUT = 10.0


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int): return None
    return value

def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


class BangumiClient:
    """Read-only lookups against the public Bangumi (bgm.tv) API."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT,
                 base_url: str = BANGUMI_API_BASE):
        self._session = session or requests.Session()
        self.timeout = timeout
        self.base_url = base_url.rstrip('/')

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        log.debug(f"Bangumi GET {url} params={params}")
        try:
            resp = self._session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise MetadataError(f"Request to Bangumi failed: {e}") from e
        if not 200 <= resp.status_code < 300:
            raise MetadataError(f"Bangumi returned error status: {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise MetadataError(f"Failed to parse Bangumi response: {e}") from e

    def search_subjects(self, query: str, limit: int = 10) -> List[BangumiSubject]:
        q = (query or "").strip()
        if not q: return []
        url = f"{self.base_url}/search/subject/{quote(q, safe='')}"
        payload = self._get_json(url, params={'type': SUBJECT_TYPE_ANIME, 'responseGroup': 'small', 'max_results': limit})

        if isinstance(payload, dict) and isinstance(payload.get('list'), list):
            entries = payload['list']
        elif isinstance(payload, list):
            entries = payload
        else:
            entries = []

        items: List[BangumiSubject] = []
        for it in entries:
            if not isinstance(it, dict): continue
            subject_id = _as_int(it.get('id')) or 0
            name = _as_str(it.get('name')) or ""
            if subject_id == 0 or not name: continue
            items.append(BangumiSubject(
                id=subject_id, name=name, name_cn=_as_str(it.get('name_cn')),
                subject_type=_as_int(it.get('type')),
                date=_as_str(it.get('date')) or _as_str(it.get('air_date')),
            ))
        log.info(f"Bangumi search '{q}': {len(items)} result(s)")
        return items

    def get_subject_detail(self, subject_id: int) -> BangumiSubjectDetail:
        v = self._get_json(f"{self.base_url}/subject/{subject_id}")
        if not isinstance(v, dict):
            raise MetadataError(f"Unexpected Bangumi subject payload for id {subject_id}")

        images = v.get('images') if isinstance(v.get('images'), dict) else {}
        cover_url = _as_str(images.get('large')) or _as_str(images.get('common')) or _as_str(v.get('cover'))

        episodes = _as_int(v.get('eps'))
        if episodes is None: episodes = _as_int(v.get('total_episodes'))
        if episodes is None and isinstance(v.get('episodes'), list): episodes = len(v['episodes'])

        year = None
        date_str = _as_str(v.get('date')) or _as_str(v.get('air_date'))
        if date_str and date_str[:4].isdigit():
            year = int(date_str[:4])

        return BangumiSubjectDetail(
            id=_as_int(v.get('id')) or subject_id,
            name=_as_str(v.get('name')) or "",
            name_cn=_as_str(v.get('name_cn')),
            cover_url=cover_url, episodes=episodes, year=year,
        )
