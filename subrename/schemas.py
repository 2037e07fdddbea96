# subrename/schemas.py
"""
Schemas for metadata decoded from LLM backend responses.

Numeric fields are stored as ``int``; the backend may send them as JSON numbers
(``5``) or numeric strings (``"05"``) and both decode to the same value.
``confidence`` is clamped into [0.0, 1.0] instead of being rejected.
Unknown keys in the payload are ignored.
"""
import math
from typing import Any, Optional, Set

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _coerce_uint(v: Any, field_name: str) -> Any:
    if isinstance(v, bool):
        raise ValueError(f"{field_name} must be a number, not a boolean")
    if isinstance(v, str):
        stripped = v.strip()
        if not stripped.isdigit():
            raise ValueError(f"{field_name} must be a non-negative integer, got '{v}'")
        return int(stripped)
    if isinstance(v, float):
        if not v.is_integer():
            raise ValueError(f"{field_name} must be a whole number, got {v}")
        return int(v)
    return v


class ExtractedMetadata(BaseModel):
    model_config = ConfigDict(extra='ignore')

    title: str
    season: int = Field(default=1, ge=0)
    episode: int = Field(ge=0)
    special_type: Optional[str] = None
    resolution: str = ""
    codec: str = ""
    group: str = ""
    language_tags: Set[str] = Field(default_factory=set)
    confidence: float = 0.0

    @field_validator('season', mode='before')
    @classmethod
    def check_season(cls, v: Any) -> Any:
        # Explicit null means "not stated", same as an absent key.
        if v is None: return 1
        return _coerce_uint(v, 'season')

    @field_validator('episode', mode='before')
    @classmethod
    def check_episode(cls, v: Any) -> Any:
        return _coerce_uint(v, 'episode')

    @field_validator('resolution', 'codec', 'group', mode='before')
    @classmethod
    def check_optional_strings(cls, v: Any) -> Any:
        if v is None: return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool): return str(v)
        return v

    @field_validator('special_type', mode='before')
    @classmethod
    def check_special_type(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip(): return None
        return v

    @field_validator('language_tags', mode='before')
    @classmethod
    def check_language_tags(cls, v: Any) -> Any:
        if v is None: return set()
        if isinstance(v, str):
            return {t.strip() for t in v.split(',') if t.strip()}
        return v

    @field_validator('confidence', mode='before')
    @classmethod
    def clamp_confidence(cls, v: Any) -> float:
        if v is None: return 0.0
        if isinstance(v, bool):
            raise ValueError("confidence must be a number")
        try:
            value = float(v.strip()) if isinstance(v, str) else float(v)
        except (TypeError, ValueError):
            raise ValueError(f"confidence must be a number, got '{v}'")
        if math.isnan(value): return 0.0
        return min(1.0, max(0.0, value))


class BatchMetadataGuess(BaseModel):
    """Best-effort single title shared by a set of filenames."""
    model_config = ConfigDict(extra='ignore')

    # Older prompts asked for "anime_title"
    title: str = Field(validation_alias=AliasChoices("title", "anime_title"))
