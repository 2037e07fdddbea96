# subrename/response_parser.py
"""
Tolerant decoding of chat-completion text into metadata schemas.

Backends wrap the JSON answer in several ways: chain-of-thought blocks such as
``<seed:think>...</seed:think>`` before the answer, and Markdown code fences
around it. Decoding runs an ordered tuple of ``(name, transform)`` stages over
the text with reasoning blocks removed; the first stage whose output decodes
wins. When every stage fails a SchemaMismatchError carrying the untouched
input is raised.
"""
import json
import logging
import re
from typing import Callable, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .exceptions import SchemaMismatchError
from .schemas import ExtractedMetadata, BatchMetadataGuess

log = logging.getLogger(__name__)

REASONING_MARKERS: Tuple[Tuple[str, str], ...] = (
    ("<seed:think>", "</seed:think>"),
    ("<think>", "</think>"),
)
_REASONING_PATTERNS = tuple(
    re.compile(re.escape(open_tag) + r".*?" + re.escape(close_tag), re.DOTALL)
    for open_tag, close_tag in REASONING_MARKERS
)
_LEADING_FENCE = re.compile(r"^```(?:json)?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"```$")

SchemaT = TypeVar('SchemaT', bound=BaseModel)
Stage = Tuple[str, Callable[[str], str]]


def strip_reasoning(text: str) -> str:
    """Removes every reasoning segment (shortest match per open/close pair, spanning lines)."""
    for pattern in _REASONING_PATTERNS:
        text = pattern.sub("", text)
    return text

def strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned.rstrip(), count=1)
    return cleaned.strip()


DECODE_STAGES: Tuple[Stage, ...] = (
    ("as-is", lambda text: text),
    ("fence-stripped", strip_code_fence),
)


def decode_schema(text: str, schema: Type[SchemaT]) -> SchemaT:
    """Strict decode: the whole text must be one JSON object that satisfies the schema."""
    data = json.loads(text)
    return schema.model_validate(data)


def parse_with_stages(raw_text: str, schema: Type[SchemaT], stages: Tuple[Stage, ...] = DECODE_STAGES) -> SchemaT:
    if raw_text is None:
        raise SchemaMismatchError("", detail="no content")
    cleaned = strip_reasoning(raw_text)
    last_error = None
    for stage_name, transform in stages:
        candidate = transform(cleaned)
        try:
            result = decode_schema(candidate, schema)
            log.debug(f"Decoded {schema.__name__} at stage '{stage_name}'")
            return result
        except (json.JSONDecodeError, ValidationError) as e:
            log.debug(f"Stage '{stage_name}' failed for {schema.__name__}: {e}")
            last_error = e
    log.warning(f"Could not decode {schema.__name__} from backend response ({len(raw_text)} chars)")
    raise SchemaMismatchError(raw_text, detail=str(last_error) if last_error else None)


def extract(raw_text: str) -> ExtractedMetadata:
    return parse_with_stages(raw_text, ExtractedMetadata)

def extract_batch_title(raw_text: str) -> BatchMetadataGuess:
    return parse_with_stages(raw_text, BatchMetadataGuess)
