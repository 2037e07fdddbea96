# subrename/metadata_extractor.py
import logging
from typing import List, Sequence

from .exceptions import EmptyInputError, ExtractionError
from .llm_client import ChatCompletionClient
from .models import LLMResponse
from .response_parser import extract, extract_batch_title
from .schemas import ExtractedMetadata, BatchMetadataGuess

log = logging.getLogger(__name__)

SINGLE_TEMPERATURE = 0.1
BATCH_TEMPERATURE = 0.3

SINGLE_SYSTEM_PROMPT = """
You extract episode information from anime video filenames. Reply with JSON only, no explanations.
Rules:
- title: the full series title (Chinese/Japanese preferred, English otherwise) without resolution, codec or group tags.
- season: season number as an integer, 1 when not stated.
- episode: episode number as an integer, 0 when it cannot be determined.
- special_type: "SP", "OVA", "OAD", "NCOP", "NCED", "Movie" when the file is not a regular episode, otherwise null.
- resolution: e.g. "1080p", "2160p", empty string if absent.
- codec: video codec such as "AVC", "HEVC", empty string if absent.
- group: release / fansub group such as "VCB-Studio", "LoliHouse", empty string if absent.
- language_tags: subtitle or audio language tags found in the name, e.g. ["CHS", "JPN"].
- confidence: a number between 0 and 1.
Return exactly these keys:
{"title": "...", "season": 1, "episode": 1, "special_type": null, "resolution": "...", "codec": "...", "group": "...", "language_tags": [], "confidence": 0.9}
"""

BATCH_SYSTEM_PROMPT = """
You aggregate anime information. Infer the single anime title that a group of filenames belongs to.
Hints:
- use the keywords common to all filenames;
- ignore resolution, codec and release group noise;
- prefer Chinese/Japanese titles, fall back to English.
Return format:
{"title": "inferred title"}
Reply with JSON only, nothing else.
"""


class MetadataExtractor:
    """Sends filenames to the LLM backend and normalizes its replies into metadata records."""

    def __init__(self, client: ChatCompletionClient):
        self.client = client

    @classmethod
    def from_config(cls, cfg_helper) -> "MetadataExtractor":
        client = ChatCompletionClient(
            model_url=cfg_helper('model_url'),
            model_name=cfg_helper('model_name'),
            api_key=cfg_helper.get_api_key('llm'),
            timeout=float(cfg_helper('request_timeout', 300.0)),
        )
        return cls(client)

    def extract(self, filename: str) -> ExtractedMetadata:
        messages = [
            {'role': 'system', 'content': SINGLE_SYSTEM_PROMPT},
            {'role': 'user', 'content': f"This is a video filename, extract its information: {filename}"},
        ]
        log.info(f"Analyzing filename with '{self.client.model_name}': {filename}")
        content = self.client.complete(messages, temperature=SINGLE_TEMPERATURE)
        log.debug(f"LLM response content: {content}")
        return extract(content)

    def extract_batch(self, filenames: Sequence[str]) -> BatchMetadataGuess:
        if not filenames:
            raise EmptyInputError()
        listing = "\n".join(filenames)
        messages = [
            {'role': 'system', 'content': BATCH_SYSTEM_PROMPT},
            {'role': 'user', 'content': f"These filenames belong to one anime, infer its title:\n{listing}"},
        ]
        log.info(f"Inferring shared title for {len(filenames)} filename(s)")
        content = self.client.complete(messages, temperature=BATCH_TEMPERATURE)
        log.debug(f"Batch LLM response content: {content}")
        return extract_batch_title(content)

    # --- Boundary helpers: never raise, always answer with an LLMResponse ---

    def analyze_filename(self, filename: str) -> LLMResponse:
        try:
            return LLMResponse(success=True, data=self.extract(filename))
        except ExtractionError as e:
            log.warning(f"Extraction failed for '{filename}': {e}")
            return LLMResponse(success=False, error=str(e), error_kind=e.kind)

    def batch_analyze_filenames(self, filenames: List[str]) -> LLMResponse:
        try:
            return LLMResponse(success=True, data=self.extract_batch(filenames))
        except ExtractionError as e:
            log.warning(f"Batch extraction failed: {e}")
            return LLMResponse(success=False, error=str(e), error_kind=e.kind)
