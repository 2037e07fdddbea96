# subrename/llm_client.py
import logging
import time
from typing import Any, Dict, List, Optional

import requests

from .exceptions import NetworkError, BadStatusError, SchemaMismatchError

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0


class ChatCompletionClient:
    """
    Minimal client for an OpenAI-compatible chat-completions endpoint.

    Only transports text: one POST per call, no retries, no key rotation.
    ``model_url`` is the full endpoint URL (e.g. ``http://localhost:11434/v1/chat/completions``).
    """

    def __init__(self, model_url: str, model_name: str, api_key: Optional[str] = None,
                 timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
        self.model_url = model_url
        self.model_name = model_name
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f'Bearer {self.api_key}'
        return headers

    def complete(self, messages: List[Dict[str, str]], temperature: float = 0.1,
                 extra_params: Optional[Dict[str, Any]] = None) -> str:
        """Returns ``choices[0].message.content`` of the backend response."""
        payload: Dict[str, Any] = {
            'model': self.model_name,
            'messages': messages,
            'temperature': temperature,
        }
        if extra_params:
            payload.update(extra_params)

        start_time = time.monotonic()
        try:
            response = self._session.post(self.model_url, headers=self._headers(), json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            log.error(f"LLM request timed out after {self.timeout}s ({self.model_url})")
            raise NetworkError(f"Request to LLM backend timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            log.error(f"LLM request failed: {e}")
            raise NetworkError(f"Request to LLM backend failed: {e}") from e

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        if not 200 <= response.status_code < 300:
            log.warning(f"LLM backend returned status {response.status_code} after {elapsed_ms}ms")
            raise BadStatusError(response.status_code, body=response.text[:500] if response.text else None)

        try:
            content = response.json()['choices'][0]['message']['content']
        except (ValueError, KeyError, IndexError, TypeError) as e:
            log.error(f"Unexpected LLM response shape: {e}")
            raise SchemaMismatchError(response.text or "", detail=f"missing choices[0].message.content: {e}") from e
        if not isinstance(content, str):
            raise SchemaMismatchError(response.text or "", detail="message content is not a string")

        log.debug(f"LLM request to '{self.model_name}' succeeded in {elapsed_ms}ms")
        return content
