import json
import logging
import re
from typing import Any, Dict, Optional

import httpx

from meetpost.config import settings
from meetpost.errors import ExternalServiceError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


class LLMClient:
    """Thin client for an OpenAI-compatible ``/chat/completions`` endpoint."""

    service = "OpenAI"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key or settings.openai_api_key
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.headers = {"Authorization": f"Bearer {self.api_key}"}
        self.client = httpx.Client(timeout=timeout or settings.llm_timeout)

    def close(self) -> None:
        self.client.close()

    def complete(
        self,
        prompt: str,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 300,
        presence_penalty: float = 0.0,
        frequency_penalty: float = 0.0,
    ) -> str:
        """Single-turn completion; returns the first choice's text ('' when the model returns none)."""
        if not self.api_key:
            raise ExternalServiceError(self.service, "OPENAI_API_KEY is not set")
        payload: Dict[str, Any] = {
            "model": model or settings.llm_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if presence_penalty:
            payload["presence_penalty"] = presence_penalty
        if frequency_penalty:
            payload["frequency_penalty"] = frequency_penalty

        try:
            r = self.client.post(f"{self.base_url}/chat/completions", headers=self.headers, json=payload)
        except httpx.HTTPError as e:
            logger.error("LLM request failed: %s", e)
            raise ExternalServiceError(self.service, str(e)) from e
        try:
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = r.text[:500]
            logger.error("LLM API error %s: %s", r.status_code, detail)
            raise ExternalServiceError(self.service, f"HTTP {r.status_code}: {detail}") from e

        try:
            data = r.json()
        except ValueError as e:
            logger.error("LLM API returned a non-JSON body: %s", r.text[:200])
            raise ExternalServiceError(self.service, "invalid JSON response") from e
        if not isinstance(data, dict):
            raise ExternalServiceError(self.service, "invalid JSON response")
        choices = data.get("choices") or []
        if not choices:
            return ""
        choice = choices[0]
        if not isinstance(choice, dict) or not isinstance(choice.get("message") or {}, dict):
            raise ExternalServiceError(self.service, "invalid JSON response")
        return ((choice.get("message") or {}).get("content") or "").strip()


def parse_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Best-effort parse of a model reply that should be a JSON object.

    Strips markdown code fences and falls back to the outermost ``{...}``
    span. Returns None when nothing parses to a dict.
    """
    if not text:
        return None
    cleaned = _FENCE_RE.sub("", text.strip())
    candidates = [cleaned]
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if 0 <= start < end:
        candidates.append(cleaned[start:end + 1])
    for c in candidates:
        try:
            value = json.loads(c)
        except ValueError:
            continue
        if isinstance(value, dict):
            return value
    return None


def clip_transcript(transcript: str, max_chars: Optional[int] = None) -> str:
    """Cap the transcript sent in one prompt at LLM_MAX_TRANSCRIPT_CHARS (0 = no cap)."""
    limit = settings.llm_max_transcript_chars if max_chars is None else max_chars
    if limit <= 0 or len(transcript) <= limit:
        return transcript
    logger.warning("Transcript truncated from %d to %d characters for the LLM prompt", len(transcript), limit)
    return transcript[:limit]
