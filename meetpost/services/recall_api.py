import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from meetpost.config import settings
from meetpost.errors import ExternalServiceError

logger = logging.getLogger(__name__)

SERVICE = "Recall"


def _headers() -> Dict[str, str]:
    if not settings.recall_api_key:
        raise ExternalServiceError(SERVICE, "RECALL_API_KEY is not configured")
    return {"Authorization": f"Token {settings.recall_api_key}", "Content-Type": "application/json"}


def _client() -> httpx.Client:
    return httpx.Client(base_url=settings.recall_api_base, timeout=httpx.Timeout(30, connect=5))


def _raise_for(r: httpx.Response, action: str) -> None:
    if r.is_success:
        return
    logger.warning("Recall %s failed: %s %s", action, r.status_code, r.text[:300])
    raise ExternalServiceError(SERVICE, f"{action} failed with status {r.status_code}")


def create_bot(meeting_url: str, title: str, join_at: Optional[datetime] = None) -> Dict[str, Any]:
    """Ask Recall to send a notetaker bot into the meeting; returns the bot record."""
    payload: Dict[str, Any] = {
        "bot_name": f"Meeting Bot - {title}",
        "meeting_url": meeting_url,
        "meeting_metadata": {"title": title},
    }
    if join_at is not None:
        payload["join_at"] = join_at.isoformat() + "Z"
    try:
        with _client() as c:
            r = c.post("/bot", headers=_headers(), json=payload)
    except httpx.HTTPError as e:
        raise ExternalServiceError(SERVICE, str(e))
    _raise_for(r, "create bot")
    bot = r.json()
    logger.info("Recall bot %s created for %s", bot.get("id"), meeting_url)
    return bot


def delete_bot(bot_id: str) -> None:
    try:
        with _client() as c:
            r = c.delete(f"/bot/{bot_id}", headers=_headers())
    except httpx.HTTPError as e:
        raise ExternalServiceError(SERVICE, str(e))
    # already gone is fine
    if r.status_code == 404:
        return
    _raise_for(r, "delete bot")


def format_transcript(segments: List[Dict[str, Any]]) -> str:
    lines = []
    for seg in segments:
        words = " ".join((w.get("text") or "").strip() for w in seg.get("words") or [])
        words = " ".join(words.split())
        if not words:
            continue
        speaker = seg.get("speaker") or "Speaker"
        lines.append(f"{speaker}: {words}")
    return "\n".join(lines)


def get_transcript(bot_id: str) -> str:
    try:
        with _client() as c:
            r = c.get(f"/bot/{bot_id}/transcript", headers=_headers())
    except httpx.HTTPError as e:
        raise ExternalServiceError(SERVICE, str(e))
    _raise_for(r, "fetch transcript")
    data = r.json()
    if isinstance(data, dict):
        data = data.get("results") or []
    return format_transcript(data)
