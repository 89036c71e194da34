# meetpost/services/google_calendar.py
"""Google sign-in (OAuth code flow) and Calendar v3 event reads."""
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode, quote

import httpx

from meetpost.config import settings
from meetpost.db.base import utcnow
from meetpost.errors import ExternalServiceError

logger = logging.getLogger(__name__)

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"

SERVICE = "Google Calendar"

MEETING_URL_PATTERNS = [
    re.compile(r"https://zoom\.us/j/\d+"),
    re.compile(r"https://us\d+\.web\.zoom\.us/j/\d+"),
    re.compile(r"https://teams\.microsoft\.com/l/meetup-join/[^/\s]+"),
    re.compile(r"https://meet\.google\.com/[a-z-]+"),
    re.compile(r"https://[\w.-]*webex\.com/[^\s\"<>]+"),
]


def auth_url(state: str) -> str:
    params = {
        "response_type": "code",
        "client_id": settings.google_client_id,
        "redirect_uri": settings.google_redirect_uri,
        "scope": settings.google_scopes,
        "state": state,
        # refresh token on first consent
        "access_type": "offline",
        "prompt": "consent",
    }
    return f"{AUTH_URL}?{urlencode(params, quote_via=quote, safe=':/')}"


def exchange_code_for_token(code: str) -> Dict[str, Any]:
    data = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": settings.google_redirect_uri,
        "client_id": settings.google_client_id,
        "client_secret": settings.google_client_secret,
    }
    with httpx.Client(timeout=httpx.Timeout(30, connect=5)) as c:
        r = c.post(TOKEN_URL, data=data)
        r.raise_for_status()
        return r.json()


def get_userinfo(access_token: str) -> Dict[str, Any]:
    with httpx.Client(timeout=httpx.Timeout(30, connect=5)) as c:
        r = c.get(USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"})
        r.raise_for_status()
        return r.json()


def _get(url: str, access_token: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    try:
        with httpx.Client(timeout=httpx.Timeout(30, connect=5)) as c:
            r = c.get(url, headers={"Authorization": f"Bearer {access_token}"}, params=params)
    except httpx.HTTPError as e:
        raise ExternalServiceError(SERVICE, str(e))
    if r.status_code == 404:
        return {}
    if not r.is_success:
        logger.warning("Calendar request failed: %s %s", r.status_code, r.text[:300])
        raise ExternalServiceError(SERVICE, f"request failed with status {r.status_code}")
    return r.json()


def list_upcoming_events(access_token: str, max_results: int = 10) -> List[Dict[str, Any]]:
    params = {
        "timeMin": utcnow().isoformat() + "Z",
        "maxResults": max_results,
        "singleEvents": "true",
        "orderBy": "startTime",
    }
    return _get(EVENTS_URL, access_token, params).get("items", [])


def get_event(access_token: str, event_id: str) -> Optional[Dict[str, Any]]:
    """One event from the primary calendar, or None if it does not exist."""
    return _get(f"{EVENTS_URL}/{quote(event_id, safe='')}", access_token) or None


def extract_meeting_url(event: Dict[str, Any]) -> Optional[str]:
    hangout = event.get("hangoutLink") or ""
    text = " ".join([event.get("description") or "", event.get("location") or "", hangout])
    for pattern in MEETING_URL_PATTERNS:
        m = pattern.search(text)
        if m:
            return m.group(0)
    return hangout or None


def detect_platform(meeting_url: Optional[str]) -> str:
    url = meeting_url or ""
    if "zoom.us" in url:
        return "zoom"
    if "teams.microsoft.com" in url:
        return "teams"
    if "meet.google.com" in url:
        return "google-meet"
    if "webex.com" in url:
        return "webex"
    return "other"
