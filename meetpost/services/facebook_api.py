import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode

import httpx

from meetpost.config import settings

logger = logging.getLogger(__name__)

GRAPH_URL = "https://graph.facebook.com/v18.0"
AUTH_URL = "https://www.facebook.com/v18.0/dialog/oauth"
TOKEN_URL = f"{GRAPH_URL}/oauth/access_token"
FEED_URL = f"{GRAPH_URL}/me/feed"
ME_URL = f"{GRAPH_URL}/me"


def auth_url(state: str, scopes: Optional[str] = None) -> str:
    params = {
        "client_id": settings.facebook_client_id,
        "redirect_uri": settings.facebook_redirect_uri,
        "state": state,
        "scope": scopes or settings.facebook_scopes,
        "response_type": "code",
    }
    return f"{AUTH_URL}?{urlencode(params)}"


def exchange_code_for_token(code: str) -> Dict[str, Any]:
    data = {
        "client_id": settings.facebook_client_id,
        "client_secret": settings.facebook_client_secret,
        "redirect_uri": settings.facebook_redirect_uri,
        "code": code,
    }
    with httpx.Client(timeout=httpx.Timeout(30, connect=5)) as c:
        r = c.post(TOKEN_URL, data=data)
        r.raise_for_status()
        return r.json()


def me_id(access_token: str) -> str:
    """Facebook user id for the token owner, or '' when the lookup fails."""
    try:
        with httpx.Client(timeout=httpx.Timeout(30, connect=5)) as c:
            r = c.get(ME_URL, headers={"Authorization": f"Bearer {access_token}"}, params={"fields": "id"})
    except httpx.HTTPError as e:
        logger.warning("Facebook /me lookup failed: %s", e)
        return ""
    if r.status_code != 200:
        logger.warning("Facebook /me returned %s", r.status_code)
        return ""
    return str(r.json().get("id", ""))


def post_feed(access_token: str, message: str) -> Tuple[bool, Any]:
    try:
        with httpx.Client(timeout=60) as c:
            r = c.post(
                FEED_URL,
                headers={"Authorization": f"Bearer {access_token}"},
                json={"message": message},
            )
    except httpx.HTTPError as e:
        logger.error("Facebook feed request failed: %s", e)
        return False, {"exception": str(e)}
    if r.is_success:
        return True, r
    logger.warning("Facebook feed post rejected: %s %s", r.status_code, r.text[:500])
    return False, {"status": r.status_code, "body": r.text[:500]}
