# meetpost/services/linkedin_api.py
"""LinkedIn OAuth (OpenID) and UGC text shares."""
import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote, urlencode

import httpx
from jose import jwt
from jose.exceptions import JOSEError

from meetpost.config import settings

logger = logging.getLogger(__name__)

AUTH_URL = "https://www.linkedin.com/oauth/v2/authorization"
TOKEN_URL = "https://www.linkedin.com/oauth/v2/accessToken"
UGC_URL = "https://api.linkedin.com/v2/ugcPosts"
RESTLI_VERSION = "2.0.0"
ACCEPTED = (201, 202)


def _oauth_params(**extra: str) -> Dict[str, str]:
    return {
        "client_id": settings.linkedin_client_id,
        "redirect_uri": settings.linkedin_redirect_uri,
        **extra,
    }


def auth_url(state: str, scopes: Optional[str] = None) -> str:
    params = _oauth_params(response_type="code", scope=scopes or settings.linkedin_scopes, state=state)
    return AUTH_URL + "?" + urlencode(params, quote_via=quote, safe=":/")


def exchange_code_for_token(code: str) -> Dict[str, Any]:
    form = _oauth_params(
        grant_type="authorization_code",
        code=code,
        client_secret=settings.linkedin_client_secret,
    )
    with httpx.Client(timeout=httpx.Timeout(30, connect=5)) as c:
        resp = c.post(TOKEN_URL, data=form)
    _trace(resp)
    resp.raise_for_status()
    return resp.json()


def extract_sub_from_id_token(id_token: str) -> str:
    """Member id (``sub``) from an OpenID id_token; the signature is not checked."""
    try:
        return str(jwt.get_unverified_claims(id_token).get("sub") or "")
    except JOSEError:
        return ""


def build_text_share(author_urn: str, text: str) -> Dict[str, Any]:
    share = {"shareCommentary": {"text": text}, "shareMediaCategory": "NONE"}
    return {
        "author": author_urn,
        "lifecycleState": "PUBLISHED",
        "specificContent": {"com.linkedin.ugc.ShareContent": share},
        "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"},
    }


def post_text(access_token: str, author_urn: str, text: str) -> Tuple[bool, Dict[str, Any]]:
    """Publish one text share. Returns (accepted, detail)."""
    headers = {
        "Authorization": f"Bearer {access_token}",
        "X-Restli-Protocol-Version": RESTLI_VERSION,
    }
    try:
        with httpx.Client(timeout=60) as c:
            resp = c.post(UGC_URL, headers=headers, json=build_text_share(author_urn, text))
    except httpx.HTTPError as e:
        logger.error("LinkedIn share request failed: %s", e)
        return False, {"error": str(e)}

    _trace(resp)
    if resp.status_code in ACCEPTED:
        return True, {"status": resp.status_code, "id": resp.headers.get("x-restli-id")}

    detail: Dict[str, Any] = {"status": resp.status_code, "body": resp.text[:500]}
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if isinstance(body, dict):
        detail.update(serviceErrorCode=body.get("serviceErrorCode"), message=body.get("message"))
    logger.warning("LinkedIn rejected share for %s: %s", author_urn, detail)
    return False, detail


def _trace(resp: httpx.Response) -> None:
    request_id = resp.headers.get("x-restli-request-id")
    if request_id:
        logger.debug("LinkedIn request id %s -> %s", request_id, resp.status_code)
