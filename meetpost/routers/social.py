# meetpost/routers/social.py
import logging
import secrets
from typing import Any, Dict, Optional, Tuple

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from meetpost.auth.session import get_current_user_id
from meetpost.config import settings
from meetpost.db import crud, crud_tokens
from meetpost.db.models import PUBLISHABLE_PLATFORMS
from meetpost.deps import get_db
from meetpost.errors import ConflictError
from meetpost.schemas import SocialPostIn
from meetpost.services import facebook_api, linkedin_api, social_publisher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/social", tags=["social"])
# state -> (user_id, platform) for in-flight OAuth connects
STATE_STORE: Dict[str, Tuple[int, str]] = {}


def _check_platform(platform: str) -> None:
    if platform not in PUBLISHABLE_PLATFORMS:
        raise HTTPException(400, f"Unsupported platform: {platform}")


@router.post("/post")
def post(
    body: SocialPostIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    stored = crud.get_post(db, user_id, body.post_id) if body.post_id else None
    if stored is not None and stored.platform != body.platform:
        raise HTTPException(400, f"Post {stored.id} is for {stored.platform}, not {body.platform}")
    if stored is not None and stored.status == "posted":
        raise ConflictError(f"Post {stored.id} was already published")

    ok = social_publisher.publish(db, user_id, body.platform, body.content)
    if stored is not None:
        crud.mark_post_result(db, stored, ok, None if ok else "platform_error")
    if not ok:
        return JSONResponse(status_code=500, content={"detail": "Failed to post to social media"})
    return {"success": True}


@router.get("/status")
def status(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)) -> Dict[str, bool]:
    connected = {a.platform for a in crud_tokens.list_social_accounts(db, user_id)}
    return {p: p in connected for p in PUBLISHABLE_PLATFORMS}


@router.get("/connect/{platform}")
def connect(platform: str, user_id: int = Depends(get_current_user_id)) -> Dict[str, str]:
    _check_platform(platform)
    client_id = settings.linkedin_client_id if platform == "linkedin" else settings.facebook_client_id
    if not client_id or not settings.fernet_key:
        raise HTTPException(400, f"{platform} OAuth is not configured")
    state = secrets.token_urlsafe(24)
    STATE_STORE[state] = (user_id, platform)
    api = linkedin_api if platform == "linkedin" else facebook_api
    return {"authUrl": api.auth_url(state)}


@router.get("/callback/{platform}")
def callback(
    platform: str,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
    db: Session = Depends(get_db),
):
    _check_platform(platform)
    if error:
        STATE_STORE.pop(state, None)
        return JSONResponse(
            status_code=400,
            content={"status": "error", "error": error, "error_description": error_description},
        )
    if not code or not state:
        raise HTTPException(400, "Missing ?code or ?state in callback")
    pending = STATE_STORE.pop(state, None)
    if pending is None or pending[1] != platform:
        raise HTTPException(400, "Invalid state")
    user_id = pending[0]

    try:
        if platform == "linkedin":
            token_resp = linkedin_api.exchange_code_for_token(code)
            id_token = token_resp.get("id_token")
            external_id = linkedin_api.extract_sub_from_id_token(id_token) if id_token else ""
        else:
            token_resp = facebook_api.exchange_code_for_token(code)
            external_id = None
    except httpx.HTTPError as e:
        logger.warning("%s token exchange failed: %s", platform, e)
        raise HTTPException(400, "Token exchange failed")

    access_token = token_resp.get("access_token")
    if not access_token:
        raise HTTPException(400, "Token exchange failed")
    if platform == "facebook":
        external_id = facebook_api.me_id(access_token)

    crud_tokens.save_social_account(
        db,
        user_id=user_id,
        platform=platform,
        access_token=access_token,
        expires_in=token_resp.get("expires_in"),
        refresh_token=token_resp.get("refresh_token"),
        external_id=external_id or None,
    )
    logger.info("User %s connected %s", user_id, platform)
    return {"status": "ok", "platform": platform}


@router.post("/disconnect/{platform}")
def disconnect(
    platform: str,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, bool]:
    _check_platform(platform)
    crud_tokens.delete_social_account(db, user_id, platform)
    return {"success": True}
