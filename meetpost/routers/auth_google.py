# meetpost/routers/auth_google.py
import logging
import secrets
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from meetpost.auth.session import create_session_token, get_current_user_id
from meetpost.config import settings
from meetpost.db import crud, crud_tokens
from meetpost.deps import get_db
from meetpost.schemas import user_out
from meetpost.services import google_calendar

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
STATE_STORE: set[str] = set()


@router.get("/google/login")
def login() -> RedirectResponse:
    if not settings.google_client_id or not settings.google_client_secret or not settings.fernet_key:
        raise HTTPException(500, "Missing Google or FERNET config in .env")
    state = secrets.token_urlsafe(24)
    STATE_STORE.add(state)
    return RedirectResponse(google_calendar.auth_url(state))


@router.get("/google/callback")
def callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db),
):
    if error:
        STATE_STORE.discard(state)
        return JSONResponse(status_code=400, content={"status": "error", "error": error})
    if not code or not state:
        raise HTTPException(400, "Missing ?code or ?state in callback")
    if state not in STATE_STORE:
        raise HTTPException(400, "Invalid state")
    STATE_STORE.discard(state)

    try:
        token_resp = google_calendar.exchange_code_for_token(code)
        access_token = token_resp.get("access_token")
        if not access_token:
            raise HTTPException(400, "Token exchange failed")
        profile = google_calendar.get_userinfo(access_token)
    except httpx.HTTPError as e:
        logger.warning("Google sign-in failed: %s", e)
        raise HTTPException(400, "Google sign-in failed")

    email = profile.get("email")
    if not email:
        raise HTTPException(400, "Google profile has no email")

    user = crud.get_or_create_user(db, email=email, name=profile.get("name"))
    crud_tokens.save_calendar_account(
        db,
        user_id=user.id,
        access_token=access_token,
        expires_in=token_resp.get("expires_in"),
        refresh_token=token_resp.get("refresh_token"),
    )
    crud.get_or_create_settings(db, user.id)
    logger.info("User %s signed in", user.id)

    resp = JSONResponse({"status": "ok", "userId": user.id})
    resp.set_cookie(
        settings.session_cookie_name,
        create_session_token(user.id),
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.base_url.startswith("https"),
    )
    return resp


@router.get("/me")
def me(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    user = crud.get_user(db, user_id)
    return {
        "user": user_out(user),
        "calendarConnected": crud_tokens.get_calendar_account(db, user_id) is not None,
    }


@router.post("/logout")
def logout():
    resp = JSONResponse({"success": True})
    resp.delete_cookie(settings.session_cookie_name)
    return resp
