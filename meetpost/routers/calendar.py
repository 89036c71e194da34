from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from meetpost.auth.session import get_current_user_id
from meetpost.db import crud_tokens, token_crypto
from meetpost.deps import get_db
from meetpost.services import google_calendar

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/events")
def events(
    limit: int = Query(20, ge=1, le=100),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    account = crud_tokens.get_calendar_account(db, user_id)
    if account is None:
        raise HTTPException(400, "Google account not connected")
    access_token = token_crypto.decrypt_token(account.access_token_encrypted)
    items = google_calendar.list_upcoming_events(access_token, max_results=limit)
    for ev in items:
        url = google_calendar.extract_meeting_url(ev)
        ev["meetingUrl"] = url
        ev["platform"] = google_calendar.detect_platform(url) if url else None
    return {"events": items}
