# meetpost/routers/meetings.py
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from meetpost.auth.session import get_current_user_id
from meetpost.config import settings
from meetpost.db import crud, crud_tokens, token_crypto
from meetpost.db.base import to_naive_utc
from meetpost.db.models import MEETING_PLATFORMS, MEETING_STATUSES, Meeting
from meetpost.deps import get_db, get_llm_client
from meetpost.errors import NotFoundError
from meetpost.rate_limit import limiter
from meetpost.schemas import MeetingIn, MeetingUpdate, NotetakerIn, TranscriptIn, meeting_out
from meetpost.services import google_calendar, meeting_lifecycle, pipeline, recall_api
from meetpost.services.llm_client import LLMClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meetings", tags=["meetings"])


def _check_range(start: datetime, end: datetime) -> None:
    if end <= start:
        raise HTTPException(400, "End time must be after start time")


def _check_platform(platform: Optional[str]) -> None:
    if platform is not None and platform not in MEETING_PLATFORMS:
        raise HTTPException(400, f"Invalid platform: {platform}")


@router.get("")
@limiter.limit(settings.meetings_read_limit)
def list_meetings(
    request: Request,
    status: Optional[str] = None,
    platform: Optional[str] = None,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    if status and status not in MEETING_STATUSES:
        raise HTTPException(400, f"Invalid status: {status}")
    _check_platform(platform)
    items, pagination = crud.list_meetings(
        db, user_id,
        status=status,
        platform=platform,
        start_date=to_naive_utc(start_date),
        end_date=to_naive_utc(end_date),
        page=page,
        limit=limit,
    )
    return {"meetings": [meeting_out(m, with_posts=True) for m in items], "pagination": pagination}


@router.post("", status_code=201)
@limiter.limit(settings.meetings_write_limit)
def create_meeting(
    request: Request,
    body: MeetingIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    start, end = to_naive_utc(body.start_time), to_naive_utc(body.end_time)
    _check_range(start, end)
    _check_platform(body.platform)
    data = body.model_dump(exclude={"start_time", "end_time"})
    meeting = crud.create_meeting(db, user_id, {**data, "start_time": start, "end_time": end})
    logger.info("Meeting %s created for user %s", meeting.id, user_id)
    return meeting_out(meeting)


@router.get("/past")
def past_meetings(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)) -> Dict[str, Any]:
    return {"meetings": [meeting_out(m, with_posts=True) for m in crud.list_past_meetings(db, user_id)]}


@router.get("/upcoming")
def upcoming_meetings(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)) -> Dict[str, Any]:
    return {"meetings": [meeting_out(m) for m in crud.list_upcoming_meetings(db, user_id)]}


def _event_time(value: Dict[str, Any]) -> Optional[datetime]:
    raw = (value or {}).get("dateTime") or (value or {}).get("date")
    if not raw:
        return None
    return to_naive_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))


def _meeting_from_event(db: Session, user_id: int, event: Dict[str, Any], meeting_url: str) -> Meeting:
    start = _event_time(event.get("start"))
    end = _event_time(event.get("end"))
    if start is None or end is None or end <= start:
        raise HTTPException(400, "Calendar event has no usable time range")
    attendees = [a.get("email") for a in event.get("attendees") or [] if a.get("email")]
    return crud.create_meeting(db, user_id, {
        "title": event.get("summary") or "Untitled meeting",
        "description": event.get("description"),
        "start_time": start,
        "end_time": end,
        "platform": google_calendar.detect_platform(meeting_url),
        "meeting_url": meeting_url,
        "attendees": attendees,
        "calendar_event_id": event["id"],
    })


@router.post("/notetaker")
def toggle_notetaker(
    body: NotetakerIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Send (or recall) the notetaker bot for one calendar event."""
    meeting = crud.get_meeting_by_event(db, user_id, body.event_id)

    if not body.enabled:
        if meeting is None:
            return {"success": True, "meetingId": None}
        if meeting.bot_id:
            recall_api.delete_bot(meeting.bot_id)
            meeting.bot_id = None
        if meeting.status == "scheduled":
            meeting_lifecycle.transition(meeting, "cancelled")
        db.commit()
        return {"success": True, "meetingId": meeting.id}

    if meeting is not None and meeting.bot_id:
        return {"success": True, "meetingId": meeting.id}

    account = crud_tokens.get_calendar_account(db, user_id)
    if account is None:
        raise HTTPException(400, "Google account not connected")
    event = google_calendar.get_event(token_crypto.decrypt_token(account.access_token_encrypted), body.event_id)
    if event is None:
        raise NotFoundError("Calendar event")
    meeting_url = google_calendar.extract_meeting_url(event)
    if not meeting_url:
        raise HTTPException(400, "Calendar event has no meeting link")

    if meeting is None or meeting.status != "scheduled":
        meeting = _meeting_from_event(db, user_id, event, meeting_url)

    lead = crud.get_or_create_settings(db, user_id).bot_join_minutes_before
    bot = recall_api.create_bot(meeting_url, meeting.title, join_at=meeting.start_time - timedelta(minutes=lead))
    meeting.bot_id = bot.get("id")
    db.commit()
    logger.info("Notetaker enabled for meeting %s (bot %s)", meeting.id, meeting.bot_id)
    return {"success": True, "meetingId": meeting.id}


@router.get("/{meeting_id}")
def get_meeting(
    meeting_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    return meeting_out(crud.get_meeting(db, user_id, meeting_id), with_posts=True)


@router.patch("/{meeting_id}")
def update_meeting(
    meeting_id: int,
    body: MeetingUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    meeting = crud.get_meeting(db, user_id, meeting_id)
    changes = body.model_dump(exclude_unset=True)
    status = changes.pop("status", None)
    if status is not None and status not in MEETING_STATUSES:
        raise HTTPException(400, f"Invalid status: {status}")
    for key in ("title", "platform", "attendees", "start_time", "end_time"):
        if key in changes and changes[key] is None:
            raise HTTPException(400, f"{key} cannot be null")
    _check_platform(changes.get("platform"))
    for key in ("start_time", "end_time"):
        if key in changes:
            changes[key] = to_naive_utc(changes[key])
    _check_range(changes.get("start_time", meeting.start_time), changes.get("end_time", meeting.end_time))

    if status is not None:
        meeting_lifecycle.transition(meeting, status)
    for k, v in changes.items():
        setattr(meeting, k, v)
    db.commit()
    db.refresh(meeting)
    return meeting_out(meeting)


@router.put("/{meeting_id}/transcript")
def put_transcript(
    meeting_id: int,
    body: TranscriptIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client),
) -> Dict[str, Any]:
    meeting = crud.get_meeting(db, user_id, meeting_id)
    meeting_lifecycle.attach_transcript(db, meeting, body.transcript)
    posts = pipeline.run_automations(db, llm, meeting)
    return {"meeting": meeting_out(meeting), "generatedPostIds": [p.id for p in posts]}
