from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from meetpost.auth.session import get_current_user_id
from meetpost.db import crud
from meetpost.db.base import to_naive_utc, utcnow
from meetpost.db.models import POST_STATUSES, PUBLISHABLE_PLATFORMS
from meetpost.deps import get_db
from meetpost.errors import ConflictError
from meetpost.schemas import PostUpdate, ScheduleIn, post_out

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("")
def list_posts(
    status: Optional[str] = None,
    platform: Optional[str] = None,
    meeting_id: Optional[int] = Query(None, alias="meetingId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    if status and status not in POST_STATUSES:
        raise HTTPException(400, f"Invalid status: {status}")
    items, pagination = crud.list_posts(
        db, user_id, status=status, platform=platform, meeting_id=meeting_id, page=page, limit=limit
    )
    return {"posts": [post_out(p) for p in items], "pagination": pagination}


@router.get("/{post_id}")
def get_post(post_id: int, user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return post_out(crud.get_post(db, user_id, post_id))


@router.patch("/{post_id}")
def edit_post(
    post_id: int,
    body: PostUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    post = crud.get_post(db, user_id, post_id)
    if post.status == "posted":
        raise ConflictError("Published posts cannot be edited")
    post.content = body.content.strip()
    db.commit()
    db.refresh(post)
    return post_out(post)


@router.post("/{post_id}/schedule")
def schedule_post(
    post_id: int,
    body: ScheduleIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    post = crud.get_post(db, user_id, post_id)
    if post.status == "posted":
        raise ConflictError("Post is already published")
    if post.platform not in PUBLISHABLE_PLATFORMS:
        raise HTTPException(400, f"Publishing to {post.platform} is not supported")
    when = to_naive_utc(body.scheduled_for)
    if when <= utcnow():
        raise HTTPException(400, "Scheduled time must be in the future")
    post.status = "scheduled"
    post.scheduled_for = when
    db.commit()
    db.refresh(post)
    return {"post": post_out(post)}
