import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Query, Session, selectinload

from meetpost.db import models
from meetpost.db.base import utcnow
from meetpost.errors import NotFoundError


def paginate(query: Query, page: int = 1, limit: int = 20) -> Tuple[list, Dict[str, int]]:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


# users / settings

def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_or_create_user(db: Session, email: str, name: Optional[str] = None) -> models.User:
    u = db.query(models.User).filter(models.User.email == email).first()
    if u:
        if name and u.name != name:
            u.name = name
            db.commit()
        return u
    u = models.User(email=email, name=name)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def get_or_create_settings(db: Session, user_id: int) -> models.UserSettings:
    s = db.query(models.UserSettings).filter(models.UserSettings.user_id == user_id).first()
    if s:
        return s
    s = models.UserSettings(user_id=user_id)
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


def update_settings(db: Session, user_id: int, data: Dict[str, Any]) -> models.UserSettings:
    s = get_or_create_settings(db, user_id)
    for k, v in data.items():
        setattr(s, k, v)
    db.commit()
    db.refresh(s)
    return s


# meetings

def create_meeting(db: Session, user_id: int, data: Dict[str, Any]) -> models.Meeting:
    obj = models.Meeting(user_id=user_id, **data)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def get_meeting(db: Session, user_id: int, meeting_id: int) -> models.Meeting:
    """Owned meeting or NotFoundError; another user's meeting is indistinguishable from a missing one."""
    m = (
        db.query(models.Meeting)
        .filter(models.Meeting.id == meeting_id, models.Meeting.user_id == user_id)
        .first()
    )
    if not m:
        raise NotFoundError("Meeting")
    return m


def get_meeting_by_bot(db: Session, bot_id: str) -> Optional[models.Meeting]:
    return db.query(models.Meeting).filter(models.Meeting.bot_id == bot_id).first()


def get_meeting_by_event(db: Session, user_id: int, event_id: str) -> Optional[models.Meeting]:
    return (
        db.query(models.Meeting)
        .filter(models.Meeting.user_id == user_id, models.Meeting.calendar_event_id == event_id)
        .order_by(models.Meeting.id.desc())
        .first()
    )


def list_meetings(
    db: Session,
    user_id: int,
    status: Optional[str] = None,
    platform: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[models.Meeting], Dict[str, int]]:
    q = db.query(models.Meeting).filter(models.Meeting.user_id == user_id)
    if status:
        q = q.filter(models.Meeting.status == status)
    if platform:
        q = q.filter(models.Meeting.platform == platform)
    if start_date:
        q = q.filter(models.Meeting.start_time >= start_date)
    if end_date:
        q = q.filter(models.Meeting.start_time <= end_date)
    q = q.options(selectinload(models.Meeting.posts)).order_by(
        models.Meeting.start_time.desc(), models.Meeting.id.desc()
    )
    return paginate(q, page=page, limit=limit)


def list_past_meetings(db: Session, user_id: int) -> List[models.Meeting]:
    return (
        db.query(models.Meeting)
        .filter(models.Meeting.user_id == user_id, models.Meeting.status == "completed")
        .options(selectinload(models.Meeting.posts).selectinload(models.Post.automation))
        .order_by(models.Meeting.start_time.desc())
        .all()
    )


def list_upcoming_meetings(db: Session, user_id: int) -> List[models.Meeting]:
    return (
        db.query(models.Meeting)
        .filter(
            models.Meeting.user_id == user_id,
            models.Meeting.status == "scheduled",
            models.Meeting.start_time >= utcnow(),
        )
        .order_by(models.Meeting.start_time.asc())
        .all()
    )


# automations

def list_automations(db: Session, user_id: int, active_only: bool = False) -> List[models.Automation]:
    q = db.query(models.Automation).filter(models.Automation.user_id == user_id)
    if active_only:
        q = q.filter(models.Automation.is_active.is_(True))
    # insertion order; there is no priority model
    return q.order_by(models.Automation.id.asc()).all()


def get_automation(db: Session, user_id: int, automation_id: int) -> models.Automation:
    a = (
        db.query(models.Automation)
        .filter(models.Automation.id == automation_id, models.Automation.user_id == user_id)
        .first()
    )
    if not a:
        raise NotFoundError("Automation")
    return a


def create_automation(db: Session, user_id: int, data: Dict[str, Any]) -> models.Automation:
    obj = models.Automation(user_id=user_id, **data)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def update_automation(db: Session, automation: models.Automation, data: Dict[str, Any]) -> models.Automation:
    for k, v in data.items():
        setattr(automation, k, v)
    db.commit()
    db.refresh(automation)
    return automation


def delete_automation(db: Session, automation: models.Automation) -> None:
    # keep generated posts; they just lose the link back
    db.query(models.Post).filter(models.Post.automation_id == automation.id).update(
        {models.Post.automation_id: None}, synchronize_session=False
    )
    db.delete(automation)
    db.commit()


# posts

def create_post(
    db: Session,
    user_id: int,
    content: str,
    platform: str,
    meeting_id: Optional[int] = None,
    automation_id: Optional[int] = None,
    status: str = "draft",
) -> models.Post:
    obj = models.Post(
        user_id=user_id,
        content=content,
        platform=platform,
        meeting_id=meeting_id,
        automation_id=automation_id,
        status=status,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def get_post(db: Session, user_id: int, post_id: int) -> models.Post:
    p = db.query(models.Post).filter(models.Post.id == post_id, models.Post.user_id == user_id).first()
    if not p:
        raise NotFoundError("Post")
    return p


def list_posts(
    db: Session,
    user_id: int,
    status: Optional[str] = None,
    platform: Optional[str] = None,
    meeting_id: Optional[int] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[models.Post], Dict[str, int]]:
    q = db.query(models.Post).filter(models.Post.user_id == user_id)
    if status:
        q = q.filter(models.Post.status == status)
    if platform:
        q = q.filter(models.Post.platform == platform)
    if meeting_id:
        q = q.filter(models.Post.meeting_id == meeting_id)
    q = q.order_by(models.Post.id.desc())
    return paginate(q, page=page, limit=limit)


def list_due_posts(db: Session, now: Optional[datetime] = None) -> List[models.Post]:
    now = now or utcnow()
    return (
        db.query(models.Post)
        .filter(models.Post.status == "scheduled", models.Post.scheduled_for <= now)
        .order_by(models.Post.scheduled_for.asc(), models.Post.id.asc())
        .all()
    )


def mark_post_result(db: Session, post: models.Post, ok: bool, detail: Optional[str] = None) -> models.Post:
    if ok:
        post.status = "posted"
        post.posted_at = utcnow()
        post.platform_status = "posted"
    else:
        post.status = "failed"
        post.platform_status = f"failed:{detail}" if detail else "failed"
    db.add(post)
    db.commit()
    db.refresh(post)
    return post
