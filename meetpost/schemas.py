"""Request models and response shapes.

Bodies are camelCase on the wire; snake_case is accepted too.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from meetpost.db import models
from meetpost.db.base import iso_utc


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# requests

class MeetingIn(CamelModel):
    title: str = Field(min_length=1, max_length=512)
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    platform: str = "other"
    meeting_url: Optional[str] = None
    attendees: List[str] = Field(default_factory=list)


class MeetingUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=512)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    platform: Optional[str] = None
    meeting_url: Optional[str] = None
    attendees: Optional[List[str]] = None
    status: Optional[str] = None


class TranscriptIn(CamelModel):
    transcript: str


class NotetakerIn(CamelModel):
    event_id: str = Field(min_length=1)
    enabled: bool


class AutomationIn(CamelModel):
    name: str = Field(min_length=1, max_length=256)
    type: str = "Generate post"
    platform: str
    description: str = Field(min_length=1)
    example: Optional[str] = None
    brand_voice: Optional[str] = None
    is_active: bool = True
    trigger_meeting_ended: bool = True
    trigger_has_transcript: bool = True
    trigger_min_duration: int = Field(default=0, ge=0)


class AutomationUpdate(CamelModel):
    id: int
    name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    type: Optional[str] = None
    platform: Optional[str] = None
    description: Optional[str] = None
    example: Optional[str] = None
    brand_voice: Optional[str] = None
    is_active: Optional[bool] = None
    trigger_meeting_ended: Optional[bool] = None
    trigger_has_transcript: Optional[bool] = None
    trigger_min_duration: Optional[int] = Field(default=None, ge=0)


class GeneratePostIn(CamelModel):
    # optional at the model level so the handler can answer with a plain 400
    transcript: Optional[str] = None
    meeting_title: Optional[str] = None
    automation_id: Optional[int] = None
    meeting_id: Optional[int] = None
    platform: Optional[str] = None
    brand_voice: Optional[str] = None


class GenerateEmailIn(CamelModel):
    transcript: Optional[str] = None
    meeting_title: Optional[str] = None


class PostUpdate(CamelModel):
    content: str = Field(min_length=1)


class ScheduleIn(CamelModel):
    scheduled_for: datetime


class SocialPostIn(CamelModel):
    platform: str
    content: str
    post_id: Optional[int] = None


class SettingsIn(CamelModel):
    bot_join_minutes_before: Optional[int] = None
    email_notifications: Optional[bool] = None
    social_media_notifications: Optional[bool] = None


# responses

def user_out(u: models.User) -> Dict[str, Any]:
    return {"id": u.id, "email": u.email, "name": u.name, "createdAt": iso_utc(u.created_at)}


def post_out(p: models.Post) -> Dict[str, Any]:
    out = {
        "id": p.id,
        "content": p.content,
        "platform": p.platform,
        "status": p.status,
        "meetingId": p.meeting_id,
        "automationId": p.automation_id,
        "scheduledFor": iso_utc(p.scheduled_for),
        "postedAt": iso_utc(p.posted_at),
        "platformStatus": p.platform_status,
        "createdAt": iso_utc(p.created_at),
        "updatedAt": iso_utc(p.updated_at),
    }
    if p.automation is not None:
        out["automation"] = {"id": p.automation.id, "name": p.automation.name}
    return out


def meeting_out(m: models.Meeting, with_posts: bool = False) -> Dict[str, Any]:
    out = {
        "id": m.id,
        "title": m.title,
        "description": m.description,
        "startTime": iso_utc(m.start_time),
        "endTime": iso_utc(m.end_time),
        "platform": m.platform,
        "meetingUrl": m.meeting_url,
        "attendees": list(m.attendees or []),
        "transcript": m.transcript,
        "status": m.status,
        "calendarEventId": m.calendar_event_id,
        "botId": m.bot_id,
        "createdAt": iso_utc(m.created_at),
        "updatedAt": iso_utc(m.updated_at),
    }
    if with_posts:
        out["posts"] = [post_out(p) for p in m.posts]
    return out


def automation_out(a: models.Automation) -> Dict[str, Any]:
    return {
        "id": a.id,
        "name": a.name,
        "type": a.type,
        "platform": a.platform,
        "description": a.description,
        "example": a.example,
        "brandVoice": a.brand_voice,
        "isActive": a.is_active,
        "triggerConditions": {
            "meetingEnded": a.trigger_meeting_ended,
            "hasTranscript": a.trigger_has_transcript,
            "minDuration": a.trigger_min_duration,
        },
        "createdAt": iso_utc(a.created_at),
        "updatedAt": iso_utc(a.updated_at),
    }


def settings_out(s: models.UserSettings) -> Dict[str, Any]:
    return {
        "botJoinMinutesBefore": s.bot_join_minutes_before,
        "emailNotifications": s.email_notifications,
        "socialMediaNotifications": s.social_media_notifications,
    }
