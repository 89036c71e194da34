from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from meetpost.db.base import Base, utcnow

MEETING_STATUSES = ("scheduled", "in-progress", "completed", "cancelled")
MEETING_PLATFORMS = ("zoom", "teams", "google-meet", "webex", "other")
SOCIAL_PLATFORMS = ("linkedin", "facebook", "twitter", "instagram")
PUBLISHABLE_PLATFORMS = ("linkedin", "facebook")
POST_STATUSES = ("draft", "scheduled", "posted", "failed")
AUTOMATION_TYPES = ("Generate post",)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(320), unique=True, nullable=False)
    name = Column(String(256), nullable=True)
    created_at = Column(DateTime, default=utcnow)


class CalendarAccount(Base):
    __tablename__ = "calendar_accounts"
    __table_args__ = (UniqueConstraint("user_id", "provider", name="uq_calendar_user_provider"),)
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String(32), nullable=False, default="google")
    access_token_encrypted = Column(Text, nullable=False)
    refresh_token_encrypted = Column(Text, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class Meeting(Base):
    __tablename__ = "meetings"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(512), nullable=False)
    description = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    platform = Column(String(32), nullable=False, default="other")
    meeting_url = Column(String(1024), nullable=True)
    attendees = Column(JSON, nullable=False, default=list)
    transcript = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default="scheduled", index=True)
    calendar_event_id = Column(String(256), nullable=True, index=True)
    bot_id = Column(String(128), nullable=True, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    posts = relationship("Post", back_populates="meeting", order_by="Post.created_at.desc()")


class Automation(Base):
    __tablename__ = "automations"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(256), nullable=False)
    type = Column(String(64), nullable=False, default="Generate post")
    platform = Column(String(32), nullable=False)
    description = Column(Text, nullable=True)   # free-text generation instructions
    example = Column(Text, nullable=True)
    brand_voice = Column(String(256), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    # trigger conditions
    trigger_meeting_ended = Column(Boolean, nullable=False, default=True)
    trigger_has_transcript = Column(Boolean, nullable=False, default=True)
    trigger_min_duration = Column(Integer, nullable=False, default=0)  # minutes
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Post(Base):
    __tablename__ = "posts"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    platform = Column(String(32), nullable=False)
    meeting_id = Column(Integer, ForeignKey("meetings.id", ondelete="SET NULL"), nullable=True, index=True)
    automation_id = Column(Integer, ForeignKey("automations.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(32), nullable=False, default="draft", index=True)
    scheduled_for = Column(DateTime, nullable=True, index=True)
    posted_at = Column(DateTime, nullable=True)
    platform_status = Column(String(512), nullable=True)  # e.g. 'posted', 'failed:not_connected'
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    meeting = relationship("Meeting", back_populates="posts")
    automation = relationship("Automation")


class SocialAccount(Base):
    __tablename__ = "social_accounts"
    __table_args__ = (UniqueConstraint("user_id", "platform", name="uq_social_user_platform"),)
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    platform = Column(String(32), nullable=False)
    external_id = Column(String(128), nullable=True)  # LinkedIn id_token sub / Facebook user id
    access_token_encrypted = Column(Text, nullable=False)
    refresh_token_encrypted = Column(Text, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class UserSettings(Base):
    __tablename__ = "user_settings"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    bot_join_minutes_before = Column(Integer, nullable=False, default=5)
    email_notifications = Column(Boolean, nullable=False, default=True)
    social_media_notifications = Column(Boolean, nullable=False, default=True)
