import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from meetpost.db import crud
from meetpost.db.models import SOCIAL_PLATFORMS, Automation, Meeting, Post
from meetpost.errors import ValidationError
from meetpost.services.automation_matcher import match_automations
from meetpost.services.content_generator import (
    ContentGenerationConfig, ContentGenerator, GeneratedContent,
)
from meetpost.services.llm_client import LLMClient

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM = "linkedin"
DEFAULT_INSTRUCTIONS = "Share the key takeaways from this meeting and the value it delivered."


def build_config(
    automation: Optional[Automation] = None,
    platform: Optional[str] = None,
    brand_voice: Optional[str] = None,
) -> ContentGenerationConfig:
    if automation is not None:
        if platform and platform != automation.platform:
            raise ValidationError(
                f"Platform {platform} does not match the automation's platform {automation.platform}"
            )
        return ContentGenerationConfig(
            platform=automation.platform,
            instructions=automation.description or DEFAULT_INSTRUCTIONS,
            example=automation.example,
            brand_voice=brand_voice or automation.brand_voice,
        )
    platform = platform or DEFAULT_PLATFORM
    if platform not in SOCIAL_PLATFORMS:
        raise ValidationError(f"Unsupported platform: {platform}")
    return ContentGenerationConfig(platform=platform, instructions=DEFAULT_INSTRUCTIONS, brand_voice=brand_voice)


def generate_post(
    db: Session,
    llm: LLMClient,
    user_id: int,
    transcript: str,
    meeting_title: str,
    automation: Optional[Automation] = None,
    meeting: Optional[Meeting] = None,
    platform: Optional[str] = None,
    brand_voice: Optional[str] = None,
) -> Tuple[Post, GeneratedContent]:
    """Generate one draft post and persist it against the meeting/automation."""
    config = build_config(automation, platform=platform, brand_voice=brand_voice)
    generated = ContentGenerator(llm).generate(transcript, meeting_title, config)
    post = crud.create_post(
        db,
        user_id=user_id,
        content=generated.content,
        platform=config.platform,
        meeting_id=meeting.id if meeting else None,
        automation_id=automation.id if automation else None,
    )
    logger.info(
        "Draft post %s created for user %s (meeting=%s automation=%s)",
        post.id, user_id, post.meeting_id, post.automation_id,
    )
    return post, generated


def run_automations(db: Session, llm: LLMClient, meeting: Meeting) -> List[Post]:
    """Run every matching automation for a completed meeting, one after another.

    The first failure propagates: posts already generated stay, later
    automations are not attempted.
    """
    matched = match_automations(meeting, crud.list_automations(db, meeting.user_id, active_only=True))
    if not matched:
        logger.info("Meeting %s completed; no automations matched", meeting.id)
        return []
    posts = []
    for automation in matched:
        post, _ = generate_post(
            db, llm,
            user_id=meeting.user_id,
            transcript=meeting.transcript,
            meeting_title=meeting.title,
            automation=automation,
            meeting=meeting,
        )
        posts.append(post)
    return posts
