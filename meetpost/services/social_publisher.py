"""Publish content to a user's connected social account.

One HTTP call per publish, no retry and no idempotency key: if the platform
accepts the post but the response is lost, the caller sees a failure and a
re-publish will duplicate it. Expired tokens are not refreshed; the platform
call simply fails.
"""
import logging

from cryptography.fernet import InvalidToken
from sqlalchemy.orm import Session

from meetpost.db import crud_tokens, token_crypto
from meetpost.db.models import PUBLISHABLE_PLATFORMS
from meetpost.errors import NotConnectedError, ValidationError
from meetpost.services import facebook_api, linkedin_api

logger = logging.getLogger(__name__)


def publish(db: Session, user_id: int, platform: str, content: str) -> bool:
    if platform not in PUBLISHABLE_PLATFORMS:
        raise ValidationError(f"Publishing to {platform} is not supported")
    if not content or not content.strip():
        raise ValidationError("Content must not be empty")

    account = crud_tokens.get_social_account(db, user_id, platform)
    if account is None:
        raise NotConnectedError(platform)
    if crud_tokens.is_token_expired(account.expires_at):
        logger.warning("%s token for user %s expired at %s; reconnect required", platform, user_id, account.expires_at)

    try:
        access_token = token_crypto.decrypt_token(account.access_token_encrypted)
    except (TypeError, InvalidToken):
        logger.error("Stored %s token for user %s is unreadable", platform, user_id)
        return False

    if platform == "linkedin":
        if not account.external_id:
            logger.error("LinkedIn account for user %s has no member id; reconnect required", user_id)
            return False
        ok, _ = linkedin_api.post_text(access_token, f"urn:li:person:{account.external_id}", content)
    else:
        ok, _ = facebook_api.post_feed(access_token, content)

    logger.info("Publish to %s for user %s: %s", platform, user_id, "ok" if ok else "failed")
    return ok
