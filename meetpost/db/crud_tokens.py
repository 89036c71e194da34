# meetpost/db/crud_tokens.py
"""Stored OAuth credentials: social accounts (publishing) and calendar accounts (event sync)."""
from datetime import timedelta
from sqlalchemy.orm import Session
from meetpost.db.base import utcnow
from meetpost.db.models import CalendarAccount, SocialAccount
from meetpost.db import token_crypto


def _expiry(expires_in: int | None):
    return utcnow() + timedelta(seconds=int(expires_in)) if expires_in else None


def get_social_account(db: Session, user_id: int, platform: str) -> SocialAccount | None:
    return (
        db.query(SocialAccount)
        .filter(SocialAccount.user_id == user_id, SocialAccount.platform == platform)
        .first()
    )


def list_social_accounts(db: Session, user_id: int) -> list[SocialAccount]:
    return db.query(SocialAccount).filter(SocialAccount.user_id == user_id).all()


def save_social_account(
    db: Session,
    user_id: int,
    platform: str,
    access_token: str,
    expires_in: int | None = None,
    refresh_token: str | None = None,
    external_id: str | None = None,
) -> SocialAccount:
    """Upsert the single account row for (user, platform); tokens are encrypted here."""
    row = get_social_account(db, user_id, platform)
    if row is None:
        row = SocialAccount(user_id=user_id, platform=platform)
    row.access_token_encrypted = token_crypto.encrypt_token(access_token)
    row.refresh_token_encrypted = token_crypto.encrypt_optional(refresh_token)
    row.expires_at = _expiry(expires_in)
    if external_id:
        row.external_id = external_id
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def delete_social_account(db: Session, user_id: int, platform: str) -> int:
    n = (
        db.query(SocialAccount)
        .filter(SocialAccount.user_id == user_id, SocialAccount.platform == platform)
        .delete()
    )
    db.commit()
    return n


def get_calendar_account(db: Session, user_id: int, provider: str = "google") -> CalendarAccount | None:
    return (
        db.query(CalendarAccount)
        .filter(CalendarAccount.user_id == user_id, CalendarAccount.provider == provider)
        .first()
    )


def save_calendar_account(
    db: Session,
    user_id: int,
    access_token: str,
    expires_in: int | None = None,
    refresh_token: str | None = None,
    provider: str = "google",
) -> CalendarAccount:
    row = get_calendar_account(db, user_id, provider)
    if row is None:
        row = CalendarAccount(user_id=user_id, provider=provider)
    row.access_token_encrypted = token_crypto.encrypt_token(access_token)
    # Google only returns a refresh token on first consent; keep the old one otherwise
    if refresh_token:
        row.refresh_token_encrypted = token_crypto.encrypt_token(refresh_token)
    row.expires_at = _expiry(expires_in)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def is_token_expired(expires_at) -> bool:
    return bool(expires_at and expires_at <= utcnow())
