# meetpost/auth/session.py
"""Session tokens and the authenticated-user dependency.

A session is an HS256 JWT whose ``sub`` is the user id. It travels in the
session cookie (set by the Google login callback) or as a bearer token.
Every protected handler depends on :func:`get_current_user_id`, which
runs before body handling, so an unauthenticated request never reaches
code that writes to the database.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from meetpost.config import settings
from meetpost.db import crud
from meetpost.deps import get_db
from meetpost.errors import AuthenticationError

ALGORITHM = "HS256"


def create_session_token(user_id: int, expires_in: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    exp = now + (expires_in or timedelta(hours=settings.session_ttl_hours))
    claims = {"sub": str(user_id), "iat": int(now.timestamp()), "exp": int(exp.timestamp())}
    return jwt.encode(claims, settings.session_secret, algorithm=ALGORITHM)


def decode_session_token(token: str) -> int:
    try:
        claims = jwt.decode(token, settings.session_secret, algorithms=[ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid or expired session")
    sub = claims.get("sub")
    if not sub or not str(sub).isdigit():
        raise AuthenticationError("Invalid session subject")
    return int(sub)


def _token_from_request(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return request.cookies.get(settings.session_cookie_name)


def get_current_user_id(request: Request, db: Session = Depends(get_db)) -> int:
    token = _token_from_request(request)
    if not token:
        raise AuthenticationError()
    user_id = decode_session_token(token)
    # a token for a deleted user is as good as no token
    if crud.get_user(db, user_id) is None:
        raise AuthenticationError()
    return user_id
