"""Per-client request limits (slowapi), keyed on the remote address."""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from meetpost.config import settings

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit hit by %s on %s %s", get_remote_address(request), request.method, request.url.path)
    return JSONResponse(status_code=429, content={"detail": "Too many requests", "code": "RATE_LIMIT_ERROR"})
