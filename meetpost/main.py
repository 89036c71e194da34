import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from meetpost.config import settings
from meetpost.db.base import SessionLocal, iso_utc, utcnow
from meetpost.deps import init_db
from meetpost.errors import AppError
from meetpost.rate_limit import limiter, rate_limit_exceeded_handler

# Routers
from meetpost.routers import ai, auth_google, automations, calendar, meetings, posts
from meetpost.routers import scheduler_api, social, webhooks
from meetpost.routers import settings as settings_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d - %(funcName)s()] - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="meetpost API", version=settings.app_version)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.on_event("startup")
def _startup():
    init_db()
    if settings.scheduler_enabled:
        scheduler_api.start_scheduler(settings.scheduler_cron)
        logger.info("Scheduled publishing started (%s)", settings.scheduler_cron)


@app.on_event("shutdown")
def _shutdown():
    scheduler_api.stop_scheduler()


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]) or "body", "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": "Validation failed", "errors": errors})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/")
def root():
    return {"message": "meetpost API is running!"}


@app.get("/health")
def health():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        database = "healthy"
    except Exception:
        logger.exception("Database health check failed")
        database = "unhealthy"
    finally:
        db.close()
    body = {
        "status": "healthy" if database == "healthy" else "unhealthy",
        "timestamp": iso_utc(utcnow()),
        "version": settings.app_version,
        "services": {"database": database},
    }
    return JSONResponse(status_code=200 if database == "healthy" else 503, content=body)


# Mount routes
app.include_router(auth_google.router)        # /auth/*
app.include_router(meetings.router)           # /meetings/*
app.include_router(automations.router)        # /automations/*
app.include_router(ai.router)                 # /ai/*
app.include_router(posts.router)              # /posts/*
app.include_router(social.router)             # /social/*
app.include_router(calendar.router)           # /calendar/*
app.include_router(settings_router.router)    # /settings
app.include_router(webhooks.router)           # /webhooks/*
app.include_router(scheduler_api.router)      # /scheduler/*
