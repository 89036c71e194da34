from typing import Any, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import APIRouter, Depends, HTTPException

from meetpost.auth.session import get_current_user_id
from meetpost.config import settings
from meetpost.services.scheduler import publish_due_posts

router = APIRouter(prefix="/scheduler", tags=["scheduler"], dependencies=[Depends(get_current_user_id)])

scheduler: Optional[BackgroundScheduler] = None


def start_scheduler(cron: str) -> Dict[str, Any]:
    global scheduler
    if scheduler and scheduler.running:
        return {"status": "already-running"}
    try:
        trigger = CronTrigger.from_crontab(cron, timezone="UTC")
    except ValueError as e:
        raise HTTPException(400, f"Invalid cron expression: {e}")
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        publish_due_posts, trigger, id="publish_due_posts",
        replace_existing=True, max_instances=1, coalesce=True,
    )
    scheduler.start()
    return {"status": "started", "cron": cron}


def stop_scheduler() -> Dict[str, Any]:
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        scheduler = None
        return {"status": "stopped"}
    return {"status": "not-running"}


@router.post("/run")
def run_now() -> Dict[str, Any]:
    return publish_due_posts()


@router.post("/start")
def start(cron: Optional[str] = None) -> Dict[str, Any]:
    # standard 5-field cron: m h dom mon dow, UTC
    return start_scheduler(cron or settings.scheduler_cron)


@router.post("/stop")
def stop() -> Dict[str, Any]:
    return stop_scheduler()


@router.get("/status")
def status() -> Dict[str, Any]:
    return {"running": bool(scheduler and scheduler.running)}
