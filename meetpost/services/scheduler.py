import logging
from typing import Any, Dict

from meetpost.db import crud
from meetpost.db.base import SessionLocal
from meetpost.errors import NotConnectedError, ValidationError
from meetpost.services import social_publisher

logger = logging.getLogger(__name__)


def publish_due_posts() -> Dict[str, Any]:
    """Publish every scheduled post whose time has come, oldest first."""
    # each job run gets its own session
    db = SessionLocal()
    try:
        due = crud.list_due_posts(db)
        if not due:
            return {"status": "no-due-posts", "published": 0, "failed": 0}

        published, failed = [], []
        for post in due:
            try:
                ok = social_publisher.publish(db, post.user_id, post.platform, post.content)
                detail = None if ok else "platform_error"
            except NotConnectedError:
                ok, detail = False, "not_connected"
            except ValidationError as e:
                ok, detail = False, e.message
            crud.mark_post_result(db, post, ok, detail)
            (published if ok else failed).append(post.id)

        logger.info("Scheduled run: %d published, %d failed", len(published), len(failed))
        return {
            "status": "done",
            "published": len(published),
            "failed": len(failed),
            "postIds": published + failed,
        }
    finally:
        db.close()
