# meetpost/routers/webhooks.py
"""Recall bot status webhook.

Recall posts ``{"event": "bot.status_change", "data": {"bot_id": ...,
"status": {"code": ...}}}``. Joining the call moves the meeting to
in-progress; ``done`` pulls the transcript, completes the meeting and runs
the owner's automations. The payload is not signed, so anyone who knows a
bot id can trigger the transcript fetch.
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from meetpost.db import crud
from meetpost.deps import get_db, get_llm_client
from meetpost.errors import ConflictError
from meetpost.services import meeting_lifecycle, pipeline, recall_api
from meetpost.services.llm_client import LLMClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

IN_CALL_CODES = {"in_call_not_recording", "in_call_recording"}
DONE_CODE = "done"


@router.post("/recall")
def recall_webhook(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client),
) -> Dict[str, Any]:
    data = payload.get("data") or {}
    bot_id = data.get("bot_id") or (data.get("bot") or {}).get("id")
    code = (data.get("status") or {}).get("code")
    if not bot_id or not code:
        raise HTTPException(400, "Missing bot id or status code")

    meeting = crud.get_meeting_by_bot(db, bot_id)
    if meeting is None:
        logger.info("Webhook for unknown bot %s ignored", bot_id)
        return {"status": "ignored"}

    if code in IN_CALL_CODES:
        if meeting.status == "scheduled":
            meeting_lifecycle.transition(meeting, "in-progress")
            db.commit()
        return {"status": "ok"}

    if code != DONE_CODE:
        logger.info("Bot %s status %s for meeting %s", bot_id, code, meeting.id)
        return {"status": "ok"}

    transcript = recall_api.get_transcript(bot_id)
    if not transcript.strip():
        logger.warning("Bot %s finished with an empty transcript", bot_id)
        return {"status": "no-transcript"}
    try:
        meeting_lifecycle.attach_transcript(db, meeting, transcript)
    except ConflictError:
        # redelivered webhook; the meeting was already completed
        return {"status": "ignored"}
    posts = pipeline.run_automations(db, llm, meeting)
    return {"status": "processed", "generatedPostIds": [p.id for p in posts]}
