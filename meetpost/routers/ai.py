# meetpost/routers/ai.py
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from meetpost.auth.session import get_current_user_id
from meetpost.db import crud
from meetpost.deps import get_db, get_llm_client
from meetpost.schemas import GenerateEmailIn, GeneratePostIn, post_out
from meetpost.services import pipeline
from meetpost.services.follow_up import write_follow_up_email
from meetpost.services.llm_client import LLMClient

router = APIRouter(prefix="/ai", tags=["ai"])


def _require(transcript, meeting_title) -> None:
    if not transcript or not transcript.strip() or not meeting_title or not meeting_title.strip():
        raise HTTPException(400, "Transcript and meeting title are required")


@router.post("/generate-post")
def generate_post(
    body: GeneratePostIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client),
) -> Dict[str, Any]:
    _require(body.transcript, body.meeting_title)
    automation = crud.get_automation(db, user_id, body.automation_id) if body.automation_id else None
    meeting = crud.get_meeting(db, user_id, body.meeting_id) if body.meeting_id else None

    post, generated = pipeline.generate_post(
        db, llm,
        user_id=user_id,
        transcript=body.transcript,
        meeting_title=body.meeting_title,
        automation=automation,
        meeting=meeting,
        platform=body.platform,
        brand_voice=body.brand_voice,
    )
    return {
        "post": post_out(post),
        "postId": post.id,
        "content": generated.content,
        "analysis": generated.analysis.to_dict(),
        "alternatives": generated.alternatives,
        "metadata": generated.metadata,
    }


@router.post("/generate-email")
def generate_email(
    body: GenerateEmailIn,
    user_id: int = Depends(get_current_user_id),
    llm: LLMClient = Depends(get_llm_client),
) -> Dict[str, Any]:
    _require(body.transcript, body.meeting_title)
    return {"email": write_follow_up_email(llm, body.transcript, body.meeting_title)}
