import logging

from sqlalchemy.orm import Session

from meetpost.db.models import Meeting
from meetpost.errors import ConflictError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    "scheduled": {"in-progress", "completed", "cancelled"},
    "in-progress": {"completed"},
    "completed": set(),
    "cancelled": set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def transition(meeting: Meeting, target: str) -> Meeting:
    """Move a meeting to ``target``; same-state updates are a no-op."""
    if meeting.status == target:
        return meeting
    if not can_transition(meeting.status, target):
        raise ConflictError(f"Cannot move meeting from {meeting.status} to {target}")
    logger.info("Meeting %s: %s -> %s", meeting.id, meeting.status, target)
    meeting.status = target
    return meeting


def attach_transcript(db: Session, meeting: Meeting, transcript: str) -> Meeting:
    """Store a transcript and complete the meeting.

    A meeting already completed without a transcript still accepts one; a
    meeting that has a transcript, or was cancelled, does not.
    """
    if not transcript or not transcript.strip():
        raise ValidationError("Transcript must not be empty")
    if meeting.status == "cancelled":
        raise ConflictError("Meeting is already cancelled")
    if meeting.transcript and meeting.transcript.strip():
        raise ConflictError("Meeting already has a transcript")
    meeting.transcript = transcript.strip()
    transition(meeting, "completed")
    db.add(meeting)
    db.commit()
    db.refresh(meeting)
    return meeting
