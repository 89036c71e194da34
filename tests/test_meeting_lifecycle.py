import pytest

from meetpost.db.models import Meeting
from meetpost.errors import ConflictError, ValidationError
from meetpost.services.meeting_lifecycle import attach_transcript, can_transition, transition


@pytest.mark.parametrize("current,target,allowed", [
    ("scheduled", "in-progress", True),
    ("scheduled", "completed", True),
    ("scheduled", "cancelled", True),
    ("in-progress", "completed", True),
    ("in-progress", "cancelled", False),
    ("in-progress", "scheduled", False),
    ("completed", "scheduled", False),
    ("cancelled", "in-progress", False),
])
def test_transition_table(current, target, allowed):
    assert can_transition(current, target) is allowed


def test_invalid_transition_raises():
    with pytest.raises(ConflictError):
        transition(Meeting(id=1, status="completed"), "in-progress")


def test_same_state_is_noop():
    m = Meeting(id=1, status="cancelled")
    assert transition(m, "cancelled").status == "cancelled"


def test_attach_transcript(db, user, make_meeting):
    meeting = make_meeting(user.id, status="in-progress")
    attach_transcript(db, meeting, "  Alice: hello  ")
    assert meeting.status == "completed"
    assert meeting.transcript == "Alice: hello"


def test_attach_transcript_rules(db, user, make_meeting):
    with pytest.raises(ValidationError):
        attach_transcript(db, make_meeting(user.id), "")
    with pytest.raises(ConflictError):
        attach_transcript(db, make_meeting(user.id, status="cancelled"), "text")


def test_completed_meeting_without_transcript_accepts_one(db, user, make_meeting):
    meeting = make_meeting(user.id, status="completed")
    attach_transcript(db, meeting, "Alice: late upload")
    assert meeting.status == "completed"
    assert meeting.transcript == "Alice: late upload"

    with pytest.raises(ConflictError):
        attach_transcript(db, meeting, "Alice: second upload")
