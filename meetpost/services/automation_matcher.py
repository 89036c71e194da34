from typing import Iterable, List

from meetpost.db.models import AUTOMATION_TYPES, Automation, Meeting


def meeting_duration_minutes(meeting: Meeting) -> float:
    return (meeting.end_time - meeting.start_time).total_seconds() / 60.0


def has_transcript(meeting: Meeting) -> bool:
    return bool(meeting.transcript and meeting.transcript.strip())


def automation_matches(meeting: Meeting, automation: Automation) -> bool:
    if automation.user_id != meeting.user_id:
        return False
    if not automation.is_active or automation.type not in AUTOMATION_TYPES:
        return False
    # meetingEnded holds for every completed meeting
    if automation.trigger_meeting_ended and meeting.status != "completed":
        return False
    if automation.trigger_has_transcript and not has_transcript(meeting):
        return False
    return meeting_duration_minutes(meeting) >= (automation.trigger_min_duration or 0)


def match_automations(meeting: Meeting, automations: Iterable[Automation]) -> List[Automation]:
    """Automations a just-completed meeting should run, in the order given."""
    if meeting.status != "completed":
        return []
    return [a for a in automations if automation_matches(meeting, a)]
