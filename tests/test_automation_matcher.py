from datetime import datetime, timedelta

from meetpost.db.models import Automation, Meeting
from meetpost.services.automation_matcher import match_automations, meeting_duration_minutes


def _meeting(minutes=30, status="completed", transcript="We planned the sprint.", user_id=1):
    start = datetime(2024, 1, 15, 10, 0)
    return Meeting(id=1, user_id=user_id, title="Sprint Planning", start_time=start,
                   end_time=start + timedelta(minutes=minutes), status=status, transcript=transcript)


def _automation(id, min_duration=0, user_id=1, **kw):
    data = dict(id=id, user_id=user_id, name=f"a{id}", type="Generate post", platform="linkedin",
                is_active=True, trigger_meeting_ended=True, trigger_has_transcript=True,
                trigger_min_duration=min_duration)
    data.update(kw)
    return Automation(**data)


def test_duration_in_minutes():
    assert meeting_duration_minutes(_meeting(minutes=45)) == 45


def test_min_duration_threshold():
    a20, a30 = _automation(1, min_duration=20), _automation(2, min_duration=30)
    assert match_automations(_meeting(minutes=25), [a20, a30]) == [a20]
    assert match_automations(_meeting(minutes=30), [a20, a30]) == [a20, a30]


def test_incomplete_meeting_matches_nothing():
    for status in ("scheduled", "in-progress", "cancelled"):
        assert match_automations(_meeting(status=status), [_automation(1)]) == []


def test_transcript_condition():
    a = _automation(1)
    assert match_automations(_meeting(transcript="  \n "), [a]) == []
    assert match_automations(_meeting(transcript=None), [a]) == []
    loose = _automation(2, trigger_has_transcript=False)
    assert match_automations(_meeting(transcript=None), [a, loose]) == [loose]


def test_inactive_foreign_and_unknown_type_are_skipped():
    keep = _automation(4)
    autos = [
        _automation(1, is_active=False),
        _automation(2, user_id=99),
        _automation(3, type="Send email"),
        keep,
    ]
    assert match_automations(_meeting(), autos) == [keep]


def test_order_is_preserved():
    autos = [_automation(3), _automation(1), _automation(2)]
    assert [a.id for a in match_automations(_meeting(), autos)] == [3, 1, 2]
