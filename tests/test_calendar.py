from unittest.mock import patch

from meetpost.db import crud, crud_tokens
from meetpost.services import google_calendar

EVENT = {
    "id": "evt-1",
    "summary": "Sprint Planning",
    "description": "Join: https://zoom.us/j/123456789",
    "start": {"dateTime": "2030-01-15T10:00:00Z"},
    "end": {"dateTime": "2030-01-15T11:00:00Z"},
    "attendees": [{"email": "alice@example.com"}, {"displayName": "no email"}],
}


def test_extract_meeting_url_and_platform():
    assert google_calendar.extract_meeting_url(EVENT) == "https://zoom.us/j/123456789"
    assert google_calendar.extract_meeting_url({"hangoutLink": "https://meet.google.com/abc-defg-hij"}) \
        == "https://meet.google.com/abc-defg-hij"
    assert google_calendar.extract_meeting_url({"description": "no link"}) is None
    assert google_calendar.detect_platform("https://teams.microsoft.com/l/meetup-join/x") == "teams"
    assert google_calendar.detect_platform("https://example.com") == "other"


def test_events_require_calendar_account(client, auth):
    resp = client.get("/calendar/events", headers=auth)
    assert resp.status_code == 400


@patch("meetpost.services.google_calendar.list_upcoming_events")
def test_events_are_annotated(mock_list, client, auth, db, user):
    crud_tokens.save_calendar_account(db, user.id, "g-token")
    mock_list.return_value = [dict(EVENT)]
    events = client.get("/calendar/events?limit=5", headers=auth).json()["events"]
    mock_list.assert_called_once_with("g-token", max_results=5)
    assert events[0]["meetingUrl"] == "https://zoom.us/j/123456789"
    assert events[0]["platform"] == "zoom"


@patch("meetpost.services.recall_api.create_bot")
@patch("meetpost.services.google_calendar.get_event")
def test_enable_notetaker_creates_meeting_and_bot(mock_event, mock_bot, client, auth, db, user):
    crud_tokens.save_calendar_account(db, user.id, "g-token")
    crud.update_settings(db, user.id, {"bot_join_minutes_before": 2})
    mock_event.return_value = dict(EVENT)
    mock_bot.return_value = {"id": "bot-9"}

    resp = client.post("/meetings/notetaker", json={"eventId": "evt-1", "enabled": True}, headers=auth)
    assert resp.status_code == 200
    meeting = crud.get_meeting(db, user.id, resp.json()["meetingId"])
    assert meeting.bot_id == "bot-9"
    assert meeting.platform == "zoom"
    assert meeting.attendees == ["alice@example.com"]
    join_at = mock_bot.call_args.kwargs["join_at"]
    assert (meeting.start_time - join_at).total_seconds() == 120


@patch("meetpost.services.recall_api.delete_bot")
def test_disable_notetaker_cancels(mock_delete, client, auth, user, make_meeting, db):
    meeting = make_meeting(user.id, calendar_event_id="evt-1", bot_id="bot-9")
    resp = client.post("/meetings/notetaker", json={"eventId": "evt-1", "enabled": False}, headers=auth)
    assert resp.json() == {"success": True, "meetingId": meeting.id}
    mock_delete.assert_called_once_with("bot-9")
    db.refresh(meeting)
    assert meeting.status == "cancelled"
    assert meeting.bot_id is None


@patch("meetpost.services.google_calendar.get_event", return_value=None)
def test_unknown_event_is_404(mock_event, client, auth, db, user):
    crud_tokens.save_calendar_account(db, user.id, "g-token")
    resp = client.post("/meetings/notetaker", json={"eventId": "missing", "enabled": True}, headers=auth)
    assert resp.status_code == 404
