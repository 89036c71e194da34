from unittest.mock import patch

from meetpost.db import models
from meetpost.services import recall_api


def _event(bot_id, code):
    return {"event": "bot.status_change", "data": {"bot_id": bot_id, "status": {"code": code}}}


def test_malformed_payload_is_400(client, fake_llm):
    assert client.post("/webhooks/recall", json={"event": "bot.status_change"}).status_code == 400


def test_unknown_bot_is_ignored(client, fake_llm):
    resp = client.post("/webhooks/recall", json=_event("bot-unknown", "done"))
    assert resp.json() == {"status": "ignored"}


def test_in_call_moves_meeting_in_progress(client, db, user, make_meeting, fake_llm):
    meeting = make_meeting(user.id, bot_id="bot-1")
    client.post("/webhooks/recall", json=_event("bot-1", "in_call_recording"))
    db.refresh(meeting)
    assert meeting.status == "in-progress"


@patch("meetpost.services.recall_api.get_transcript")
def test_done_attaches_transcript_and_runs_automations(mock_transcript, client, db, user,
                                                       make_meeting, make_automation, fake_llm):
    mock_transcript.return_value = "Alice: We planned the sprint."
    meeting = make_meeting(user.id, minutes=45, bot_id="bot-2", status="in-progress")
    make_automation(user.id, trigger_min_duration=30)

    resp = client.post("/webhooks/recall", json=_event("bot-2", "done"))
    assert resp.status_code == 200
    assert resp.json()["status"] == "processed"
    assert len(resp.json()["generatedPostIds"]) == 1
    mock_transcript.assert_called_once_with("bot-2")
    db.refresh(meeting)
    assert meeting.status == "completed"
    assert meeting.transcript == "Alice: We planned the sprint."

    # redelivery does not generate again
    resp = client.post("/webhooks/recall", json=_event("bot-2", "done"))
    assert resp.json() == {"status": "ignored"}
    db.expire_all()
    assert db.query(models.Post).count() == 1


def test_format_transcript_joins_words_per_speaker():
    segments = [
        {"speaker": "Alice", "words": [{"text": "Hello"}, {"text": "team"}]},
        {"speaker": None, "words": [{"text": "Hi"}]},
        {"speaker": "Bob", "words": []},
    ]
    assert recall_api.format_transcript(segments) == "Alice: Hello team\nSpeaker: Hi"


@patch("meetpost.services.recall_api.get_transcript")
def test_done_after_manual_completion_still_stores_transcript(mock_transcript, client, db, user, auth,
                                                              make_meeting, make_automation, fake_llm):
    mock_transcript.return_value = "Bob: We closed the quarter."
    meeting = make_meeting(user.id, bot_id="bot-3")
    make_automation(user.id)
    resp = client.patch(f"/meetings/{meeting.id}", json={"status": "completed"}, headers=auth)
    assert resp.status_code == 200

    resp = client.post("/webhooks/recall", json=_event("bot-3", "done"))
    assert resp.status_code == 200
    assert resp.json()["status"] == "processed"
    assert len(resp.json()["generatedPostIds"]) == 1
    db.refresh(meeting)
    assert meeting.status == "completed"
    assert meeting.transcript == "Bob: We closed the quarter."
