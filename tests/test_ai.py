from conftest import auth_for
from meetpost.db import models

TRANSCRIPT = "Alice: Let's lock the sprint goals.\nBob: Onboarding v2 ships first."


def test_generate_post_without_automation(client, auth, fake_llm, count_rows):
    resp = client.post("/ai/generate-post", json={"transcript": TRANSCRIPT, "meetingTitle": "Sprint Planning"},
                       headers=auth)
    assert resp.status_code == 200
    body = resp.json()
    assert body["content"]
    assert body["post"]["platform"] == "linkedin"
    assert body["post"]["status"] == "draft"
    assert body["postId"] == body["post"]["id"]
    assert set(body["analysis"]) == {"sentiment", "engagement", "readability", "keywords", "hashtags", "estimatedReach"}
    assert set(body["metadata"]) >= {"generationTime", "model", "insights", "variationsGenerated", "tone", "score"}
    assert count_rows(models.Post) == 1


def test_generate_post_uses_automation_platform(client, auth, user, make_automation, make_meeting, fake_llm):
    automation = make_automation(user.id, platform="facebook", example="We shipped it!", brand_voice="upbeat")
    meeting = make_meeting(user.id, status="completed", transcript=TRANSCRIPT)
    resp = client.post("/ai/generate-post", json={
        "transcript": TRANSCRIPT, "meetingTitle": "Sprint Planning",
        "automationId": automation.id, "meetingId": meeting.id,
    }, headers=auth)
    assert resp.status_code == 200
    post = resp.json()["post"]
    assert post["platform"] == "facebook"
    assert post["automationId"] == automation.id
    assert post["meetingId"] == meeting.id
    assert resp.json()["metadata"]["variationsGenerated"] == 4
    prompt = next(c["prompt"] for c in fake_llm.calls if c["kind"] == "post")
    assert "We shipped it!" in prompt


def test_platform_mismatch_with_automation_is_400(client, auth, user, make_automation, fake_llm):
    automation = make_automation(user.id, platform="facebook")
    resp = client.post("/ai/generate-post", json={
        "transcript": TRANSCRIPT, "meetingTitle": "Sprint Planning",
        "automationId": automation.id, "platform": "linkedin",
    }, headers=auth)
    assert resp.status_code == 400
    assert fake_llm.calls == []


def test_missing_fields_are_400(client, auth, fake_llm, count_rows):
    for body in ({"meetingTitle": "Sprint Planning"}, {"transcript": TRANSCRIPT}, {"transcript": "", "meetingTitle": "x"}):
        resp = client.post("/ai/generate-post", json=body, headers=auth)
        assert resp.status_code == 400
    assert fake_llm.calls == []
    assert count_rows(models.Post) == 0


def test_other_users_automation_is_404(client, user, other_user, make_automation, fake_llm):
    automation = make_automation(user.id)
    resp = client.post("/ai/generate-post", json={
        "transcript": TRANSCRIPT, "meetingTitle": "Sprint Planning", "automationId": automation.id,
    }, headers=auth_for(other_user.id))
    assert resp.status_code == 404
    assert fake_llm.calls == []


def test_llm_failure_is_502_and_stores_nothing(client, auth, fake_llm, count_rows):
    fake_llm.fail_on = "analysis"
    resp = client.post("/ai/generate-post", json={"transcript": TRANSCRIPT, "meetingTitle": "Sprint Planning"},
                       headers=auth)
    assert resp.status_code == 502
    assert resp.json()["code"] == "EXTERNAL_SERVICE_ERROR"
    assert count_rows(models.Post) == 0


def test_generate_email(client, auth, fake_llm):
    resp = client.post("/ai/generate-email", json={"transcript": TRANSCRIPT, "meetingTitle": "Sprint Planning"},
                       headers=auth)
    assert resp.status_code == 200
    assert resp.json()["email"].startswith("Hi team")
    call = fake_llm.calls[0]
    assert call["max_tokens"] == 500 and call["temperature"] == 0.7


def test_generate_email_requires_fields(client, auth, fake_llm):
    assert client.post("/ai/generate-email", json={"transcript": TRANSCRIPT}, headers=auth).status_code == 400


def test_empty_email_is_502(client, auth, fake_llm):
    fake_llm.email = "   "
    resp = client.post("/ai/generate-email", json={"transcript": TRANSCRIPT, "meetingTitle": "x"}, headers=auth)
    assert resp.status_code == 502


def test_ai_routes_require_auth(client, fake_llm):
    assert client.post("/ai/generate-post", json={"transcript": TRANSCRIPT, "meetingTitle": "x"}).status_code == 401
    assert fake_llm.calls == []
