import json
import os
import re
import tempfile
from datetime import datetime, timedelta

from cryptography.fernet import Fernet

# settings are read at import time, so the environment goes first
_tmp = tempfile.mkdtemp(prefix="meetpost-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp, 'test.db')}"
os.environ["FERNET_KEY"] = Fernet.generate_key().decode()
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ["RECALL_API_KEY"] = "test-recall-key"
os.environ["SCHEDULER_ENABLED"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from meetpost.auth.session import create_session_token  # noqa: E402
from meetpost.db import crud  # noqa: E402
from meetpost.db.base import Base, SessionLocal, engine  # noqa: E402
from meetpost.deps import get_llm_client  # noqa: E402
from meetpost.main import app  # noqa: E402
from meetpost.rate_limit import limiter  # noqa: E402

DEFAULT_INSIGHTS = {
    "topics": ["sprint goals", "velocity"],
    "decisions": ["ship onboarding v2"],
    "actionItems": ["update the roadmap"],
    "valueDelivered": "a clear plan for the next two weeks",
}

DEFAULT_ANALYSIS = {
    "sentiment": "positive",
    "engagement": "medium",
    "readability": 70,
    "keywords": ["sprint"],
    "hashtags": ["#agile"],
    "estimatedReach": 40,
}

_TONE_RE = re.compile(r"^- Tone: (.+)$", re.M)
_POST_RE = re.compile(r"^\[(.+?)\] ", re.M)


class FakeLLM:
    """Scripted stand-in for LLMClient, routed on the prompt text.

    ``analysis_by_tone`` overrides the scoring reply per tone; set a value to
    a string to return it verbatim (e.g. non-JSON).
    """

    service = "OpenAI"

    def __init__(self):
        self.calls = []
        self.insights = json.dumps(DEFAULT_INSIGHTS)
        self.analysis_by_tone = {}
        self.posts_by_tone = {}
        self.email = "Hi team,\n\nThanks for joining today."
        self.fail_on = None

    def complete(self, prompt, model=None, temperature=0.7, max_tokens=300, **kwargs):
        kind = self._kind(prompt)
        self.calls.append({"kind": kind, "prompt": prompt, "model": model,
                           "temperature": temperature, "max_tokens": max_tokens})
        if self.fail_on == kind:
            from meetpost.errors import ExternalServiceError
            raise ExternalServiceError(self.service, "HTTP 500: boom")
        if kind == "insights":
            return self.insights
        if kind == "email":
            return self.email
        if kind == "post":
            tone = _TONE_RE.search(prompt).group(1)
            return self.posts_by_tone.get(tone, f"[{tone}] Great sprint planning session today. #agile")
        m = _POST_RE.search(prompt)
        tone = m.group(1) if m else "professional"
        reply = self.analysis_by_tone.get(tone, DEFAULT_ANALYSIS)
        return reply if isinstance(reply, str) else json.dumps(reply)

    def close(self):
        pass

    @staticmethod
    def _kind(prompt):
        if prompt.startswith("Analyze this meeting transcript"):
            return "insights"
        if prompt.startswith("Analyze this social media post"):
            return "analysis"
        if prompt.startswith("Based on the following meeting transcript"):
            return "email"
        return "post"

    def count(self, kind):
        return sum(1 for c in self.calls if c["kind"] == kind)


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    limiter.reset()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_llm():
    llm = FakeLLM()
    app.dependency_overrides[get_llm_client] = lambda: llm
    return llm


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def user(db):
    return crud.get_or_create_user(db, email="alice@example.com", name="Alice")


@pytest.fixture
def other_user(db):
    return crud.get_or_create_user(db, email="bob@example.com", name="Bob")


def auth_for(user_id):
    return {"Authorization": f"Bearer {create_session_token(user_id)}"}


@pytest.fixture
def auth(user):
    return auth_for(user.id)


@pytest.fixture
def make_meeting(db):
    def _make(user_id, minutes=30, status="scheduled", transcript=None, title="Sprint Planning", **extra):
        start = datetime(2024, 1, 15, 10, 0)
        return crud.create_meeting(db, user_id, {
            "title": title,
            "start_time": start,
            "end_time": start + timedelta(minutes=minutes),
            "platform": "zoom",
            "status": status,
            "transcript": transcript,
            **extra,
        })
    return _make


@pytest.fixture
def make_automation(db):
    def _make(user_id, **overrides):
        data = {
            "name": "LinkedIn recap",
            "platform": "linkedin",
            "description": "Summarize the meeting's value for a professional audience",
            "trigger_min_duration": 0,
        }
        data.update(overrides)
        return crud.create_automation(db, user_id, data)
    return _make


@pytest.fixture
def count_rows(db):
    def _count(model):
        db.expire_all()
        return db.query(model).count()
    return _count

