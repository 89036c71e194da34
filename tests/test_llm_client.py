import httpx
import pytest

from meetpost.errors import ExternalServiceError
from meetpost.services.llm_client import LLMClient, clip_transcript


def _client(handler):
    llm = LLMClient(api_key="k", base_url="https://llm.test/v1")
    llm.client = httpx.Client(transport=httpx.MockTransport(handler))
    return llm


def test_complete_returns_first_choice():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"choices": [{"message": {"content": "  Hello  "}}]})

    assert _client(handler).complete("Hi") == "Hello"
    assert seen == {"url": "https://llm.test/v1/chat/completions", "auth": "Bearer k"}


def test_html_body_is_an_external_service_error():
    llm = _client(lambda request: httpx.Response(200, text="<html>gateway</html>"))
    with pytest.raises(ExternalServiceError) as exc:
        llm.complete("Hi")
    assert exc.value.status_code == 502
    assert "invalid JSON response" in exc.value.message


@pytest.mark.parametrize("body", [[1, 2], {"choices": ["oops"]}, {"choices": [{"message": "oops"}]}])
def test_unexpected_shape_is_an_external_service_error(body):
    llm = _client(lambda request: httpx.Response(200, json=body))
    with pytest.raises(ExternalServiceError):
        llm.complete("Hi")


def test_http_error_status_is_an_external_service_error():
    llm = _client(lambda request: httpx.Response(503, text="overloaded"))
    with pytest.raises(ExternalServiceError) as exc:
        llm.complete("Hi")
    assert "HTTP 503" in exc.value.message


def test_missing_key_fails_on_call(monkeypatch):
    from meetpost.config import settings
    monkeypatch.setattr(settings, "openai_api_key", "")
    llm = LLMClient()
    with pytest.raises(ExternalServiceError):
        llm.complete("Hi")
    llm.close()


def test_clip_transcript_warns_when_it_cuts(caplog):
    with caplog.at_level("WARNING", logger="meetpost.services.llm_client"):
        assert clip_transcript("a" * 50, max_chars=20) == "a" * 20
    assert "truncated from 50 to 20" in caplog.text


def test_clip_transcript_zero_sends_everything(caplog):
    with caplog.at_level("WARNING", logger="meetpost.services.llm_client"):
        assert clip_transcript("a" * 50, max_chars=0) == "a" * 50
        assert clip_transcript("short", max_chars=20) == "short"
    assert caplog.text == ""
