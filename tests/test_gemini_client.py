import pytest
import requests

from calorie_m.errors import ConfigurationError, MalformedResponseError, NetworkError
from calorie_m.gemini_client import GeminiClient, extract_candidate_text, make_client
from calorie_m.models import ImagePayload
from calorie_m.prompts import ANALYSIS_PROMPT

from conftest import FakeResponse, gemini_reply

PAYLOAD = ImagePayload(data="QUJDRA==", mime_type="image/jpeg", width=2, height=2)


def _client():
    return GeminiClient(api_key="test-key", model="gemini-test", base_url="https://api.example/v1beta/")


def test_request_shape(fake_post):
    post = fake_post(FakeResponse(payload=gemini_reply("{}")))

    assert _client().analyze(PAYLOAD) == "{}"

    assert len(post.calls) == 1
    url, kwargs = post.calls[0]
    assert url == "https://api.example/v1beta/models/gemini-test:generateContent"
    assert kwargs["params"] == {"key": "test-key"}
    parts = kwargs["json"]["contents"][0]["parts"]
    assert parts[0] == {"text": ANALYSIS_PROMPT}
    assert parts[1] == {"inline_data": {"mime_type": "image/jpeg", "data": "QUJDRA=="}}
    assert kwargs["timeout"] > 0


def test_prompt_describes_expected_json_shape():
    for key in ("foods", "totalCalories", "calculationProcess", "exercises", "portion", "duration"):
        assert key in ANALYSIS_PROMPT


def test_http_500_raises_network_error(fake_post):
    post = fake_post(FakeResponse(status_code=500, payload={"error": "boom"}, reason="Internal Server Error"))

    with pytest.raises(NetworkError) as exc_info:
        _client().analyze(PAYLOAD)

    assert exc_info.value.status_code == 500
    assert exc_info.value.reason == "Internal Server Error"
    assert "500" in str(exc_info.value)
    assert len(post.calls) == 1


def test_transport_failure_raises_network_error(fake_post):
    post = fake_post(requests.ConnectionError("connection refused"))

    with pytest.raises(NetworkError) as exc_info:
        _client().analyze(PAYLOAD)

    assert exc_info.value.status_code is None
    assert len(post.calls) == 1


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"candidates": []},
        {"candidates": [{}]},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"inline_data": {}}]}}]},
        {"candidates": [{"content": {"parts": [{"text": None}]}}]},
    ],
)
def test_missing_candidate_text_is_malformed(fake_post, body):
    fake_post(FakeResponse(payload=body))

    with pytest.raises(MalformedResponseError):
        _client().analyze(PAYLOAD)


def test_non_json_body_is_malformed(fake_post):
    fake_post(FakeResponse(payload=None, text="<html>oops</html>"))

    with pytest.raises(MalformedResponseError):
        _client().analyze(PAYLOAD)


def test_extract_candidate_text():
    assert extract_candidate_text(gemini_reply("hello")) == "hello"


def test_make_client_requires_real_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "YOUR_API_KEY_HERE")
    with pytest.raises(ConfigurationError):
        make_client()

    monkeypatch.delenv("GEMINI_API_KEY")
    with pytest.raises(ConfigurationError):
        make_client()

    monkeypatch.setenv("GEMINI_API_KEY", " live-key ")
    assert make_client().api_key == "live-key"
