import json
from io import BytesIO

import pytest
from PIL import Image

KIMBAP_TEXT = (
    "```json\n"
    + json.dumps(
        {
            "foods": [{"name": "김밥", "calories": 350, "portion": "1줄"}],
            "totalCalories": 350,
            "calculationProcess": ["표준 김밥 기준"],
            "exercises": [{"name": "걷기", "duration": "40분", "type": "유산소"}],
        },
        ensure_ascii=False,
    )
    + "\n```"
)


def image_bytes(width, height, fmt="JPEG", mode="RGB"):
    buf = BytesIO()
    color = (255, 128, 0, 128) if mode == "RGBA" else "orange"
    Image.new(mode, (width, height), color=color).save(buf, format=fmt)
    return buf.getvalue()


def gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, reason="OK", text=None):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload, ensure_ascii=False)

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakePost:
    """Stands in for requests.post and records every call."""

    def __init__(self, response):
        self.response = response
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@pytest.fixture
def fake_post(monkeypatch):
    def install(response):
        fake = FakePost(response)
        monkeypatch.setattr("calorie_m.gemini_client.requests.post", fake)
        return fake

    return install


@pytest.fixture
def kimbap_text():
    return KIMBAP_TEXT
