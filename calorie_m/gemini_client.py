"""Single-call Gemini generateContent client for food analysis."""

import logging
import time
from typing import Any, Dict, Optional

import requests

from calorie_m.config import GEMINI_API_BASE, GEMINI_MODEL, GEMINI_TIMEOUT_S, get_api_key
from calorie_m.errors import ConfigurationError, MalformedResponseError, NetworkError
from calorie_m.models import AnalysisRequest, ImagePayload
from calorie_m.prompts import ANALYSIS_PROMPT
from calorie_m.readiness import is_valid_credential

logger = logging.getLogger(__name__)


def extract_candidate_text(payload: Any) -> str:
    """
    Return ``candidates[0].content.parts[0].text`` from a generateContent response.

    Raises MalformedResponseError when the nested structure or the text is missing.
    """
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedResponseError("No analysis text in API response") from e
    if not isinstance(text, str):
        raise MalformedResponseError("Candidate text is not a string")
    return text


class GeminiClient:
    def __init__(
        self,
        api_key: str,
        model: str = GEMINI_MODEL,
        base_url: str = GEMINI_API_BASE,
        timeout: float = GEMINI_TIMEOUT_S,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_request(self, payload: ImagePayload, prompt: str = ANALYSIS_PROMPT) -> AnalysisRequest:
        return AnalysisRequest(prompt=prompt, payload=payload)

    def generate(self, request: AnalysisRequest) -> str:
        """
        Issue exactly one generateContent call and return the model's raw text.

        No retries: NetworkError on transport failure or non-2xx status,
        MalformedResponseError when the body has no candidate text.
        """
        body: Dict[str, Any] = request.to_body()
        logger.info(
            "Sending %.1fkb image to model=%s",
            len(request.payload.data) / 1024,
            self.model,
        )

        t = time.time()
        try:
            resp = requests.post(
                self.endpoint,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Gemini request failed: %s", e)
            raise NetworkError(None, str(e)) from e

        elapsed_ms = round((time.time() - t) * 1000, 2)
        if not resp.ok:
            logger.error(
                "Gemini returned HTTP %s %s in %sms: %s",
                resp.status_code,
                resp.reason,
                elapsed_ms,
                resp.text[:500],
            )
            raise NetworkError(resp.status_code, resp.reason or "")

        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponseError("API response is not JSON") from e

        text = extract_candidate_text(data)
        logger.info("Gemini response received in %sms, length: %s", elapsed_ms, len(text))
        return text

    def analyze(self, payload: ImagePayload) -> str:
        return self.generate(self.build_request(payload))


def make_client(api_key: Optional[str] = None) -> GeminiClient:
    """Build a client from configuration; the key is read live unless given."""
    key = api_key if api_key is not None else get_api_key()
    if not is_valid_credential(key):
        raise ConfigurationError("GEMINI_API_KEY is not set")
    return GeminiClient(api_key=key.strip())
