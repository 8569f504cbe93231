"""Analysis orchestration: staged image → readiness gate → Gemini → parser."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from calorie_m.errors import AnalysisError, ConfigurationError, NoImageError
from calorie_m.gemini_client import GeminiClient, make_client
from calorie_m.image_preprocess import normalize_image
from calorie_m.models import AnalysisResult, ImagePayload
from calorie_m.readiness import wait_for_credential
from calorie_m.result_parser import parse_analysis_result
from calorie_m.session import AnalysisSession

logger = logging.getLogger(__name__)


def stage_image(session: AnalysisSession, data: bytes, content_type: Optional[str]) -> ImagePayload:
    """Normalize an upload and make it the session's current image."""
    try:
        payload = normalize_image(data, content_type)
    except AnalysisError as e:
        session.show_error(e)
        raise
    session.stage(payload)
    return payload


async def analyze(
    session: AnalysisSession,
    client: Optional[GeminiClient] = None,
    wait_ready: Callable[[], Awaitable[bool]] = wait_for_credential,
) -> Optional[AnalysisResult]:
    """
    Run one analysis of the session's staged image.

    Raises NoImageError / ConfigurationError before any network call,
    NetworkError / MalformedResponseError from the call itself. A reply whose
    text cannot be parsed is not an error: it yields the fallback result.
    Returns None without calling the API when the image is replaced or the
    session is reset while waiting for the credential.
    """
    payload = session.payload
    staged = session.generation
    if payload is None:
        error = NoImageError("No staged image to analyze")
        session.show_error(error)
        raise error

    ready = await wait_ready()
    if not session.is_current(staged) or session.payload is not payload:
        logger.info("Session changed while waiting for credential, dropping analysis")
        return None

    if not ready:
        error = ConfigurationError("GEMINI_API_KEY is not set")
        session.show_error(error)
        raise error

    if client is None:
        try:
            client = make_client()
        except ConfigurationError as e:
            session.show_error(e)
            raise

    total_start = time.time()
    token = session.begin_analysis()
    logger.info("[PIPELINE] Starting analysis (token=%s, %sx%s)", token, payload.width, payload.height)

    try:
        text = await asyncio.to_thread(client.analyze, payload)
    except AnalysisError as e:
        session.fail(token, e)
        raise
    except Exception as e:
        logger.exception("Unexpected error during analysis")
        session.fail(token, AnalysisError(str(e)))
        raise

    result = parse_analysis_result(text)
    session.complete(token, result)
    logger.info(
        "[PIPELINE] Analysis completed in %sms, fallback=%s",
        round((time.time() - total_start) * 1000, 2),
        result.fallback,
    )
    return result
