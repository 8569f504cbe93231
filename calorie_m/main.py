"""Main FastAPI application."""

import asyncio
import logging
import sys
from typing import Awaitable, Callable, Optional

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from calorie_m.config import CORS_ORIGINS, DEBUG_MODE, GEMINI_MODEL, get_api_key
from calorie_m.errors import (
    AnalysisError,
    ConfigurationError,
    MalformedResponseError,
    NetworkError,
    NoImageError,
    ValidationError,
)
from calorie_m.gemini_client import GeminiClient
from calorie_m.image_preprocess import validate_upload
from calorie_m.presentation import GENERIC_MESSAGE, render_error, render_result, to_clipboard_text
from calorie_m.readiness import is_valid_credential, wait_for_credential
from calorie_m.services import analyze, stage_image
from calorie_m.session import AnalysisSession

logging.basicConfig(
    level=logging.INFO,
    stream=sys.stdout,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 422,
    NoImageError: 409,
    ConfigurationError: 503,
    NetworkError: 502,
    MalformedResponseError: 502,
}


def _status_for(error: AnalysisError) -> int:
    for cls, status in ERROR_STATUS.items():
        if isinstance(error, cls):
            return status
    return 500


def _render(error: AnalysisError, request: Request) -> str:
    return render_error(
        error,
        debug=DEBUG_MODE,
        user_agent=request.headers.get("user-agent"),
        credential_present=is_valid_credential(get_api_key()),
        model=GEMINI_MODEL,
    )


def create_app(
    session: Optional[AnalysisSession] = None,
    client: Optional[GeminiClient] = None,
    wait_ready: Callable[[], Awaitable[bool]] = wait_for_credential,
) -> FastAPI:
    """
    Build the app around one AnalysisSession.

    ``client`` and ``wait_ready`` default to the configured Gemini client and
    the polling readiness gate.
    """
    app = FastAPI()
    app.state.session = session or AnalysisSession()
    app.state.client = client
    app.state.wait_ready = wait_ready

    # -----------------------------------
    # CORS
    # -----------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AnalysisError)
    async def analysis_error_handler(request: Request, exc: AnalysisError):
        logger.warning("Request failed with %s: %s", exc.code, exc.message)
        return JSONResponse(
            status_code=_status_for(exc),
            content={"error": exc.code, "message": _render(exc, request)},
        )

    # -----------------------------------
    # Tech endpoints
    # -----------------------------------

    @app.get("/health")
    def health():
        return {"status": "ok", "credential_present": is_valid_credential(get_api_key())}

    @app.get("/state")
    def state(request: Request):
        current = app.state.session
        snapshot = current.snapshot()
        if current.error is not None:
            snapshot["message"] = _render(current.error, request)
        return snapshot

    # -----------------------------------
    # Image → analysis flow
    # -----------------------------------

    @app.post("/image")
    async def upload_image(image: UploadFile = File(None)):
        if not image:
            raise HTTPException(422, "Image field is required")

        logger.info(f"[PIPELINE] Received image: {image.filename} ({image.content_type})")
        # Declared size and type, checked before the body is read.
        if image.size is not None:
            try:
                validate_upload(image.size, image.content_type)
            except ValidationError as e:
                app.state.session.show_error(e)
                raise

        content = await image.read()
        payload = await asyncio.to_thread(
            stage_image,
            app.state.session,
            content,
            image.content_type,
        )
        return {
            "state": app.state.session.state.value,
            "width": payload.width,
            "height": payload.height,
            "payload_kb": round(len(payload.data) / 1024, 1),
        }

    @app.post("/analyze")
    async def analyze_image():
        current = app.state.session
        try:
            result = await analyze(current, app.state.client, app.state.wait_ready)
        except AnalysisError:
            raise
        except Exception:
            logging.exception("Error in /analyze")
            return JSONResponse(
                status_code=500,
                content={"error": AnalysisError.code, "message": GENERIC_MESSAGE},
            )

        if result is None:
            # Image replaced or session reset while waiting; nothing to report.
            return {"state": current.state.value, "result": None}
        return {"state": current.state.value, "result": render_result(result)}

    @app.get("/result")
    def get_result():
        result = app.state.session.result
        if result is None:
            raise HTTPException(404, "No analysis result")
        return render_result(result)

    @app.get("/result/text", response_class=PlainTextResponse)
    def get_result_text():
        result = app.state.session.result
        if result is None:
            raise HTTPException(404, "No analysis result")
        return to_clipboard_text(result)

    @app.post("/reset")
    def reset():
        app.state.session.reset()
        return {"state": app.state.session.state.value}

    logger.info(
        "App initialized (credential_present=%s, model=%s)",
        is_valid_credential(get_api_key()),
        GEMINI_MODEL,
    )
    return app


app = create_app()
