"""Per-user analysis session: the single image/result slot and its UI state."""

import logging
from typing import Optional

from calorie_m.errors import AnalysisError
from calorie_m.models import AnalysisResult, AppState, ImagePayload

logger = logging.getLogger(__name__)


class AnalysisSession:
    """
    Exactly one visible state at a time; every transition clears the others.

    ``generation`` moves forward whenever the staged image changes, the
    session is reset, or a new analysis starts. An analysis keeps the value
    it started with as its token; once the generation has moved on, its
    outcome is dropped instead of overwriting newer state.
    """

    def __init__(self):
        self.state = AppState.IDLE
        self.payload: Optional[ImagePayload] = None
        self.result: Optional[AnalysisResult] = None
        self.error: Optional[AnalysisError] = None
        self.generation = 0

    def _clear_visible(self):
        self.result = None
        self.error = None

    def stage(self, payload: ImagePayload):
        self._clear_visible()
        self.generation += 1
        self.payload = payload
        self.state = AppState.PREVIEW_READY

    def begin_analysis(self) -> int:
        self._clear_visible()
        self.generation += 1
        self.state = AppState.LOADING
        return self.generation

    def is_current(self, token: int) -> bool:
        return token == self.generation

    def complete(self, token: int, result: AnalysisResult) -> bool:
        if not self.is_current(token):
            logger.info("Dropping stale analysis result (token=%s, generation=%s)", token, self.generation)
            return False
        self._clear_visible()
        self.result = result
        self.state = AppState.RESULT_READY
        return True

    def fail(self, token: int, error: AnalysisError) -> bool:
        if not self.is_current(token):
            logger.info("Dropping stale analysis error (token=%s, generation=%s)", token, self.generation)
            return False
        self.show_error(error)
        return True

    def show_error(self, error: AnalysisError):
        self._clear_visible()
        self.error = error
        self.state = AppState.ERROR_SHOWN

    def reset(self):
        self._clear_visible()
        self.generation += 1
        self.payload = None
        self.state = AppState.IDLE

    def snapshot(self) -> dict:
        return {
            "state": self.state.value,
            "has_image": self.payload is not None,
            "has_result": self.result is not None,
            "error": self.error.code if self.error else None,
            "generation": self.generation,
        }
