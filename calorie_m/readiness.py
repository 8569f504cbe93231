"""Bounded wait for the Gemini credential to become available."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from calorie_m.config import (
    API_KEY_PLACEHOLDER,
    CREDENTIAL_POLL_ATTEMPTS,
    CREDENTIAL_POLL_INTERVAL_MS,
    get_api_key,
)

logger = logging.getLogger(__name__)


def is_valid_credential(value: Optional[str]) -> bool:
    if not value or not value.strip():
        return False
    return value.strip() != API_KEY_PLACEHOLDER


async def wait_for_credential(
    source: Callable[[], Optional[str]] = get_api_key,
    interval: float = CREDENTIAL_POLL_INTERVAL_MS / 1000,
    max_attempts: int = CREDENTIAL_POLL_ATTEMPTS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> bool:
    """
    Poll ``source`` until it yields a usable credential.

    The first check happens immediately; each later check follows ``interval``
    seconds of sleep. Returns False after ``max_attempts`` failed checks.
    """
    attempts = 0
    while True:
        if is_valid_credential(source()):
            if attempts:
                logger.info("Credential became available after %s checks", attempts + 1)
            return True

        attempts += 1
        if attempts >= max_attempts:
            logger.warning(
                "Credential not available after %s checks (%sms)",
                attempts,
                round(attempts * interval * 1000),
            )
            return False

        await sleep(interval)


class CredentialSignal:
    """
    One-shot readiness signal resolved by whoever loads configuration.

    ``wait`` gives the same bounded-wait contract as polling without a
    busy loop.
    """

    def __init__(self, value: Optional[str] = None):
        self._value: Optional[str] = None
        self._event = asyncio.Event()
        if value is not None:
            self.set(value)

    @property
    def value(self) -> Optional[str]:
        return self._value

    def is_set(self) -> bool:
        return self._event.is_set()

    def set(self, value: Optional[str]) -> bool:
        """Resolve the signal; placeholder or empty values are ignored."""
        if self._event.is_set() or not is_valid_credential(value):
            return False
        self._value = value.strip()
        self._event.set()
        logger.info("Credential signal resolved")
        return True

    async def wait(
        self,
        timeout: float = CREDENTIAL_POLL_INTERVAL_MS * CREDENTIAL_POLL_ATTEMPTS / 1000,
    ) -> bool:
        try:
            await asyncio.wait_for(self._event.wait(), timeout)
        except asyncio.TimeoutError:
            logger.warning("Credential signal not resolved within %ss", timeout)
            return False
        return True
