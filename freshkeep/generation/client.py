"""Rate-limit-aware retrying wrapper around a text provider."""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime
from typing import TYPE_CHECKING, Awaitable, Callable

if TYPE_CHECKING:
    from ..config import FreshkeepConfig
    from . import TextProvider

logger = logging.getLogger(__name__)


def seconds_until_next_minute(now: datetime) -> float:
    """Return the time left until the next wall-clock minute boundary."""
    return 60.0 - now.second - now.microsecond / 1_000_000


class GenerationClient:
    """Retry text generation, pacing retries to the provider's per-minute window.

    A failed attempt is followed by a sleep until the top of the next minute
    plus a random jitter, so concurrent callers throttled in the same window
    don't all retry at the same instant. Only the calling task is suspended.

    ``generate`` never raises for provider failures; it returns None once all
    attempts are used up. Cancelling the calling task aborts the loop.
    """

    def __init__(
        self,
        provider: TextProvider,
        max_attempts: int = 3,
        jitter_min: float = 1.0,
        jitter_max: float = 11.0,
        timeout: float | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = datetime.now,
        rng: random.Random | None = None,
    ) -> None:
        self._provider = provider
        self._max_attempts = max_attempts
        self._jitter_min = jitter_min
        self._jitter_max = jitter_max
        self._timeout = timeout
        self._sleep = sleep
        self._clock = clock
        self._rng = rng or random.Random()

    @classmethod
    def from_config(cls, config: FreshkeepConfig) -> GenerationClient:
        from . import create_provider

        gen = config.generation
        return cls(
            create_provider(config),
            max_attempts=gen.max_attempts,
            jitter_min=gen.jitter_min,
            jitter_max=gen.jitter_max,
            timeout=gen.timeout,
        )

    def backoff_delay(self) -> float:
        """Seconds to wait before the next attempt."""
        jitter = self._rng.uniform(self._jitter_min, self._jitter_max)
        return seconds_until_next_minute(self._clock()) + jitter

    async def generate(
        self,
        prompt: str,
        max_attempts: int | None = None,
        timeout: float | None = None,
    ) -> str | None:
        """Generate text for a prompt.

        Args:
            prompt: The prompt to send.
            max_attempts: Overrides the configured attempt cap.
            timeout: Overall deadline in seconds for all attempts and sleeps.

        Returns:
            The completion text, or None if every attempt failed or the
            deadline passed.
        """
        attempts = max_attempts if max_attempts is not None else self._max_attempts
        timeout = timeout if timeout is not None else self._timeout

        if timeout is None:
            return await self._generate(prompt, attempts)
        try:
            return await asyncio.wait_for(self._generate(prompt, attempts), timeout)
        except asyncio.TimeoutError:
            logger.error("Generation timed out after %.1f seconds", timeout)
            return None

    async def _generate(self, prompt: str, attempts: int) -> str | None:
        for attempt in range(1, attempts + 1):
            try:
                text = await self._provider.complete(prompt)
            except Exception as e:
                logger.warning(
                    "Generation attempt %d/%d failed: %s", attempt, attempts, e
                )
            else:
                if text and text.strip():
                    if attempt > 1:
                        logger.info("Generation succeeded on attempt %d", attempt)
                    return text
                logger.warning(
                    "Generation attempt %d/%d returned empty text", attempt, attempts
                )

            if attempt < attempts:
                delay = self.backoff_delay()
                logger.info("Retrying generation in %.1f seconds", delay)
                await self._sleep(delay)

        logger.error("Generation failed after %d attempts", attempts)
        return None
