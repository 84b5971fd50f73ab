"""
Adaptive pacing for browser-driven scraping.
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
from collections.abc import Awaitable, Callable, Iterable

from app.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class DelayPolicy:
    """
    Computes jittered waits and escalates them after rate-limit signals.

    A delay for ``base_ms`` is drawn uniformly from
    ``[base_ms * (1 - jitter_ratio), base_ms * (1 + jitter_ratio)]`` and
    multiplied by ``escalation_factor`` while the most recently observed page
    showed throttling or challenge text. Independently of signals, every
    ``batch_size`` processed targets trigger a longer batch pause.
    """

    def __init__(
        self,
        *,
        rate_limit_phrases: Iterable[str],
        base_delay_ms: int = 2000,
        jitter_ratio: float = 0.5,
        escalation_factor: float = 3.0,
        batch_size: int = 10,
        batch_pause_ms: int = 15000,
        rate_limit_wait_ms: int = 10000,
        rng: random.Random | None = None,
        sleeper: Sleeper | None = None,
    ) -> None:
        self._phrases = tuple(
            phrase.strip().lower() for phrase in rate_limit_phrases if phrase.strip()
        )
        self.base_delay_ms = max(0, base_delay_ms)
        self.jitter_ratio = min(0.9, max(0.0, jitter_ratio))
        self.escalation_factor = max(1.0, escalation_factor)
        self.batch_size = max(1, batch_size)
        self.batch_pause_ms = max(0, batch_pause_ms)
        self.rate_limit_wait_ms = max(0, rate_limit_wait_ms)
        self._rng = rng or random.Random()
        self._sleeper = sleeper or asyncio.sleep
        self._rate_limited = False

    @property
    def rate_limited(self) -> bool:
        return self._rate_limited

    def is_rate_limited(self, page_text: str | None) -> bool:
        if not page_text:
            return False
        lowered = page_text.lower()
        return any(phrase in lowered for phrase in self._phrases)

    def observe(self, page_text: str | None) -> bool:
        """
        Record whether the latest rendered page carried rate-limit signals.
        """

        self._rate_limited = self.is_rate_limited(page_text)
        if self._rate_limited:
            log_event(logger, logging.WARNING, "rate_limit_signal_detected")
        return self._rate_limited

    def _range(self, base_ms: int, rate_limited: bool | None) -> tuple[float, float]:
        if rate_limited is None:
            rate_limited = self._rate_limited
        factor = self.escalation_factor if rate_limited else 1.0
        base = max(0, base_ms)
        return (
            base * (1.0 - self.jitter_ratio) * factor,
            base * (1.0 + self.jitter_ratio) * factor,
        )

    def delay_bounds(self, base_ms: int, rate_limited: bool | None = None) -> tuple[int, int]:
        low, high = self._range(base_ms, rate_limited)
        return math.floor(low), math.ceil(high)

    def compute_delay(self, base_ms: int, rate_limited: bool | None = None) -> int:
        low, high = self._range(base_ms, rate_limited)
        return int(round(self._rng.uniform(low, high)))

    def is_batch_boundary(self, processed_count: int) -> bool:
        return processed_count > 0 and processed_count % self.batch_size == 0

    async def pause_after_target(self, processed_count: int) -> int:
        """
        Sleep between two targets and return the waited milliseconds.
        """

        delay_ms = self.compute_delay(self.base_delay_ms)
        if self.is_batch_boundary(processed_count):
            delay_ms = max(delay_ms, self.compute_delay(self.batch_pause_ms))
            log_event(
                logger,
                logging.INFO,
                "batch_pause",
                processed=processed_count,
                delay_ms=delay_ms,
            )
        await self.sleep(delay_ms)
        return delay_ms

    async def extended_wait(self) -> int:
        await self.sleep(self.rate_limit_wait_ms)
        return self.rate_limit_wait_ms

    async def sleep(self, delay_ms: int | float) -> None:
        if delay_ms <= 0:
            return
        await self._sleeper(delay_ms / 1000.0)
