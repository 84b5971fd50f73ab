"""
Ordered, bounded selector waits against a Playwright page.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from app.scraping.config.models import WaitStrategyConfig
from app.scraping.logging_utils import error_summary, log_event

logger = logging.getLogger(__name__)


async def first_matching_strategy(
    page: Page,
    strategies: Sequence[WaitStrategyConfig],
    *,
    default_timeout_ms: int,
) -> WaitStrategyConfig | None:
    """
    Await each strategy's selector in order; the first that appears wins.

    Every strategy gets its own timeout, so the total wait is bounded by the
    sum of the per-strategy timeouts. Returns None when nothing matched.
    """

    for strategy in strategies:
        timeout_ms = strategy.timeout_ms or default_timeout_ms
        try:
            await page.wait_for_selector(strategy.selector, timeout=timeout_ms)
        except PlaywrightError as exc:
            log_event(
                logger,
                logging.DEBUG,
                "wait_strategy_missed",
                strategy=strategy.name,
                timeout_ms=timeout_ms,
                error=error_summary(exc),
            )
            continue
        return strategy
    return None
