"""
Paginated search-result collection of profile URLs.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import quote_plus

from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError

from app.scraping.config.models import ProfileScrapingSettings, SelectorConfig
from app.scraping.errors import SearchNotLoadedError
from app.scraping.logging_utils import error_summary, log_event
from app.scraping.parsing import ProfileHTMLParser
from app.scraping.rate_limiter import DelayPolicy
from app.scraping.waits import first_matching_strategy

logger = logging.getLogger(__name__)

PAGE_NUMBER_REGEX = re.compile(r"[?&]page=(\d+)")


def page_number_from_url(url: str) -> int:
    match = PAGE_NUMBER_REGEX.search(url)
    return int(match.group(1)) if match else 1


class TargetCollector:
    """
    Walks search result pages and gathers unique profile URLs up to a quota.
    """

    def __init__(
        self,
        *,
        settings: ProfileScrapingSettings,
        selectors: SelectorConfig,
        delays: DelayPolicy,
        parser: type[ProfileHTMLParser] = ProfileHTMLParser,
    ) -> None:
        self._settings = settings
        self._selectors = selectors
        self._delays = delays
        self._parser = parser

    def search_url(self, query: str) -> str:
        return (
            f"{self._settings.base_url}/search/results/people/"
            f"?keywords={quote_plus(query.strip())}"
        )

    async def collect(self, page: Page, query: str, quota: int) -> list[str]:
        """
        Return up to ``quota`` unique profile URLs in discovery order.

        Raises SearchNotLoadedError when no result marker ever renders.
        Running out of pages early is normal and returns what was found.
        """

        if quota <= 0:
            return []

        await self._open_search(page, query)

        collected: dict[str, None] = {}
        page_index = 1
        while True:
            try:
                html = await page.content()
            except PlaywrightError as exc:
                log_event(
                    logger,
                    logging.WARNING,
                    "search_page_unreadable",
                    page_index=page_index,
                    error=error_summary(exc),
                )
                break
            links = self._parser.extract_profile_links(html=html, base_url=self._settings.base_url)
            new_on_page = 0
            for link in links:
                if link in collected:
                    continue
                collected[link] = None
                new_on_page += 1
                if len(collected) >= quota:
                    break

            log_event(
                logger,
                logging.INFO,
                "search_page_collected",
                page_index=page_index,
                links_on_page=len(links),
                new_on_page=new_on_page,
                total=len(collected),
                quota=quota,
            )
            if len(collected) >= quota:
                break
            if page_index >= self._settings.max_search_pages:
                log_event(logger, logging.WARNING, "search_page_limit_reached", pages=page_index)
                break
            if not await self.advance_page(page):
                log_event(logger, logging.INFO, "search_pages_exhausted", pages=page_index)
                break
            page_index += 1

        return list(collected)

    async def _open_search(self, page: Page, query: str) -> None:
        url = self.search_url(query)
        try:
            await page.goto(url, timeout=self._settings.navigation_timeout_ms)
        except PlaywrightError as exc:
            log_event(logger, logging.ERROR, "search_navigation_failed", url=url, error=error_summary(exc))
            raise SearchNotLoadedError(query) from exc

        marker = await first_matching_strategy(
            page,
            self._selectors.search_result_markers,
            default_timeout_ms=self._settings.search_marker_timeout_ms,
        )
        if marker is None:
            raise SearchNotLoadedError(query)

        log_event(logger, logging.INFO, "search_loaded", query=query, marker=marker.name)
        await self._delays.sleep(self._settings.results_settle_ms)

    async def advance_page(self, page: Page) -> bool:
        """
        Click the next-page control and confirm the page number moved forward.

        Returns False when there is no usable next control or the click did
        not advance the page number within the bounded wait.
        """

        try:
            await page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
            await self._delays.sleep(self._settings.results_settle_ms)
            await page.wait_for_selector(
                self._selectors.pagination_container,
                timeout=self._settings.search_marker_timeout_ms,
            )
        except PlaywrightError as exc:
            log_event(logger, logging.DEBUG, "pagination_unavailable", error=error_summary(exc))
            return False

        for selector in self._selectors.next_button_selectors:
            try:
                button = await page.query_selector(selector)
            except PlaywrightError:
                continue
            if button is None or not await self._is_clickable_next(button):
                continue

            before_url = page.url
            before_page = page_number_from_url(before_url)
            try:
                await button.scroll_into_view_if_needed()
                await self._delays.sleep(500)
                await self._click(button)
            except PlaywrightError as exc:
                log_event(logger, logging.WARNING, "pagination_click_failed", selector=selector, error=error_summary(exc))
                continue

            if await self._page_advanced(page, before_page):
                await self._delays.sleep(self._settings.results_settle_ms)
                return True

            if page.url != before_url:
                log_event(
                    logger,
                    logging.WARNING,
                    "pagination_ambiguous_navigation",
                    before_url=before_url,
                    after_url=page.url,
                )
            return False

        return False

    async def _is_clickable_next(self, button: ElementHandle) -> bool:
        try:
            if not await button.is_visible() or not await button.is_enabled():
                return False
            if (await button.get_attribute("aria-disabled") or "").lower() == "true":
                return False
            label = (await button.inner_text()).strip()
        except PlaywrightError:
            return False
        return label.lower() == self._selectors.next_button_label.lower()

    @staticmethod
    async def _click(button: ElementHandle) -> None:
        try:
            await button.click()
        except PlaywrightError:
            await button.click(force=True)

    async def _page_advanced(self, page: Page, before_page: int) -> bool:
        target = before_page + 1
        try:
            await page.wait_for_url(
                re.compile(rf"[?&]page={target}(?:&|$)"),
                timeout=self._settings.pagination_wait_ms,
            )
        except PlaywrightError:
            pass
        return page_number_from_url(page.url) > before_page
