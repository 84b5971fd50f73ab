"""
Shared fixtures and in-memory Playwright fakes.

The fakes implement only the Page / ElementHandle calls the pipeline makes.
Selector matching runs on the current HTML through BeautifulSoup, so tests
describe pages as plain markup.
"""

from __future__ import annotations

import re
from typing import Any

import pytest
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from app.scraping.config import ProfileScrapingSettings, SelectorConfig, load_selector_config
from app.scraping.rate_limiter import DelayPolicy

BASE_URL = "https://www.linkedin.com"
EMPTY_HTML = "<html><body></body></html>"


def _select_one(html: str, selector: str) -> Any:
    soup = BeautifulSoup(html, "html.parser")
    try:
        return soup.select_one(selector)
    except Exception:  # playwright-only pseudo classes
        return None


def search_page_html(slugs: list[str], *, has_next: bool = True) -> str:
    links = "".join(
        f'<li class="reusable-search__result-container">'
        f'<a href="{BASE_URL}/in/{slug}/?trk=search">{slug}</a></li>'
        for slug in slugs
    )
    disabled = "" if has_next else " disabled"
    return (
        "<html><body>"
        f'<div class="search-results-container"><ul>{links}</ul></div>'
        '<div class="artdeco-pagination">'
        '<button class="artdeco-pagination__button--next artdeco-button--tertiary" '
        f'aria-label="Next"{disabled}><span class="artdeco-button__text">Next</span></button>'
        "</div></body></html>"
    )


class FakeElement:
    def __init__(self, page: "FakePage", node: Any) -> None:
        self._page = page
        self._node = node

    async def is_visible(self) -> bool:
        return True

    async def is_enabled(self) -> bool:
        return not self._node.has_attr("disabled")

    async def get_attribute(self, name: str) -> str | None:
        value = self._node.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    async def inner_text(self) -> str:
        return self._node.get_text(" ", strip=True)

    async def scroll_into_view_if_needed(self) -> None:
        return None

    async def click(self, force: bool = False) -> None:
        self._page.clicks += 1
        self._page.next_search_page()


class FakePage:
    """
    Minimal stand-in for ``playwright.async_api.Page``.
    """

    def __init__(
        self,
        *,
        search_pages: list[str] | None = None,
        profiles: dict[str, str] | None = None,
        fail_urls: set[str] | None = None,
        login_completes: bool = True,
        stuck_pagination: bool = False,
    ) -> None:
        self.search_pages = search_pages or []
        self.profiles = profiles or {}
        self.fail_urls = fail_urls or set()
        self.login_completes = login_completes
        self.stuck_pagination = stuck_pagination
        self.url = "about:blank"
        self.html = EMPTY_HTML
        self.visited: list[str] = []
        self.scripts: list[str] = []
        self.clicks = 0
        self._search_index = 0

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.visited.append(url)
        if url in self.fail_urls:
            raise PlaywrightError(f"net::ERR_CONNECTION_RESET at {url}")
        self.url = url
        if "/search/results/" in url and self.search_pages:
            self._search_index = 0
            self.html = self.search_pages[0]
        else:
            self.html = self.profiles.get(url, EMPTY_HTML)

    def next_search_page(self) -> None:
        if self.stuck_pagination or self._search_index + 1 >= len(self.search_pages):
            return
        self._search_index += 1
        self.html = self.search_pages[self._search_index]
        base = re.sub(r"&page=\d+", "", self.url)
        self.url = f"{base}&page={self._search_index + 1}"

    async def content(self) -> str:
        return self.html

    async def inner_text(self, selector: str, **kwargs: Any) -> str:
        return BeautifulSoup(self.html, "html.parser").get_text(" ", strip=True)

    async def evaluate(self, script: str) -> None:
        self.scripts.append(script)

    async def wait_for_selector(self, selector: str, **kwargs: Any) -> FakeElement:
        node = _select_one(self.html, selector)
        if node is None:
            raise PlaywrightTimeoutError(f"Timeout {kwargs.get('timeout')}ms waiting for {selector}")
        return FakeElement(self, node)

    async def query_selector(self, selector: str) -> FakeElement | None:
        node = _select_one(self.html, selector)
        return FakeElement(self, node) if node is not None else None

    async def wait_for_url(self, pattern: Any, **kwargs: Any) -> None:
        if isinstance(pattern, re.Pattern):
            if pattern.search(self.url):
                return
            raise PlaywrightTimeoutError(f"Timeout waiting for url {pattern.pattern}")
        if self.login_completes:
            self.url = f"{BASE_URL}/feed/"
            return
        raise PlaywrightTimeoutError(f"Timeout waiting for url {pattern}")


class FakeBrowserHandle:
    def __init__(self, page: FakePage, *, fail_on_close: bool = False) -> None:
        self.page = page
        self.closed = False
        self.fail_on_close = fail_on_close

    async def close(self) -> None:
        self.closed = True
        if self.fail_on_close:
            raise RuntimeError("browser already gone")


class FakeLauncher:
    def __init__(self, page_factory: Any = None, *, fail_on_close: bool = False) -> None:
        self._page_factory = page_factory or (lambda: FakePage())
        self._fail_on_close = fail_on_close
        self.handles: list[FakeBrowserHandle] = []
        self.launched_browsers: list[str] = []

    async def launch(self, browser_name: str) -> FakeBrowserHandle:
        self.launched_browsers.append(browser_name)
        handle = FakeBrowserHandle(self._page_factory(), fail_on_close=self._fail_on_close)
        self.handles.append(handle)
        return handle


class RecordingSleeper:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def settings() -> ProfileScrapingSettings:
    return ProfileScrapingSettings(
        base_url=BASE_URL,
        login_url=f"{BASE_URL}/login",
        authenticated_url_pattern="**/feed/**",
        selector_config_path="app/scraping/config/selectors.json",
        default_browser="chromium",
        headless=True,
        slow_mo_ms=0,
        user_agent=None,
        login_timeout_seconds=10.0,
        navigation_timeout_ms=1000,
        strategy_timeout_ms=250,
        search_marker_timeout_ms=250,
        pagination_wait_ms=500,
        results_settle_ms=0,
        profile_settle_ms=0,
        recovery_wait_ms=0,
        base_delay_ms=0,
        jitter_ratio=0.5,
        escalation_factor=3.0,
        batch_size=10,
        batch_pause_ms=0,
        rate_limit_wait_ms=10000,
        min_page_text_length=200,
        default_target_count=10,
        max_target_count=50,
        max_search_pages=20,
    )


@pytest.fixture()
def selectors() -> SelectorConfig:
    return load_selector_config(config_path="app/scraping/config/selectors.json")


@pytest.fixture()
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture()
def delays(selectors: SelectorConfig, sleeper: RecordingSleeper) -> DelayPolicy:
    return DelayPolicy(
        rate_limit_phrases=selectors.rate_limit_phrases,
        base_delay_ms=0,
        batch_pause_ms=0,
        rate_limit_wait_ms=10000,
        sleeper=sleeper,
    )
