"""
Lifecycle of authenticated browser sessions keyed by opaque ids.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from app.scraping.config.models import ProfileScrapingSettings
from app.scraping.errors import (
    LoginPageNotLoadedError,
    LoginTimeoutError,
    SessionNotFoundError,
    UnsupportedBrowserError,
)
from app.scraping.logging_utils import error_summary, log_event

logger = logging.getLogger(__name__)

SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")
CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


class LaunchedBrowser(Protocol):
    page: Page

    async def close(self) -> None: ...


class BrowserLauncher(Protocol):
    async def launch(self, browser_name: str) -> LaunchedBrowser: ...


@dataclass
class PlaywrightBrowser:
    """
    One browser process with a single context and page.
    """

    playwright: Playwright
    browser: Browser
    context: BrowserContext
    page: Page

    async def close(self) -> None:
        try:
            await self.context.close()
            await self.browser.close()
        finally:
            await self.playwright.stop()


class PlaywrightLauncher:
    """
    Launches a visible browser so the operator can log in by hand.
    """

    def __init__(self, settings: ProfileScrapingSettings) -> None:
        self._settings = settings

    async def launch(self, browser_name: str) -> PlaywrightBrowser:
        playwright = await async_playwright().start()
        try:
            browser_type = getattr(playwright, browser_name)
            launch_kwargs: dict[str, Any] = {
                "headless": self._settings.headless,
                "slow_mo": self._settings.slow_mo_ms,
            }
            if browser_name == "chromium":
                launch_kwargs["args"] = CHROMIUM_ARGS
            browser = await browser_type.launch(**launch_kwargs)

            context_kwargs: dict[str, Any] = {"locale": "en-US"}
            if self._settings.user_agent:
                context_kwargs["user_agent"] = self._settings.user_agent
            context = await browser.new_context(**context_kwargs)
            context.set_default_timeout(self._settings.navigation_timeout_ms)
            page = await context.new_page()
        except BaseException:
            await playwright.stop()
            raise
        return PlaywrightBrowser(playwright=playwright, browser=browser, context=context, page=page)


@dataclass
class BrowserSession:
    session_id: str
    browser_name: str
    handle: LaunchedBrowser
    authenticated: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    # held by a scrape job for its whole run; one page cannot serve two jobs
    job_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    @property
    def busy(self) -> bool:
        return self.job_lock.locked()

    @property
    def page(self) -> Page:
        return self.handle.page


class SessionManager:
    """
    Owns every live browser session; at most one handle per session id.

    Registry reads and writes are serialized by an asyncio lock. The
    potentially long login wait happens outside the lock so other sessions
    stay usable meanwhile.
    """

    def __init__(
        self,
        *,
        settings: ProfileScrapingSettings,
        launcher: BrowserLauncher | None = None,
    ) -> None:
        self._settings = settings
        self._launcher = launcher or PlaywrightLauncher(settings)
        self._sessions: dict[str, BrowserSession] = {}
        self._lock = asyncio.Lock()

    async def start_session(
        self,
        *,
        browser_name: str | None = None,
        session_id: str | None = None,
    ) -> BrowserSession:
        """
        Launch a browser, open the login page and block until the operator
        reaches the authenticated area, or raise LoginTimeoutError.
        """

        name = (browser_name or self._settings.default_browser).strip().lower()
        if name not in SUPPORTED_BROWSERS:
            raise UnsupportedBrowserError(name, list(SUPPORTED_BROWSERS))
        session_id = (session_id or "").strip() or uuid.uuid4().hex

        await self.close_session(session_id)

        handle = await self._launcher.launch(name)
        session = BrowserSession(session_id=session_id, browser_name=name, handle=handle)
        log_event(logger, logging.INFO, "session_launched", session_id=session_id, browser=name)

        try:
            await self._await_login(session)
        except BaseException:
            await self._teardown(session)
            raise

        async with self._lock:
            previous = self._sessions.get(session_id)
            self._sessions[session_id] = session
        if previous is not None and previous is not session:
            await self._teardown(previous)

        log_event(logger, logging.INFO, "session_authenticated", session_id=session_id)
        return session

    async def _await_login(self, session: BrowserSession) -> None:
        page = session.page
        timeout_seconds = self._settings.login_timeout_seconds
        login_url = self._settings.login_url
        try:
            await page.goto(login_url, timeout=self._settings.navigation_timeout_ms)
        except PlaywrightError as exc:
            log_event(
                logger,
                logging.ERROR,
                "login_page_unreachable",
                session_id=session.session_id,
                error=error_summary(exc),
            )
            raise LoginPageNotLoadedError(login_url, error_summary(exc)) from exc

        log_event(
            logger,
            logging.INFO,
            "waiting_for_manual_login",
            session_id=session.session_id,
            timeout_seconds=timeout_seconds,
        )
        try:
            await page.wait_for_url(
                self._settings.authenticated_url_pattern,
                timeout=timeout_seconds * 1000,
            )
        except PlaywrightError as exc:
            log_event(
                logger,
                logging.ERROR,
                "login_timeout",
                session_id=session.session_id,
                error=error_summary(exc),
            )
            raise LoginTimeoutError(timeout_seconds) from exc
        session.authenticated = True

    async def get_session(self, session_id: str) -> BrowserSession:
        async with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def close_session(self, session_id: str) -> None:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return
        try:
            await self._teardown(session)
        except PlaywrightError as exc:
            # the operator may already have closed the window
            log_event(
                logger,
                logging.WARNING,
                "session_teardown_failed",
                session_id=session_id,
                error=error_summary(exc),
            )
            return
        log_event(logger, logging.INFO, "session_closed", session_id=session_id)

    async def close_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            try:
                await self._teardown(session)
            except Exception as exc:
                log_event(
                    logger,
                    logging.ERROR,
                    "session_teardown_failed",
                    session_id=session.session_id,
                    error=str(exc),
                )

    async def active_session_ids(self) -> list[str]:
        async with self._lock:
            return sorted(self._sessions)

    @staticmethod
    async def _teardown(session: BrowserSession) -> None:
        session.authenticated = False
        await session.handle.close()
