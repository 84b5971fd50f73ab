"""
Job-level failures raised by the profile scraping pipeline.

Per-profile problems are never raised; they are folded into
``ExtractionRecord`` values with a failure code from ``app.failure_codes``.
"""

from __future__ import annotations


class ProfileScrapingError(Exception):
    """
    Base class for failures that abort a whole request or job.
    """


class SessionNotFoundError(ProfileScrapingError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class LoginTimeoutError(ProfileScrapingError):
    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(
            f"Login was not completed within {timeout_seconds:g} seconds."
        )
        self.timeout_seconds = timeout_seconds


class SearchNotLoadedError(ProfileScrapingError):
    def __init__(self, query: str) -> None:
        super().__init__(f"Search results did not load for query '{query}'.")
        self.query = query


class UnsupportedBrowserError(ProfileScrapingError):
    def __init__(self, browser_name: str, allowed: list[str]) -> None:
        super().__init__(
            f"Unsupported browser '{browser_name}'. Allowed values: {allowed}."
        )
        self.browser_name = browser_name


class LoginPageNotLoadedError(ProfileScrapingError):
    def __init__(self, login_url: str, detail: str) -> None:
        super().__init__(f"Login page could not be opened at {login_url}: {detail}")
        self.login_url = login_url


class SessionBusyError(ProfileScrapingError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} is already running a scrape job.")
        self.session_id = session_id
