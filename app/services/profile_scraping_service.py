"""
app/services/profile_scraping_service.py

Service orchestration for session-scoped profile scraping.
"""

from __future__ import annotations

import time
from functools import lru_cache
from pathlib import Path

from app.config import get_server_settings
from app.domain.profile_scraping import ProfileScrapeSummary
from app.scraping.config import (
    ProfileScrapingSettings,
    SelectorConfig,
    get_profile_scraping_settings,
    get_selector_config,
)
from app.scraping.engine import ProfileScrapingEngine
from app.scraping.session_manager import BrowserLauncher, SessionManager
from app.scraping.storage import ExcelRecordStorage

EXPORT_SUFFIX = ".xlsx"


def resolve_export_filename(filename: str | None) -> str:
    """
    Return a bare ``.xlsx`` file name, defaulting to a timestamped one.

    Raises ValueError for names carrying directory components.
    """

    if filename is None or not filename.strip():
        return f"linkedin_profiles_{int(time.time() * 1000)}{EXPORT_SUFFIX}"

    cleaned = filename.strip()
    if "/" in cleaned or "\\" in cleaned or cleaned in {".", ".."} or Path(cleaned).name != cleaned:
        raise ValueError(f"Invalid filename '{filename}': directory components are not allowed.")
    if not cleaned.lower().endswith(EXPORT_SUFFIX):
        cleaned = f"{cleaned}{EXPORT_SUFFIX}"
    return cleaned


class ProfileScrapingService:
    """
    Owns the session registry and runs scrape jobs against it.
    """

    def __init__(
        self,
        *,
        settings: ProfileScrapingSettings | None = None,
        selectors: SelectorConfig | None = None,
        downloads_dir: Path | None = None,
        launcher: BrowserLauncher | None = None,
    ) -> None:
        self._settings = settings or get_profile_scraping_settings()
        self._selectors = selectors or get_selector_config(self._settings.selector_config_path)
        self._downloads_dir = (downloads_dir or get_server_settings().downloads_dir).resolve()
        self.sessions = SessionManager(settings=self._settings, launcher=launcher)

    @property
    def downloads_dir(self) -> Path:
        return self._downloads_dir

    async def start_session(
        self,
        *,
        browser: str | None = None,
        session_id: str | None = None,
    ) -> str:
        session = await self.sessions.start_session(browser_name=browser, session_id=session_id)
        return session.session_id

    async def close_session(self, session_id: str) -> None:
        await self.sessions.close_session(session_id)

    async def active_sessions(self) -> list[str]:
        return await self.sessions.active_session_ids()

    async def shutdown(self) -> None:
        await self.sessions.close_all()

    async def scrape(
        self,
        *,
        session_id: str,
        search_query: str,
        target_count: int | None = None,
        filename: str | None = None,
    ) -> ProfileScrapeSummary:
        query = search_query.strip()
        if not query:
            raise ValueError("searchQuery must not be blank.")
        quota = target_count or self._settings.default_target_count
        if quota > self._settings.max_target_count:
            raise ValueError(
                f"targetCount {quota} exceeds the maximum of {self._settings.max_target_count}."
            )
        export_name = resolve_export_filename(filename)

        engine = ProfileScrapingEngine(
            settings=self._settings,
            selectors=self._selectors,
            sessions=self.sessions,
            storage=ExcelRecordStorage(
                output_dir=self._downloads_dir,
                columns=self._selectors.export_columns,
            ),
        )
        result = await engine.run(
            session_id=session_id,
            query=query,
            quota=quota,
            export_name=export_name,
        )
        return ProfileScrapeSummary(
            result=result,
            filename=export_name,
            download_url=f"/download/{export_name}",
        )

    def resolve_download(self, filename: str) -> Path | None:
        """
        Path of an exported file inside the downloads directory, or None.
        """

        candidate = (self._downloads_dir / filename).resolve()
        if candidate.parent != self._downloads_dir or not candidate.is_file():
            return None
        return candidate


@lru_cache(maxsize=1)
def get_profile_scraping_service() -> ProfileScrapingService:
    """
    Build and cache the process-wide profile scraping service.
    """

    return ProfileScrapingService()
