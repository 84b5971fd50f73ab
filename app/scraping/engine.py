"""
Profile scraping engine.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging

from playwright.async_api import Page

from app.scraping.collector import TargetCollector
from app.scraping.config.models import ProfileScrapingSettings, SelectorConfig
from app.scraping.errors import SessionBusyError
from app.scraping.extractor import RecordExtractor
from app.scraping.logging_utils import log_event, timed_event
from app.scraping.rate_limiter import DelayPolicy
from app.scraping.session_manager import SessionManager
from app.scraping.storage import RecordStorage
from app.scraping.types import ExtractionRecord, JobResult

logger = logging.getLogger(__name__)


def build_delay_policy(
    settings: ProfileScrapingSettings,
    selectors: SelectorConfig,
) -> DelayPolicy:
    return DelayPolicy(
        rate_limit_phrases=selectors.rate_limit_phrases,
        base_delay_ms=settings.base_delay_ms,
        jitter_ratio=settings.jitter_ratio,
        escalation_factor=settings.escalation_factor,
        batch_size=settings.batch_size,
        batch_pause_ms=settings.batch_pause_ms,
        rate_limit_wait_ms=settings.rate_limit_wait_ms,
    )


class ProfileScrapingEngine:
    """
    Runs one search-collect-extract-export job over a borrowed session.

    The engine never closes the session; that stays the caller's decision.
    Session and search failures abort the job, per-profile failures become
    degraded records and the loop carries on.
    """

    def __init__(
        self,
        *,
        settings: ProfileScrapingSettings,
        selectors: SelectorConfig,
        sessions: SessionManager,
        storage: RecordStorage,
        delays: DelayPolicy | None = None,
        collector: TargetCollector | None = None,
        extractor: RecordExtractor | None = None,
    ) -> None:
        self._settings = settings
        self._sessions = sessions
        self._storage = storage
        self._delays = delays or build_delay_policy(settings, selectors)
        self._collector = collector or TargetCollector(
            settings=settings,
            selectors=selectors,
            delays=self._delays,
        )
        self._extractor = extractor or RecordExtractor(
            settings=settings,
            selectors=selectors,
            delays=self._delays,
        )

    async def run(
        self,
        *,
        session_id: str,
        query: str,
        quota: int,
        export_name: str,
    ) -> JobResult:
        """
        Raises SessionNotFoundError for an unknown id and SessionBusyError
        when another job already holds the session.
        """

        session = await self._sessions.get_session(session_id)
        if session.busy:
            raise SessionBusyError(session_id)
        async with session.job_lock:
            return await self._run_job(session.page, session_id, query, quota, export_name)

    async def _run_job(
        self,
        page: Page,
        session_id: str,
        query: str,
        quota: int,
        export_name: str,
    ) -> JobResult:
        async with timed_event(logger, "profile_collection", session_id=session_id, query=query) as info:
            targets = await self._collector.collect(page, query, quota)
            info["collected"] = len(targets)

        records: list[ExtractionRecord] = []
        for index, target_id in enumerate(targets, start=1):
            log_event(
                logger,
                logging.INFO,
                "profile_processing",
                session_id=session_id,
                position=index,
                total=len(targets),
                target_id=target_id,
            )
            records.append(await self._extractor.extract(page, target_id))
            if index < len(targets):
                await self._delays.pause_after_target(index)

        result = JobResult.from_records(
            records=records,
            requested_count=quota,
            search_query=query,
        )
        export_path = await asyncio.to_thread(self._storage.store, result, filename=export_name)
        result = dataclasses.replace(result, export_path=export_path)

        log_event(
            logger,
            logging.INFO,
            "profile_job_completed",
            session_id=session_id,
            query=query,
            requested=result.requested_count,
            collected=result.collected_count,
            succeeded=result.success_count,
            failed=result.failed_count,
            export_path=str(export_path),
        )
        return result
