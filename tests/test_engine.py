"""
tests/test_engine.py

End-to-end ProfileScrapingEngine runs over fake sessions and storage.
"""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path

import pytest
from conftest import BASE_URL, FakeLauncher, FakePage, search_page_html

from app.scraping.engine import ProfileScrapingEngine
from app.scraping.errors import SearchNotLoadedError, SessionBusyError, SessionNotFoundError
from app.scraping.session_manager import SessionManager
from app.scraping.storage import RecordStorage
from app.scraping.types import ExtractionStatus, JobResult


class MemoryStorage(RecordStorage):
    def __init__(self) -> None:
        self.stored: list[tuple[JobResult, str]] = []

    def store(self, result: JobResult, *, filename: str) -> Path:
        self.stored.append((result, filename))
        return Path("/tmp") / filename


def _profile(name: str) -> str:
    return f'<html><body><section class="pv-top-card"><h1>{name}</h1></section></body></html>'


def _url(slug: str) -> str:
    return f"{BASE_URL}/in/{slug}/"


@pytest.fixture()
def page() -> FakePage:
    return FakePage(
        search_pages=[
            search_page_html(["ann", "ben"]),
            search_page_html(["cat", "dan"], has_next=False),
        ],
        profiles={
            _url("ann"): _profile("Ann"),
            _url("ben"): "<html><body><p>Loading</p></body></html>",
            _url("dan"): _profile("Dan"),
        },
        fail_urls={_url("cat")},
    )


def _engine(settings, selectors, delays, sessions, storage) -> ProfileScrapingEngine:
    return ProfileScrapingEngine(
        settings=settings,
        selectors=selectors,
        sessions=sessions,
        storage=storage,
        delays=delays,
    )


def test_run_records_every_target_and_keeps_going(settings, selectors, delays, page) -> None:
    sessions = SessionManager(settings=settings, launcher=FakeLauncher(lambda: page))
    storage = MemoryStorage()
    engine = _engine(settings, selectors, delays, sessions, storage)

    async def scenario():
        await sessions.start_session(session_id="job")
        return await engine.run(session_id="job", query="founder", quota=10, export_name="out.xlsx")

    result = asyncio.run(scenario())

    assert [record.target_id for record in result.records] == [
        _url("ann"),
        _url("ben"),
        _url("cat"),
        _url("dan"),
    ]
    assert [record.status for record in result.records] == [
        ExtractionStatus.COMPLETE,
        ExtractionStatus.CRITICAL_FAILURE,
        ExtractionStatus.CRITICAL_FAILURE,
        ExtractionStatus.COMPLETE,
    ]
    assert result.requested_count == 10
    assert result.collected_count == len(result.records) == 4
    assert result.success_count == 2
    assert result.failed_count == 2
    assert result.success_count + result.failed_count == result.collected_count
    assert result.search_query == "founder"
    assert result.export_path == Path("/tmp/out.xlsx")
    assert storage.stored[0][1] == "out.xlsx"
    assert len(storage.stored[0][0].records) == 4


def test_engine_does_not_close_the_session(settings, selectors, delays, page) -> None:
    launcher = FakeLauncher(lambda: page)
    sessions = SessionManager(settings=settings, launcher=launcher)
    engine = _engine(settings, selectors, delays, sessions, MemoryStorage())

    async def scenario():
        await sessions.start_session(session_id="job")
        await engine.run(session_id="job", query="founder", quota=1, export_name="x.xlsx")
        return await sessions.get_session("job")

    assert asyncio.run(scenario()).authenticated
    assert not launcher.handles[0].closed


def test_unknown_session_aborts_before_navigation(settings, selectors, delays, page) -> None:
    launcher = FakeLauncher(lambda: page)
    sessions = SessionManager(settings=settings, launcher=launcher)
    storage = MemoryStorage()
    engine = _engine(settings, selectors, delays, sessions, storage)

    with pytest.raises(SessionNotFoundError):
        asyncio.run(engine.run(session_id="nope", query="q", quota=5, export_name="x.xlsx"))

    assert launcher.handles == []
    assert page.visited == []
    assert storage.stored == []


def test_search_failure_aborts_job_without_export(settings, selectors, delays) -> None:
    broken = FakePage(search_pages=["<html><body>Service unavailable</body></html>"])
    sessions = SessionManager(settings=settings, launcher=FakeLauncher(lambda: broken))
    storage = MemoryStorage()
    engine = _engine(settings, selectors, delays, sessions, storage)

    async def scenario():
        await sessions.start_session(session_id="job")
        await engine.run(session_id="job", query="q", quota=5, export_name="x.xlsx")

    with pytest.raises(SearchNotLoadedError):
        asyncio.run(scenario())
    assert storage.stored == []


def test_pauses_between_targets_only(settings, selectors, page) -> None:
    class CountingDelays:
        def __init__(self, inner) -> None:
            self._inner = inner
            self.pauses: list[int] = []

        def __getattr__(self, name):
            return getattr(self._inner, name)

        async def pause_after_target(self, processed_count: int) -> int:
            self.pauses.append(processed_count)
            return 0

    from app.scraping.engine import build_delay_policy

    delays = CountingDelays(build_delay_policy(settings, selectors))
    sessions = SessionManager(settings=settings, launcher=FakeLauncher(lambda: page))
    engine = _engine(settings, selectors, delays, sessions, MemoryStorage())

    async def scenario():
        await sessions.start_session(session_id="job")
        await engine.run(session_id="job", query="q", quota=3, export_name="x.xlsx")

    asyncio.run(scenario())
    assert delays.pauses == [1, 2]


def test_second_job_on_busy_session_is_rejected(settings, selectors, delays, page) -> None:
    sessions = SessionManager(settings=settings, launcher=FakeLauncher(lambda: page))
    storage = MemoryStorage()
    engine = _engine(settings, selectors, delays, sessions, storage)

    async def scenario():
        await sessions.start_session(session_id="job")
        return await asyncio.gather(
            engine.run(session_id="job", query="founder", quota=2, export_name="a.xlsx"),
            engine.run(session_id="job", query="founder", quota=2, export_name="b.xlsx"),
            return_exceptions=True,
        )

    first, second = asyncio.run(scenario())

    assert isinstance(first, JobResult)
    assert isinstance(second, SessionBusyError)
    assert [filename for _, filename in storage.stored] == ["a.xlsx"]


def test_job_lock_is_released_after_run(settings, selectors, delays, page) -> None:
    sessions = SessionManager(settings=settings, launcher=FakeLauncher(lambda: page))
    engine = _engine(settings, selectors, delays, sessions, MemoryStorage())

    async def scenario():
        session = await sessions.start_session(session_id="job")
        async with session.job_lock:
            with pytest.raises(SessionBusyError):
                await engine.run(session_id="job", query="q", quota=1, export_name="x.xlsx")
        await engine.run(session_id="job", query="q", quota=1, export_name="x.xlsx")
        return session.busy

    assert asyncio.run(scenario()) is False


def test_export_is_written_off_the_event_loop_thread(settings, selectors, delays, page) -> None:
    class ThreadRecordingStorage(MemoryStorage):
        def store(self, result: JobResult, *, filename: str) -> Path:
            self.thread_id = threading.get_ident()
            return super().store(result, filename=filename)

    sessions = SessionManager(settings=settings, launcher=FakeLauncher(lambda: page))
    storage = ThreadRecordingStorage()
    engine = _engine(settings, selectors, delays, sessions, storage)

    async def scenario():
        await sessions.start_session(session_id="job")
        await engine.run(session_id="job", query="q", quota=1, export_name="x.xlsx")
        return threading.get_ident()

    loop_thread = asyncio.run(scenario())
    assert storage.thread_id != loop_thread
