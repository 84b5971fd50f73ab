"""
Per-profile record extraction with layered fallbacks.
"""

from __future__ import annotations

import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from app import failure_codes
from app.scraping.config.models import ProfileScrapingSettings, SelectorConfig
from app.scraping.logging_utils import error_summary, log_event
from app.scraping.parsing import ProfileHTMLParser
from app.scraping.rate_limiter import DelayPolicy
from app.scraping.types import NOT_AVAILABLE, ExtractionRecord, ExtractionStatus
from app.scraping.waits import first_matching_strategy

logger = logging.getLogger(__name__)


class RecordExtractor:
    """
    Turns one profile URL into an ExtractionRecord.

    ``extract`` never raises: navigation problems, unrendered pages and empty
    extractions all come back as degraded records with an error detail.
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

    @property
    def field_names(self) -> tuple[str, ...]:
        return self._selectors.field_names

    async def extract(self, page: Page, target_id: str) -> ExtractionRecord:
        try:
            record = await self._extract(page, target_id)
        except Exception as exc:
            record = self._failure(
                target_id,
                ExtractionStatus.CRITICAL_FAILURE,
                failure_codes.EXTRACTION_ERROR,
                f"Unexpected extraction error: {exc}",
            )

        log_event(
            logger,
            logging.INFO if record.is_success else logging.WARNING,
            "profile_extracted",
            target_id=target_id,
            status=record.status.value,
            failure_code=record.failure_code,
            error=record.error_detail,
        )
        return record

    async def _extract(self, page: Page, target_id: str) -> ExtractionRecord:
        try:
            await page.goto(
                target_id,
                timeout=self._settings.navigation_timeout_ms,
                wait_until="domcontentloaded",
            )
        except PlaywrightError as exc:
            # nothing rendered, so no throttling signal from this target
            self._delays.observe(None)
            return self._failure(
                target_id,
                ExtractionStatus.CRITICAL_FAILURE,
                failure_codes.NAVIGATION_FAILED,
                f"Navigation failed: {error_summary(exc)}",
            )

        await self._delays.sleep(self._settings.profile_settle_ms)

        if not await self._wait_for_profile(page):
            # challenge and throttle pages usually fail load detection
            self._delays.observe(await self._page_text(page))
            return self._failure(
                target_id,
                ExtractionStatus.CRITICAL_FAILURE,
                failure_codes.CONTENT_NOT_ACCESSIBLE,
                "Profile content not accessible: no load strategy matched after recovery.",
            )

        if self._delays.observe(await self._page_text(page)):
            log_event(
                logger,
                logging.WARNING,
                "rate_limit_soft_recovery",
                target_id=target_id,
                wait_ms=self._delays.rate_limit_wait_ms,
            )
            await self._delays.extended_wait()

        values = self._parser.extract_fields(
            html=await page.content(),
            fields=self._selectors.fields,
        )
        if all(value == NOT_AVAILABLE for value in values.values()):
            return ExtractionRecord(
                target_id=target_id,
                fields=values,
                status=ExtractionStatus.PARTIAL_FAILURE,
                failure_code=failure_codes.NO_MEANINGFUL_DATA,
                error_detail="Page rendered but no profile field could be extracted.",
            )

        return ExtractionRecord(
            target_id=target_id,
            fields=values,
            status=ExtractionStatus.COMPLETE,
        )

    async def _wait_for_profile(self, page: Page) -> bool:
        strategy = await first_matching_strategy(
            page,
            self._selectors.load_strategies,
            default_timeout_ms=self._settings.strategy_timeout_ms,
        )
        if strategy is not None:
            log_event(logger, logging.DEBUG, "profile_load_detected", strategy=strategy.name)
            return True

        # one recovery attempt before giving up
        try:
            await page.evaluate("window.scrollTo(0, document.body.scrollHeight / 2)")
        except PlaywrightError:
            pass
        await self._delays.sleep(self._settings.recovery_wait_ms)
        return self._parser.has_minimal_content(
            html=await page.content(),
            containers=self._selectors.content_containers,
            min_text_length=self._settings.min_page_text_length,
        )

    @staticmethod
    async def _page_text(page: Page) -> str:
        try:
            return await page.inner_text("body", timeout=2000)
        except PlaywrightError:
            return ""

    def _failure(
        self,
        target_id: str,
        status: ExtractionStatus,
        failure_code: str,
        error_detail: str,
    ) -> ExtractionRecord:
        return ExtractionRecord.failed(
            target_id=target_id,
            field_names=self.field_names,
            status=status,
            failure_code=failure_code,
            error_detail=error_detail,
        )
