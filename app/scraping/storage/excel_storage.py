"""
openpyxl workbook export for scrape job results.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from app.scraping.config.models import ExportColumnConfig
from app.scraping.logging_utils import log_event
from app.scraping.storage.base import RecordStorage
from app.scraping.types import NOT_AVAILABLE, ExtractionRecord, JobResult

logger = logging.getLogger(__name__)

SHEET_TITLE = "LinkedIn Profiles"
HEADER_FILL = PatternFill(fill_type="solid", fgColor="FFE6E6FA")
HEADER_FONT = Font(bold=True)

DEFAULT_COLUMNS: tuple[ExportColumnConfig, ...] = (
    ExportColumnConfig(header="Name", source="name", width=30),
    ExportColumnConfig(header="Headline", source="headline", width=50),
    ExportColumnConfig(header="Location", source="location", width=30),
    ExportColumnConfig(header="About", source="about", width=80),
    ExportColumnConfig(header="Profile URL", source="profile_url", width=50),
    ExportColumnConfig(header="Error", source="error", width=30),
)


def cell_value(record: ExtractionRecord, source: str) -> str:
    if source == "profile_url":
        return record.target_id
    if source == "error":
        return record.error_detail or ""
    value = record.value(source)
    return value if value else NOT_AVAILABLE


class ExcelRecordStorage(RecordStorage):
    """
    Writes one worksheet row per record, failed records included.
    """

    def __init__(
        self,
        *,
        output_dir: Path,
        columns: Sequence[ExportColumnConfig] | None = None,
    ) -> None:
        self._output_dir = output_dir
        self._columns = tuple(columns) if columns else DEFAULT_COLUMNS

    @property
    def headers(self) -> list[str]:
        return [column.header for column in self._columns]

    def store(self, result: JobResult, *, filename: str) -> Path:
        self._output_dir.mkdir(parents=True, exist_ok=True)
        path = self._output_dir / filename

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = SHEET_TITLE
        sheet.append(self.headers)
        for index, column in enumerate(self._columns, start=1):
            header_cell = sheet.cell(row=1, column=index)
            header_cell.font = HEADER_FONT
            header_cell.fill = HEADER_FILL
            sheet.column_dimensions[get_column_letter(index)].width = column.width

        for record in result.records:
            sheet.append([cell_value(record, column.source) for column in self._columns])

        workbook.save(path)
        log_event(
            logger,
            logging.INFO,
            "export_written",
            path=str(path),
            rows=len(result.records),
        )
        return path
