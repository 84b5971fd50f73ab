from __future__ import annotations

from openpyxl import load_workbook

from app.scraping.config.models import ExportColumnConfig
from app.scraping.storage import ExcelRecordStorage
from app.scraping.types import NOT_AVAILABLE, ExtractionRecord, ExtractionStatus, JobResult

FIELDS = ("name", "headline", "location", "about")


def _result() -> JobResult:
    records = [
        ExtractionRecord(
            target_id="https://www.linkedin.com/in/ann/",
            fields={
                "name": "Ann",
                "headline": "Engineer",
                "location": NOT_AVAILABLE,
                "about": "",
            },
            status=ExtractionStatus.COMPLETE,
        ),
        ExtractionRecord.failed(
            target_id="https://www.linkedin.com/in/ben/",
            field_names=FIELDS,
            status=ExtractionStatus.CRITICAL_FAILURE,
            failure_code="navigation_failed",
            error_detail="Navigation failed: timeout",
        ),
    ]
    return JobResult.from_records(records=records, requested_count=5, search_query="q")


def test_writes_header_and_one_row_per_record(tmp_path) -> None:
    storage = ExcelRecordStorage(output_dir=tmp_path / "downloads")

    path = storage.store(_result(), filename="profiles.xlsx")

    assert path == tmp_path / "downloads" / "profiles.xlsx"
    sheet = load_workbook(path).active
    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0] == ("Name", "Headline", "Location", "About", "Profile URL", "Error")
    assert rows[1][:5] == (
        "Ann",
        "Engineer",
        "not available",
        "not available",
        "https://www.linkedin.com/in/ann/",
    )
    assert not rows[1][5]
    assert rows[2][0] == "not available"
    assert rows[2][4] == "https://www.linkedin.com/in/ben/"
    assert rows[2][5] == "Navigation failed: timeout"
    assert len(rows) == 3


def test_header_row_is_styled(tmp_path) -> None:
    path = ExcelRecordStorage(output_dir=tmp_path).store(_result(), filename="styled.xlsx")
    sheet = load_workbook(path).active
    assert sheet.title == "LinkedIn Profiles"
    assert sheet["A1"].font.bold
    assert sheet["A1"].fill.fill_type == "solid"


def test_custom_column_layout(tmp_path) -> None:
    columns = [
        ExportColumnConfig(header="Profile", source="profile_url", width=40),
        ExportColumnConfig(header="Headline", source="headline"),
    ]
    path = ExcelRecordStorage(output_dir=tmp_path, columns=columns).store(
        _result(), filename="custom.xlsx"
    )
    rows = list(load_workbook(path).active.iter_rows(values_only=True))
    assert rows[0] == ("Profile", "Headline")
    assert rows[1] == ("https://www.linkedin.com/in/ann/", "Engineer")
