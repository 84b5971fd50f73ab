"""
Shared scraping runtime data models.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from types import MappingProxyType

NOT_AVAILABLE = "not available"


class ExtractionStatus(str, Enum):
    COMPLETE = "complete"
    PARTIAL_FAILURE = "partial_failure"
    CRITICAL_FAILURE = "critical_failure"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ExtractionRecord:
    """
    Outcome of extracting one profile page.

    Every record carries a value for each configured field, so failed
    profiles still export with a uniform shape.
    """

    target_id: str
    fields: Mapping[str, str]
    status: ExtractionStatus
    error_detail: str | None = None
    failure_code: str | None = None
    extracted_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @property
    def is_success(self) -> bool:
        return self.status is ExtractionStatus.COMPLETE

    def value(self, field_name: str) -> str:
        return self.fields.get(field_name, NOT_AVAILABLE)

    @classmethod
    def failed(
        cls,
        *,
        target_id: str,
        field_names: Sequence[str],
        status: ExtractionStatus,
        failure_code: str,
        error_detail: str,
    ) -> "ExtractionRecord":
        return cls(
            target_id=target_id,
            fields={name: NOT_AVAILABLE for name in field_names},
            status=status,
            error_detail=error_detail,
            failure_code=failure_code,
        )


@dataclass(frozen=True)
class JobResult:
    """
    Aggregated outcome for one scrape job.
    """

    records: tuple[ExtractionRecord, ...]
    requested_count: int
    collected_count: int
    success_count: int
    failed_count: int
    search_query: str
    timestamp: datetime = field(default_factory=_utcnow)
    export_path: Path | None = None

    def __post_init__(self) -> None:
        if self.collected_count != len(self.records):
            raise ValueError("collected_count must equal the number of records.")
        if self.success_count + self.failed_count != self.collected_count:
            raise ValueError("success_count + failed_count must equal collected_count.")

    @classmethod
    def from_records(
        cls,
        *,
        records: Sequence[ExtractionRecord],
        requested_count: int,
        search_query: str,
    ) -> "JobResult":
        success_count = sum(1 for record in records if record.is_success)
        return cls(
            records=tuple(records),
            requested_count=requested_count,
            collected_count=len(records),
            success_count=success_count,
            failed_count=len(records) - success_count,
            search_query=search_query,
        )
