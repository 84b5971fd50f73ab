"""
Storage layer interfaces for scrape job exports.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from app.scraping.types import JobResult


class RecordStorage(ABC):
    """
    Export abstraction for aggregated extraction records.
    """

    @abstractmethod
    def store(self, result: JobResult, *, filename: str) -> Path:
        """
        Persist every record of ``result`` and return the written file path.
        """
