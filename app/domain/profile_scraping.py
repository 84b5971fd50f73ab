"""
app/domain/profile_scraping.py

Domain models for profile scraping orchestration.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.scraping.types import JobResult


@dataclass(frozen=True)
class ProfileScrapeSummary:
    """
    Finished scrape job together with where its export can be fetched.
    """

    result: JobResult
    filename: str
    download_url: str
