"""
app/schemas/profile_scraping.py

Request and response schemas for profile scraping endpoints.

Payloads use camelCase keys on the wire; attribute names stay snake_case.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartSessionRequest(CamelModel):
    browser: str | None = None
    session_id: str | None = None


class StartSessionResponse(CamelModel):
    success: bool = True
    session_id: str


class ScrapeRequest(CamelModel):
    session_id: str = Field(..., min_length=1)
    search_query: str = Field(..., min_length=1)
    target_count: int | None = Field(default=None, ge=1)
    filename: str | None = None


class ScrapeSummaryResponse(CamelModel):
    search_query: str
    profiles_scraped: int = Field(..., ge=0)
    successful_profiles: int = Field(..., ge=0)
    failed_profiles: int = Field(..., ge=0)
    target_count: int = Field(..., ge=0)
    timestamp: datetime


class ScrapeResponse(CamelModel):
    """
    Job outcome; ``success_count`` and ``failed_count`` distinguish partial
    success from total failure.
    """

    success: bool = True
    profiles_count: int = Field(..., ge=0)
    success_count: int = Field(..., ge=0)
    failed_count: int = Field(..., ge=0)
    filename: str
    download_url: str
    summary: ScrapeSummaryResponse


class CloseSessionRequest(CamelModel):
    session_id: str = Field(..., min_length=1)


class SuccessResponse(CamelModel):
    success: bool = True


class ErrorResponse(CamelModel):
    success: bool = False
    error: str


class ActiveSessionsResponse(CamelModel):
    sessions: list[str] = Field(default_factory=list)
