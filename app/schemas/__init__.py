"""
app/schemas package marker.
"""

from app.schemas.profile_scraping import (
    ActiveSessionsResponse,
    CloseSessionRequest,
    ErrorResponse,
    ScrapeRequest,
    ScrapeResponse,
    ScrapeSummaryResponse,
    StartSessionRequest,
    StartSessionResponse,
    SuccessResponse,
)

__all__ = [
    "ActiveSessionsResponse",
    "CloseSessionRequest",
    "ErrorResponse",
    "ScrapeRequest",
    "ScrapeResponse",
    "ScrapeSummaryResponse",
    "StartSessionRequest",
    "StartSessionResponse",
    "SuccessResponse",
]
