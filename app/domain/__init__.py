"""
app/domain package marker.
"""

from app.domain.profile_scraping import ProfileScrapeSummary

__all__ = [
    "ProfileScrapeSummary",
]
