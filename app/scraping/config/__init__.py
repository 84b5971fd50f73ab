"""
Config helpers for profile scraping.
"""

from app.scraping.config.loader import (
    get_profile_scraping_settings,
    get_selector_config,
    load_selector_config,
)
from app.scraping.config.models import (
    ExportColumnConfig,
    FieldSelectorConfig,
    ProfileScrapingSettings,
    SelectorConfig,
    WaitStrategyConfig,
)

__all__ = [
    "ExportColumnConfig",
    "FieldSelectorConfig",
    "ProfileScrapingSettings",
    "SelectorConfig",
    "WaitStrategyConfig",
    "get_profile_scraping_settings",
    "get_selector_config",
    "load_selector_config",
]
