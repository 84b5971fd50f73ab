"""
Scraping configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FieldSelectorConfig:
    """
    One logical profile field and its ordered CSS fallback chain.

    Selectors are evaluated against an HTML snapshot, first non-empty
    match wins. ``multiple`` joins every match of the winning selector.
    """

    name: str
    selectors: tuple[str, ...]
    multiple: bool = False
    strip_prefix: str | None = None


@dataclass(frozen=True)
class WaitStrategyConfig:
    """
    A named Playwright selector awaited with its own timeout.
    """

    name: str
    selector: str
    timeout_ms: int | None = None


@dataclass(frozen=True)
class ExportColumnConfig:
    header: str
    source: str
    width: int = 30


@dataclass(frozen=True)
class SelectorConfig:
    """
    Site markup knowledge, kept out of the extraction algorithm.
    """

    fields: tuple[FieldSelectorConfig, ...]
    load_strategies: tuple[WaitStrategyConfig, ...]
    content_containers: tuple[str, ...]
    search_result_markers: tuple[WaitStrategyConfig, ...]
    pagination_container: str
    next_button_selectors: tuple[str, ...]
    next_button_label: str
    rate_limit_phrases: tuple[str, ...]
    export_columns: tuple[ExportColumnConfig, ...] = field(default_factory=tuple)

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(item.name for item in self.fields)


@dataclass(frozen=True)
class ProfileScrapingSettings:
    """
    Runtime settings for profile scraping.
    """

    base_url: str
    login_url: str
    authenticated_url_pattern: str
    selector_config_path: str
    default_browser: str
    headless: bool
    slow_mo_ms: int
    user_agent: str | None
    login_timeout_seconds: float
    navigation_timeout_ms: int
    strategy_timeout_ms: int
    search_marker_timeout_ms: int
    pagination_wait_ms: int
    results_settle_ms: int
    profile_settle_ms: int
    recovery_wait_ms: int
    base_delay_ms: int
    jitter_ratio: float
    escalation_factor: float
    batch_size: int
    batch_pause_ms: int
    rate_limit_wait_ms: int
    min_page_text_length: int
    default_target_count: int
    max_target_count: int
    max_search_pages: int
