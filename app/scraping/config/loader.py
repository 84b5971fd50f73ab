"""
Environment + JSON config loader for profile scraping.
"""

from __future__ import annotations

import json
from functools import lru_cache

from app.config import (
    get_bool_env,
    get_float_env,
    get_int_env,
    get_str_env,
    resolve_path,
)
from app.scraping.config.models import (
    ExportColumnConfig,
    FieldSelectorConfig,
    ProfileScrapingSettings,
    SelectorConfig,
    WaitStrategyConfig,
)

DEFAULT_SELECTOR_CONFIG_PATH = "app/scraping/config/selectors.json"


@lru_cache(maxsize=1)
def get_profile_scraping_settings() -> ProfileScrapingSettings:
    """
    Return cached scraper settings from environment variables.
    """

    base_url = get_str_env("PROFILE_SCRAPE_BASE_URL", "https://www.linkedin.com").rstrip("/")
    user_agent = get_str_env("PROFILE_SCRAPE_USER_AGENT", "")
    return ProfileScrapingSettings(
        base_url=base_url,
        login_url=get_str_env("PROFILE_SCRAPE_LOGIN_URL", f"{base_url}/login"),
        authenticated_url_pattern=get_str_env(
            "PROFILE_SCRAPE_AUTHENTICATED_URL_PATTERN",
            "**/feed/**",
        ),
        selector_config_path=str(
            resolve_path(
                get_str_env("PROFILE_SCRAPE_SELECTOR_CONFIG_PATH", DEFAULT_SELECTOR_CONFIG_PATH)
            )
        ),
        default_browser=get_str_env("PROFILE_SCRAPE_BROWSER", "chromium").lower(),
        headless=get_bool_env("PROFILE_SCRAPE_HEADLESS", False),
        slow_mo_ms=max(0, get_int_env("PROFILE_SCRAPE_SLOW_MO_MS", 100)),
        user_agent=user_agent or None,
        login_timeout_seconds=max(
            10.0,
            get_float_env("PROFILE_SCRAPE_LOGIN_TIMEOUT_SECONDS", 300.0),
        ),
        navigation_timeout_ms=max(
            1000,
            get_int_env("PROFILE_SCRAPE_NAVIGATION_TIMEOUT_MS", 30000),
        ),
        strategy_timeout_ms=max(
            250,
            get_int_env("PROFILE_SCRAPE_STRATEGY_TIMEOUT_MS", 5000),
        ),
        search_marker_timeout_ms=max(
            250,
            get_int_env("PROFILE_SCRAPE_SEARCH_MARKER_TIMEOUT_MS", 5000),
        ),
        pagination_wait_ms=max(
            500,
            get_int_env("PROFILE_SCRAPE_PAGINATION_WAIT_MS", 8000),
        ),
        results_settle_ms=max(0, get_int_env("PROFILE_SCRAPE_RESULTS_SETTLE_MS", 2000)),
        profile_settle_ms=max(0, get_int_env("PROFILE_SCRAPE_PROFILE_SETTLE_MS", 3000)),
        recovery_wait_ms=max(0, get_int_env("PROFILE_SCRAPE_RECOVERY_WAIT_MS", 3000)),
        base_delay_ms=max(0, get_int_env("PROFILE_SCRAPE_BASE_DELAY_MS", 2000)),
        jitter_ratio=min(
            0.9,
            max(0.0, get_float_env("PROFILE_SCRAPE_JITTER_RATIO", 0.5)),
        ),
        escalation_factor=max(
            1.0,
            get_float_env("PROFILE_SCRAPE_ESCALATION_FACTOR", 3.0),
        ),
        batch_size=max(1, get_int_env("PROFILE_SCRAPE_BATCH_SIZE", 10)),
        batch_pause_ms=max(0, get_int_env("PROFILE_SCRAPE_BATCH_PAUSE_MS", 15000)),
        rate_limit_wait_ms=max(
            0,
            get_int_env("PROFILE_SCRAPE_RATE_LIMIT_WAIT_MS", 10000),
        ),
        min_page_text_length=max(
            1,
            get_int_env("PROFILE_SCRAPE_MIN_PAGE_TEXT_LENGTH", 200),
        ),
        default_target_count=max(1, get_int_env("PROFILE_SCRAPE_DEFAULT_TARGET_COUNT", 100)),
        max_target_count=max(1, get_int_env("PROFILE_SCRAPE_MAX_TARGET_COUNT", 1000)),
        max_search_pages=max(1, get_int_env("PROFILE_SCRAPE_MAX_SEARCH_PAGES", 100)),
    )


@lru_cache(maxsize=4)
def get_selector_config(config_path: str = DEFAULT_SELECTOR_CONFIG_PATH) -> SelectorConfig:
    """
    Load the selector config once per path; the result is immutable.
    """

    return load_selector_config(config_path=config_path)


def load_selector_config(*, config_path: str) -> SelectorConfig:
    """
    Load field selectors, wait strategies and export layout from a JSON file.
    """

    path = resolve_path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Selector config file not found: {path}")

    raw_data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw_data, dict):
        raise ValueError("Invalid selector config: top level must be an object.")

    fields = _parse_fields(raw_data.get("fields", []))
    if not fields:
        raise ValueError("Invalid selector config: at least one field is required.")

    load_strategies = _parse_strategies(raw_data.get("load_strategies", []))
    if not load_strategies:
        raise ValueError("Invalid selector config: 'load_strategies' must not be empty.")

    search_markers = _parse_strategies(raw_data.get("search_result_markers", []))
    if not search_markers:
        raise ValueError("Invalid selector config: 'search_result_markers' must not be empty.")

    pagination = raw_data.get("pagination", {})
    if not isinstance(pagination, dict):
        pagination = {}

    field_names = {item.name for item in fields}
    export_columns = _parse_columns(raw_data.get("export_columns", []), field_names)

    return SelectorConfig(
        fields=fields,
        load_strategies=load_strategies,
        content_containers=_normalize_selector_list(raw_data.get("content_containers", [])),
        search_result_markers=search_markers,
        pagination_container=_optional_str(pagination.get("container")) or ".artdeco-pagination",
        next_button_selectors=_normalize_selector_list(pagination.get("next_buttons", [])),
        next_button_label=_optional_str(pagination.get("next_label")) or "Next",
        rate_limit_phrases=tuple(
            phrase.lower()
            for phrase in _normalize_selector_list(raw_data.get("rate_limit_phrases", []))
        ),
        export_columns=export_columns,
    )


def _parse_fields(entries: object) -> tuple[FieldSelectorConfig, ...]:
    if not isinstance(entries, list):
        raise ValueError("Invalid selector config: 'fields' must be a list.")

    parsed: list[FieldSelectorConfig] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = _optional_str(entry.get("name"))
        selectors = _normalize_selector_list(entry.get("selectors", []))
        if not name or not selectors:
            continue
        parsed.append(
            FieldSelectorConfig(
                name=name.lower(),
                selectors=selectors,
                multiple=bool(entry.get("multiple", False)),
                strip_prefix=_optional_str(entry.get("strip_prefix")),
            )
        )
    return tuple(parsed)


def _parse_strategies(entries: object) -> tuple[WaitStrategyConfig, ...]:
    if not isinstance(entries, list):
        return ()

    parsed: list[WaitStrategyConfig] = []
    for entry in entries:
        if isinstance(entry, str) and entry.strip():
            parsed.append(WaitStrategyConfig(name=entry.strip(), selector=entry.strip()))
            continue
        if not isinstance(entry, dict):
            continue
        selector = _optional_str(entry.get("selector"))
        if not selector:
            continue
        parsed.append(
            WaitStrategyConfig(
                name=_optional_str(entry.get("name")) or selector,
                selector=selector,
                timeout_ms=_optional_int(entry.get("timeout_ms")),
            )
        )
    return tuple(parsed)


def _parse_columns(entries: object, field_names: set[str]) -> tuple[ExportColumnConfig, ...]:
    if not isinstance(entries, list):
        return ()

    allowed_sources = field_names | {"profile_url", "error"}
    parsed: list[ExportColumnConfig] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        header = _optional_str(entry.get("header"))
        source = (_optional_str(entry.get("source")) or "").lower()
        if not header or source not in allowed_sources:
            continue
        parsed.append(
            ExportColumnConfig(
                header=header,
                source=source,
                width=_optional_int(entry.get("width")) or 30,
            )
        )
    return tuple(parsed)


def _normalize_selector_list(value: object) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value.strip(),) if value.strip() else ()
    if isinstance(value, list):
        return tuple(
            item.strip()
            for item in value
            if isinstance(item, str) and item.strip()
        )
    return ()


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _optional_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
