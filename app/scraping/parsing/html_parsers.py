"""
BeautifulSoup-based parsing layer for search and profile pages.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from urllib.parse import urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from app.scraping.config.models import FieldSelectorConfig
from app.scraping.types import NOT_AVAILABLE

PUBLIC_PROFILE_PATH = re.compile(r"^/in/[A-Za-z0-9\-]+/?$")
INTERNAL_ID_MARKER = "ACoA"
MUTUAL_CONNECTION_MARKER = "miniProfileUrn"
MULTI_VALUE_SEPARATOR = " | "


class ProfileHTMLParser:
    """
    Deterministic parser utilities for rendered HTML snapshots.
    """

    @classmethod
    def extract_profile_links(cls, *, html: str, base_url: str) -> list[str]:
        """
        Return canonical public profile URLs in document order, deduplicated.
        """

        soup = BeautifulSoup(html, "html.parser")
        seen: dict[str, None] = {}
        for anchor in soup.find_all("a", href=True):
            canonical = cls.canonicalize_profile_url(href=str(anchor["href"]), base_url=base_url)
            if canonical is not None:
                seen.setdefault(canonical, None)
        return list(seen)

    @staticmethod
    def canonicalize_profile_url(*, href: str, base_url: str) -> str | None:
        """
        Strip query and fragment from a profile link, or return None when the
        link is not a public profile reference.
        """

        raw = href.strip()
        if not raw or MUTUAL_CONNECTION_MARKER in raw:
            return None

        absolute = urljoin(f"{base_url.rstrip('/')}/", raw)
        parts = urlsplit(absolute)
        if parts.scheme not in {"http", "https"}:
            return None
        if not PUBLIC_PROFILE_PATH.match(parts.path):
            return None
        if INTERNAL_ID_MARKER in parts.path:
            return None

        path = parts.path.rstrip("/") + "/"
        return urlunsplit(("https", parts.netloc.lower(), path, "", ""))

    @classmethod
    def extract_fields(
        cls,
        *,
        html: str,
        fields: Sequence[FieldSelectorConfig],
    ) -> dict[str, str]:
        """
        Resolve every configured field through its fallback chain.
        Unmatched fields resolve to the not-available placeholder.
        """

        soup = BeautifulSoup(html, "html.parser")
        values: dict[str, str] = {}
        for field_config in fields:
            value = cls.extract_field(soup=soup, field_config=field_config)
            values[field_config.name] = value if value else NOT_AVAILABLE
        return values

    @classmethod
    def extract_field(
        cls,
        *,
        soup: BeautifulSoup,
        field_config: FieldSelectorConfig,
    ) -> str | None:
        for selector in field_config.selectors:
            nodes = cls._select(soup=soup, selector=selector, multiple=field_config.multiple)
            texts = [cls._clean_text(node.get_text(" ", strip=True)) for node in nodes]
            texts = [text for text in texts if text]
            if not texts:
                continue

            value = MULTI_VALUE_SEPARATOR.join(texts) if field_config.multiple else texts[0]
            if field_config.strip_prefix:
                value = cls._strip_prefix(value, field_config.strip_prefix)
            if value:
                return value
        return None

    @classmethod
    def has_minimal_content(
        cls,
        *,
        html: str,
        containers: Sequence[str],
        min_text_length: int,
    ) -> bool:
        """
        Minimal evidence that a profile rendered: a heading, a known
        container, or a non-trivial amount of visible text.
        """

        soup = BeautifulSoup(html, "html.parser")
        if soup.find(["h1", "h2"]) is not None:
            return True
        for selector in containers:
            if cls._select(soup=soup, selector=selector, multiple=False):
                return True

        for hidden in soup(["script", "style", "noscript", "template"]):
            hidden.decompose()
        body = soup.body or soup
        text = cls._clean_text(body.get_text(" ", strip=True))
        return len(text) >= min_text_length

    @staticmethod
    def _select(*, soup: BeautifulSoup, selector: str, multiple: bool) -> list[Tag]:
        try:
            if multiple:
                return list(soup.select(selector))
            node = soup.select_one(selector)
        except SelectorSyntaxError:
            return []
        return [node] if node is not None else []

    @staticmethod
    def _strip_prefix(value: str, prefix: str) -> str:
        if value.lower().startswith(prefix.lower()):
            return value[len(prefix):].strip()
        return value

    @staticmethod
    def _clean_text(value: str) -> str:
        return re.sub(r"\s+", " ", value).strip()
