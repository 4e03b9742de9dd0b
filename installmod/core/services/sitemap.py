"""
Sitemap assembly.

Combines the static listing pages, every live app, game and blog post,
categories, tags, publishers and the hand-added custom entries. Duplicate
locations collapse to their first occurrence and any URL matched by an
exclusion pattern is dropped. Exclusion patterns use `*` as a
wildcard and are matched against both the absolute URL and its path.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from urllib.parse import urlsplit
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from installmod.domain.entities import SitemapEntry, SitemapExclusion
from installmod.domain.errors import NotFoundError, ValidationError
from installmod.ports.clock import ClockPort
from installmod.ports.repo import ContentRepoPort

logger = logging.getLogger(__name__)

ENTRIES_TABLE = "custom_sitemap_entries"
EXCLUSIONS_TABLE = "sitemap_exclusions"
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"

# (path, priority, changefreq)
STATIC_PAGES: list[tuple[str, float, str]] = [
    ("/", 1.0, "daily"),
    ("/apps", 0.9, "daily"),
    ("/games", 0.9, "daily"),
    ("/blogs", 0.9, "daily"),
    ("/latestapps", 0.8, "daily"),
    ("/latestgames", 0.8, "daily"),
    ("/trendingapps", 0.8, "daily"),
    ("/publisher", 0.7, "weekly"),
]


@dataclass(frozen=True)
class SitemapUrl:
    loc: str
    lastmod: datetime
    changefreq: str
    priority: float


def _pattern_regex(pattern: str) -> re.Pattern[str]:
    return re.compile("^" + re.escape(pattern).replace(r"\*", ".*") + "$")


def _parse_time(value: Any, fallback: datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return fallback


class SitemapService:
    def __init__(self, repo: ContentRepoPort, clock: ClockPort, base_url: str) -> None:
        self._repo = repo
        self._clock = clock
        self._base = base_url.rstrip("/")

    # --- custom entries ---

    def add_entry(self, data: dict[str, Any]) -> SitemapEntry:
        payload = {k: v for k, v in data.items() if k != "id"}
        payload.setdefault("last_modified", self._clock.now_utc())
        try:
            entry = SitemapEntry.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e
        self._repo.insert(ENTRIES_TABLE, entry.model_dump(mode="json"))
        return entry

    def update_entry(self, entry_id: UUID | str, changes: dict[str, Any]) -> SitemapEntry:
        row = self._repo.get(ENTRIES_TABLE, str(entry_id))
        if row is None:
            raise NotFoundError(f"Sitemap entry {entry_id} not found")
        merged = {**row, **{k: v for k, v in changes.items() if k != "id"}}
        merged["last_modified"] = self._clock.now_utc()
        try:
            entry = SitemapEntry.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e
        patch = entry.model_dump(mode="json")
        patch.pop("id")
        self._repo.update(ENTRIES_TABLE, str(entry_id), patch)
        return entry

    def delete_entry(self, entry_id: UUID | str) -> None:
        self._repo.delete(ENTRIES_TABLE, str(entry_id))

    def list_entries(self) -> list[SitemapEntry]:
        return [SitemapEntry.model_validate(r) for r in self._repo.find(ENTRIES_TABLE, order_by="url")]

    # --- exclusions ---

    def add_exclusion(self, url_pattern: str, reason: str | None = None) -> SitemapExclusion:
        if not url_pattern.strip():
            raise ValidationError.single("pattern_required", "URL pattern is required", "url_pattern")
        exclusion = SitemapExclusion(url_pattern=url_pattern.strip(), reason=reason)
        self._repo.insert(EXCLUSIONS_TABLE, exclusion.model_dump(mode="json"))
        return exclusion

    def delete_exclusion(self, exclusion_id: UUID | str) -> None:
        self._repo.delete(EXCLUSIONS_TABLE, str(exclusion_id))

    def list_exclusions(self) -> list[SitemapExclusion]:
        return [SitemapExclusion.model_validate(r) for r in self._repo.find(EXCLUSIONS_TABLE)]

    def is_excluded(self, url: str, exclusions: list[SitemapExclusion] | None = None) -> bool:
        if exclusions is None:
            exclusions = self.list_exclusions()
        path = urlsplit(url).path or "/"
        for exclusion in exclusions:
            regex = _pattern_regex(exclusion.url_pattern)
            if regex.match(url) or regex.match(path):
                return True
        return False

    # --- build ---

    def _url(self, path: str) -> str:
        return self._base + ("" if path == "/" else path)

    def build(self) -> list[SitemapUrl]:
        now = self._clock.now_utc()
        urls: list[SitemapUrl] = []

        for path, priority, freq in STATIC_PAGES:
            urls.append(SitemapUrl(self._url(path), now, freq, priority))

        for table in ("apps", "games"):
            for row in self._repo.find(table, {"status": "published"}, order_by="slug"):
                urls.append(
                    SitemapUrl(
                        self._url(f"/app/{row['slug']}"),
                        _parse_time(row.get("updated_at"), now),
                        "weekly",
                        0.7,
                    )
                )

        for row in self._repo.find("blogs", {"status": "published"}, order_by="slug"):
            urls.append(
                SitemapUrl(
                    self._url(f"/{row['slug']}"),
                    _parse_time(row.get("updated_at"), now),
                    "monthly",
                    0.6,
                )
            )

        for row in self._repo.find("categories", order_by="slug"):
            prefix = "/blogs/category" if row.get("type") == "blog" else "/category"
            urls.append(
                SitemapUrl(
                    self._url(f"{prefix}/{row['slug']}"),
                    _parse_time(row.get("updated_at"), now),
                    "monthly",
                    0.6,
                )
            )

        for row in self._repo.find("publishers", order_by="slug"):
            urls.append(
                SitemapUrl(
                    self._url(f"/publisher/{row['slug']}"),
                    _parse_time(row.get("updated_at"), now),
                    "weekly",
                    0.6,
                )
            )

        for row in self._repo.find("tags", order_by="slug"):
            urls.append(
                SitemapUrl(
                    self._url(f"/blogs/tag/{row['slug']}"),
                    _parse_time(row.get("created_at"), now),
                    "weekly",
                    0.5,
                )
            )

        for entry in self.list_entries():
            if not entry.include_in_sitemap:
                continue
            loc = entry.url if entry.url.startswith(("http://", "https://")) else self._url(entry.url)
            urls.append(SitemapUrl(loc, entry.last_modified, entry.change_frequency, entry.priority))

        # Apps and games share /app/{slug}; the first URL for a location wins.
        unique: dict[str, SitemapUrl] = {}
        for url in urls:
            unique.setdefault(url.loc, url)

        exclusions = self.list_exclusions()
        kept = [u for u in unique.values() if not self.is_excluded(u.loc, exclusions)]
        if len(kept) != len(unique):
            logger.info("Sitemap: %d URLs excluded by pattern", len(unique) - len(kept))
        return kept

    def render_xml(self, urls: list[SitemapUrl] | None = None) -> str:
        if urls is None:
            urls = self.build()
        urlset = ET.Element("urlset", xmlns=SITEMAP_NS)
        for url in urls:
            node = ET.SubElement(urlset, "url")
            ET.SubElement(node, "loc").text = url.loc
            ET.SubElement(node, "lastmod").text = url.lastmod.isoformat()
            ET.SubElement(node, "changefreq").text = url.changefreq
            ET.SubElement(node, "priority").text = f"{url.priority:.1f}"
        body = ET.tostring(urlset, encoding="unicode")
        return '<?xml version="1.0" encoding="UTF-8"?>\n' + body
