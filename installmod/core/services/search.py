"""
Storefront search across apps, games, blog posts, categories and tags.

Content results are live records only. Each group is capped separately.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from installmod.ports.repo import ContentRepoPort

DEFAULT_LIMIT = 5


@dataclass(frozen=True)
class SearchTarget:
    table: str
    columns: tuple[str, ...]
    order_by: str
    descending: bool
    live_only: bool
    fields: tuple[str, ...]


SEARCH_TARGETS: dict[str, SearchTarget] = {
    "apps": SearchTarget(
        table="apps",
        columns=("title", "description"),
        order_by="download_count",
        descending=True,
        live_only=True,
        fields=("id", "title", "slug", "icon_url", "version", "size", "category_id"),
    ),
    "games": SearchTarget(
        table="games",
        columns=("title", "description"),
        order_by="download_count",
        descending=True,
        live_only=True,
        fields=("id", "title", "slug", "icon_url", "version", "size", "category_id"),
    ),
    "blogs": SearchTarget(
        table="blogs",
        columns=("title", "content", "excerpt"),
        order_by="created_at",
        descending=True,
        live_only=True,
        fields=("id", "title", "slug", "excerpt", "featured_image", "created_at"),
    ),
    "categories": SearchTarget(
        table="categories",
        columns=("name", "description"),
        order_by="name",
        descending=False,
        live_only=False,
        fields=("id", "name", "slug", "type"),
    ),
    "tags": SearchTarget(
        table="tags",
        columns=("name",),
        order_by="name",
        descending=False,
        live_only=False,
        fields=("id", "name", "slug"),
    ),
}


class SearchService:
    def __init__(self, repo: ContentRepoPort, default_limit: int = DEFAULT_LIMIT) -> None:
        self._repo = repo
        self._default_limit = default_limit

    def search(self, query: str, limit: int | None = None) -> dict[str, list[dict[str, Any]]]:
        """Grouped results; an empty query returns empty groups."""
        term = (query or "").strip()
        if not term:
            return {name: [] for name in SEARCH_TARGETS}

        limit = limit if limit and limit > 0 else self._default_limit
        results: dict[str, list[dict[str, Any]]] = {}
        for name, target in SEARCH_TARGETS.items():
            rows = self._repo.search(
                target.table,
                term,
                target.columns,
                {"status": "published"} if target.live_only else None,
                order_by=target.order_by,
                descending=target.descending,
                limit=limit,
            )
            results[name] = [{f: row.get(f) for f in target.fields} for row in rows]
        return results
