"""
Publishers behind apps, games and blog posts.

A publisher has its own slug, issued by the same resolver as content.
Content rows name their publisher in free text, so the profile listing
matches on the publisher's name.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from installmod.core.services.slugs import SlugResolver
from installmod.domain.entities import KIND_TABLES, RECORD_MODELS, ContentRecord, Publisher
from installmod.domain.errors import (
    NotFoundError,
    RepositoryError,
    SlugGenerationFailed,
    ValidationError,
)
from installmod.ports.clock import ClockPort
from installmod.ports.repo import ContentRepoPort

logger = logging.getLogger(__name__)

TABLE = "publishers"

EDITABLE_FIELDS = frozenset({"name", "description", "website"})


class PublisherService:
    def __init__(self, repo: ContentRepoPort, clock: ClockPort, slugs: SlugResolver) -> None:
        self._repo = repo
        self._clock = clock
        self._slugs = slugs

    def create(self, name: str, description: str = "", website: str = "") -> Publisher:
        if not name.strip():
            raise ValidationError.single("name_required", "Publisher name is required", "name")
        now = self._clock.now_utc()
        publisher = self._build(
            {
                "name": name.strip(),
                "slug": self._slugs.resolve_unique_slug(name, TABLE),
                "description": description,
                "website": website.strip(),
                "created_at": now,
                "updated_at": now,
            }
        )
        self._write(publisher, lambda row: self._repo.insert(TABLE, row))
        logger.info("Created publisher %s (slug=%s)", publisher.id, publisher.slug)
        return publisher

    def update(self, publisher_id: UUID | str, changes: dict[str, Any]) -> Publisher:
        """Edit name, description or website; a new name gets a new slug."""
        current = self.get(publisher_id)
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError.single(
                "field_not_editable", f"Cannot edit {', '.join(sorted(unknown))}", sorted(unknown)[0]
            )
        if "name" in changes and not str(changes["name"]).strip():
            raise ValidationError.single("name_required", "Publisher name is required", "name")

        merged = current.model_dump()
        merged.update(changes)
        merged["updated_at"] = self._clock.now_utc()
        if "name" in changes:
            merged["name"] = str(changes["name"]).strip()
            if merged["name"] != current.name:
                merged["slug"] = self._slugs.resolve_unique_slug(
                    merged["name"], TABLE, exclude_id=current.id
                )
        publisher = self._build(merged)

        def write(row: dict[str, Any]) -> Any:
            row.pop("id")
            return self._repo.update(TABLE, str(current.id), row)

        self._write(publisher, write)
        return publisher

    def get(self, publisher_id: UUID | str) -> Publisher:
        row = self._repo.get(TABLE, str(publisher_id))
        if row is None:
            raise NotFoundError(f"Publisher {publisher_id} not found")
        return Publisher.model_validate(row)

    def get_by_slug(self, slug: str) -> Publisher:
        rows = self._repo.find(TABLE, {"slug": slug}, limit=1)
        if not rows:
            raise NotFoundError(f"No publisher with slug '{slug}'")
        return Publisher.model_validate(rows[0])

    def list(self) -> list[Publisher]:
        return [Publisher.model_validate(r) for r in self._repo.find(TABLE, order_by="name")]

    def delete(self, publisher_id: UUID | str) -> None:
        self._repo.delete(TABLE, str(publisher_id))

    def list_content(self, slug: str) -> dict[str, list[ContentRecord]]:
        """Live apps, games and posts credited to the publisher, newest first."""
        publisher = self.get_by_slug(slug)
        grouped: dict[str, list[ContentRecord]] = {}
        for kind, table in KIND_TABLES.items():
            rows = self._repo.find(
                table,
                {"publisher": publisher.name, "status": "published"},
                order_by="published_at",
                descending=True,
            )
            grouped[kind] = [RECORD_MODELS[kind].model_validate(r) for r in rows]
        return grouped

    # --- internals ---

    @staticmethod
    def _build(data: dict[str, Any]) -> Publisher:
        try:
            return Publisher.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

    @staticmethod
    def _write(publisher: Publisher, write: Callable[[dict[str, Any]], Any]) -> None:
        try:
            write(publisher.model_dump(mode="json"))
        except RepositoryError as e:
            if e.constraint == "unique":
                raise SlugGenerationFailed(publisher.name, 1) from e
            raise
