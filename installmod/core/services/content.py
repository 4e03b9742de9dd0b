"""
ContentService - create, edit, publish and delete apps, games and blog posts.

Every save follows the same sequence:

1. validate required fields (before any repository call)
2. resolve a unique slug (create, or edit with a changed title)
3. apply the requested status through the state machine
4. write the record
5. replace dependent associations that were supplied
6. append a version when blog text changed

Consistency tiers:
- transactional: steps 4-6 share one repository transaction
- best_effort: step 4 commits on its own; each later step runs in its own
  transaction and a failure there is logged and reported as a warning
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from installmod.core.services.associations import AssociationService, get_kind
from installmod.core.services.slugs import SlugResolver
from installmod.core.services.versions import VersionTrail, snapshot, text_changed
from installmod.domain.entities import (
    KIND_TABLES,
    RECORD_MODELS,
    VERSIONED_KINDS,
    Association,
    ContentRecord,
    Version,
)
from installmod.domain.errors import (
    FieldError,
    NotFoundError,
    RepositoryError,
    SlugGenerationFailed,
    ValidationError,
)
from installmod.domain.state import check_consistency, transition
from installmod.ports.clock import ClockPort
from installmod.ports.events import ChangeFeedPort, ChangeHandler, Unsubscribe
from installmod.ports.repo import ContentRepoPort

logger = logging.getLogger(__name__)

ConsistencyTier = Literal["transactional", "best_effort"]
CONSISTENCY_TIERS: tuple[str, ...] = ("transactional", "best_effort")

# Fields the service owns; callers cannot set them directly.
SERVER_FIELDS = frozenset({"id", "slug", "created_at", "updated_at", "published_at"})

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


@dataclass
class SaveResult:
    """Outcome of a create or update."""

    record: ContentRecord
    version: Version | None = None
    associations: dict[str, list[Association]] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


def table_for(kind: str) -> str:
    try:
        return KIND_TABLES[kind]
    except KeyError:
        raise ValidationError.single("unknown_kind", f"Unknown content kind '{kind}'", "kind") from None


def validate_content_fields(kind: str, record: ContentRecord) -> list[FieldError]:
    """
    Validate required fields.

    Returns list of validation errors (empty if valid).
    """
    errors: list[FieldError] = []

    if not record.title or not record.title.strip():
        errors.append(FieldError(code="title_required", message="Title is required", field="title"))

    if kind in ("app", "game") and getattr(record, "category_id", None) is None:
        errors.append(
            FieldError(code="category_required", message="Category is required", field="category_id")
        )

    return errors


class ContentService:
    def __init__(
        self,
        repo: ContentRepoPort,
        clock: ClockPort,
        slugs: SlugResolver,
        versions: VersionTrail,
        associations: AssociationService,
        change_feed: ChangeFeedPort | None = None,
        consistency: ConsistencyTier = "transactional",
        schedule_grace_seconds: int = 0,
    ) -> None:
        if consistency not in CONSISTENCY_TIERS:
            raise ValueError(f"Unknown consistency tier '{consistency}'")
        self._repo = repo
        self._clock = clock
        self._slugs = slugs
        self._versions = versions
        self._associations = associations
        self._feed = change_feed
        self._consistency = consistency
        self._grace = schedule_grace_seconds

    @property
    def consistency(self) -> str:
        return self._consistency

    # --- reads ---

    def _to_model(self, kind: str, row: Mapping[str, Any]) -> ContentRecord:
        return RECORD_MODELS[kind].model_validate(row)

    def get(self, kind: str, record_id: UUID | str) -> ContentRecord:
        row = self._repo.get(table_for(kind), str(record_id))
        if row is None:
            raise NotFoundError(f"{kind} {record_id} not found")
        return self._to_model(kind, row)

    def list(
        self,
        kind: str,
        status: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ContentRecord]:
        """Admin listing, any status, newest first."""
        where = {"status": status} if status else None
        rows = self._repo.find(
            table_for(kind), where, order_by="created_at", descending=True, limit=limit, offset=offset
        )
        return [self._to_model(kind, row) for row in rows]

    def list_live(self, kind: str, limit: int | None = None, offset: int = 0) -> list[ContentRecord]:
        rows = self._repo.find(
            table_for(kind),
            {"status": "published"},
            order_by="published_at",
            descending=True,
            limit=limit,
            offset=offset,
        )
        return [self._to_model(kind, row) for row in rows]

    def get_live_by_slug(self, kind: str, slug: str) -> ContentRecord:
        rows = self._repo.find(table_for(kind), {"slug": slug, "status": "published"}, limit=1)
        if not rows:
            raise NotFoundError(f"No published {kind} with slug '{slug}'")
        return self._to_model(kind, rows[0])

    # --- writes ---

    def create(
        self,
        kind: str,
        fields: Mapping[str, Any],
        associations: Mapping[str, Sequence[Any]] | None = None,
        author_id: UUID | None = None,
    ) -> SaveResult:
        table = table_for(kind)
        now = self._clock.now_utc()

        payload = {k: v for k, v in fields.items() if k not in SERVER_FIELDS}
        status = payload.pop("status", None) or "draft"
        scheduled_at = payload.pop("scheduled_at", None)
        if kind in VERSIONED_KINDS and author_id is not None and payload.get("author_id") is None:
            payload["author_id"] = author_id
        payload.update(created_at=now, updated_at=now)

        record = self._build(kind, payload)
        self._validate(kind, record)
        self._check_associations(record.id, kind, associations)

        record = transition(
            record.model_copy(update={"status": "draft", "scheduled_at": None}),
            kind,
            status,
            now,
            scheduled_at=scheduled_at,
            grace_seconds=self._grace,
        )

        def write_primary() -> ContentRecord:
            slug = self._slugs.resolve_unique_slug(record.title, table)
            staged = record.model_copy(update={"slug": slug})
            try:
                row = self._repo.insert(table, staged.model_dump(mode="json"))
            except RepositoryError as e:
                self._raise_if_slug_conflict(staged, e)
                raise
            return self._to_model(kind, row)

        steps = self._secondary_steps(kind, associations, version_author=author_id, now=now)
        result = self._persist(write_primary, steps, versioned=kind in VERSIONED_KINDS)
        logger.info(
            "Created %s %s (slug=%s, status=%s)",
            kind,
            result.record.id,
            result.record.slug,
            result.record.status,
        )
        return result

    def update(
        self,
        kind: str,
        record_id: UUID | str,
        patch: Mapping[str, Any],
        associations: Mapping[str, Sequence[Any]] | None = None,
        author_id: UUID | None = None,
    ) -> SaveResult:
        table = table_for(kind)
        current = self.get(kind, record_id)
        now = self._clock.now_utc()

        payload = {k: v for k, v in patch.items() if k not in SERVER_FIELDS}
        status = payload.pop("status", None)
        scheduled_at = payload.pop("scheduled_at", None)

        merged = current.model_dump()
        merged.update(payload)
        updated = self._build(kind, merged)
        self._validate(kind, updated)
        self._check_associations(current.id, kind, associations)

        if status is not None:
            updated = transition(updated, kind, status, now, scheduled_at=scheduled_at, grace_seconds=self._grace)
        elif scheduled_at is not None and updated.status == "scheduled":
            updated = transition(updated, kind, "scheduled", now, scheduled_at=scheduled_at, grace_seconds=self._grace)
        updated = updated.model_copy(update={"updated_at": now})
        check_consistency(updated)

        title_changed = updated.title != current.title
        versioned = kind in VERSIONED_KINDS and text_changed(current, updated)

        def write_primary() -> ContentRecord:
            staged = updated
            if title_changed:
                slug = self._slugs.resolve_unique_slug(staged.title, table, exclude_id=current.id)
                staged = staged.model_copy(update={"slug": slug})
            row = staged.model_dump(mode="json")
            row.pop("id")
            try:
                stored = self._repo.update(table, str(current.id), row)
            except RepositoryError as e:
                self._raise_if_slug_conflict(staged, e)
                raise
            return self._to_model(kind, stored)

        steps = self._secondary_steps(kind, associations, version_author=author_id, now=now)
        result = self._persist(write_primary, steps, versioned=versioned)
        if title_changed:
            logger.info("Title of %s %s changed, slug %s -> %s", kind, current.id, current.slug, result.record.slug)
        return result

    def transition(
        self,
        kind: str,
        record_id: UUID | str,
        status: str,
        scheduled_at: datetime | None = None,
    ) -> ContentRecord:
        """Status-only write; never records a version."""
        table = table_for(kind)
        current = self.get(kind, record_id)
        now = self._clock.now_utc()

        moved = transition(current, kind, status, now, scheduled_at=scheduled_at, grace_seconds=self._grace)
        patch = moved.model_dump(mode="json", include={"status", "scheduled_at", "published_at", "updated_at"})
        with self._repo.transaction():
            row = self._repo.update(table, str(current.id), patch)
        logger.info("%s %s: %s -> %s", kind, current.id, current.status, moved.status)
        return self._to_model(kind, row)

    def delete(self, kind: str, record_id: UUID | str) -> None:
        """Remove a record with its associations, versions, homepage slots and inbound links."""
        table = table_for(kind)
        current = self.get(kind, record_id)

        with self._repo.transaction():
            self._associations.delete_all(current.id, kind)
            self._associations.unlink_target(current.id, kind)
            if kind in VERSIONED_KINDS:
                self._versions.delete_all(current.id)
            self._repo.delete_where("homepage_features", {"content_id": str(current.id)})
            self._repo.delete_where("comments", {"content_id": str(current.id), "content_type": kind})
            self._repo.delete(table, str(current.id))
        logger.info("Deleted %s %s", kind, current.id)

    def restore_version(self, record_id: UUID | str, version_number: int) -> ContentRecord:
        """Unsaved blog post carrying the text of an earlier version."""
        record = self.get("blog", record_id)
        return self._versions.restore_version(record, version_number)

    def set_icon_bg_color(self, kind: str, record_id: UUID | str, color: str | None) -> ContentRecord:
        if kind not in ("app", "game"):
            raise ValidationError.single(
                "icon_color_unsupported", f"'{kind}' content has no icon", "icon_bg_color"
            )
        if color is not None and not _HEX_COLOR.match(color):
            raise ValidationError.single(
                "icon_color_invalid", "Color must look like #RRGGBB", "icon_bg_color"
            )
        table = table_for(kind)
        current = self.get(kind, record_id)
        row = self._repo.update(
            table,
            str(current.id),
            {"icon_bg_color": color, "updated_at": self._clock.now_utc().isoformat()},
        )
        if self._feed is not None:
            self._feed.publish(table, str(current.id), row)
        return self._to_model(kind, row)

    def record_download(self, kind: str, record_id: UUID | str) -> int:
        """Count one download of an app or game; returns the new total."""
        if kind not in ("app", "game"):
            raise ValidationError.single(
                "downloads_unsupported", f"'{kind}' content has no download", "kind"
            )
        return self._repo.increment(table_for(kind), str(record_id), "download_count")

    def record_view(self, record_id: UUID | str) -> int:
        return self._repo.increment("blogs", str(record_id), "view_count")

    def watch(self, kind: str, record_id: UUID | str, on_change: ChangeHandler) -> Unsubscribe:
        if self._feed is None:
            raise RuntimeError("No change feed configured")
        return self._feed.subscribe(table_for(kind), str(record_id), on_change)

    # --- internals ---

    def _build(self, kind: str, data: Mapping[str, Any]) -> ContentRecord:
        try:
            return RECORD_MODELS[kind].model_validate(dict(data))
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

    def _validate(self, kind: str, record: ContentRecord) -> None:
        errors = validate_content_fields(kind, record)
        category_id = getattr(record, "category_id", None)
        if category_id is not None:
            category = self._repo.get("categories", str(category_id))
            if category is None or category.get("type") != kind:
                errors.append(
                    FieldError(
                        code="category_invalid",
                        message=f"No {kind} category with id {category_id}",
                        field="category_id",
                    )
                )
        if errors:
            raise ValidationError(errors)

    def _check_associations(
        self,
        content_id: UUID,
        kind: str,
        associations: Mapping[str, Sequence[Any]] | None,
    ) -> None:
        for name, items in (associations or {}).items():
            self._associations.build(content_id, kind, get_kind(name), items)

    def _raise_if_slug_conflict(self, record: ContentRecord, error: RepositoryError) -> None:
        if error.constraint == "unique":
            logger.warning("Unique index rejected slug '%s': %s", record.slug, error.message)
            raise SlugGenerationFailed(record.title, 1) from error

    def _secondary_steps(
        self,
        kind: str,
        associations: Mapping[str, Sequence[Any]] | None,
        version_author: UUID | None,
        now: datetime,
    ) -> list[tuple[str, Callable[[ContentRecord], Any]]]:
        steps: list[tuple[str, Callable[[ContentRecord], Any]]] = []
        for name, items in (associations or {}).items():
            steps.append(
                (name, lambda rec, name=name, items=items: self._associations.replace(rec.id, kind, name, items))
            )
        steps.append(
            ("version", lambda rec: self._versions.record_version(rec.id, snapshot(rec), version_author, now))
        )
        return steps

    def _persist(
        self,
        write_primary: Callable[[], ContentRecord],
        steps: list[tuple[str, Callable[[ContentRecord], Any]]],
        versioned: bool,
    ) -> SaveResult:
        if not versioned:
            steps = [s for s in steps if s[0] != "version"]

        if self._consistency == "transactional":
            with self._repo.transaction():
                record = write_primary()
                committed = {name: step(record) for name, step in steps}
            return self._result(record, committed, [])

        with self._repo.transaction():
            record = write_primary()

        outcomes: dict[str, Any] = {}
        warnings: list[str] = []
        for name, step in steps:
            try:
                with self._repo.transaction():
                    outcomes[name] = step(record)
            except RepositoryError as e:
                logger.exception("Secondary write '%s' failed for %s", name, record.id)
                warnings.append(f"{name}: {e}")
        return self._result(record, outcomes, warnings)

    @staticmethod
    def _result(record: ContentRecord, outcomes: dict[str, Any], warnings: list[str]) -> SaveResult:
        version = outcomes.pop("version", None)
        return SaveResult(record=record, version=version, associations=outcomes, warnings=warnings)
