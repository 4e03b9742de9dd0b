"""
Version / audit trail for blog posts.

Each snapshot of title, content and excerpt gets the next per-record
version number. Rows are append-only; restoring a version only copies its
text back onto an unsaved record, so the next save appends a new version.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

from installmod.domain.entities import VERSIONED_FIELDS, ContentRecord, Version, utcnow
from installmod.domain.errors import NotFoundError
from installmod.ports.repo import ContentRepoPort

logger = logging.getLogger(__name__)


def snapshot(record: ContentRecord) -> dict[str, str]:
    """Versioned text fields of a record."""
    return {name: getattr(record, name, "") or "" for name in VERSIONED_FIELDS}


def text_changed(before: ContentRecord, after: ContentRecord) -> bool:
    return snapshot(before) != snapshot(after)


class VersionTrail:
    TABLE = "blog_versions"

    def __init__(self, repo: ContentRepoPort) -> None:
        self._repo = repo

    def latest_number(self, record_id: UUID | str) -> int:
        rows = self._repo.find(
            self.TABLE,
            {"record_id": str(record_id)},
            order_by="version_number",
            descending=True,
            limit=1,
        )
        return int(rows[0]["version_number"]) if rows else 0

    def record_version(
        self,
        record_id: UUID | str,
        fields: Mapping[str, Any],
        author_id: UUID | None = None,
        now: datetime | None = None,
    ) -> Version:
        """Append the next version for `record_id`."""
        number = self.latest_number(record_id) + 1
        version = Version(
            record_id=UUID(str(record_id)),
            version_number=number,
            title=fields.get("title") or "",
            content=fields.get("content") or "",
            excerpt=fields.get("excerpt") or "",
            created_at=now or utcnow(),
            created_by=author_id,
        )
        self._repo.insert(self.TABLE, version.model_dump(mode="json"))
        logger.info("Recorded version %d for %s", number, record_id)
        return version

    def list_versions(self, record_id: UUID | str) -> list[Version]:
        """Newest first."""
        rows = self._repo.find(
            self.TABLE,
            {"record_id": str(record_id)},
            order_by="version_number",
            descending=True,
        )
        return [Version.model_validate(row) for row in rows]

    def get_version(self, record_id: UUID | str, version_number: int) -> Version:
        rows = self._repo.find(
            self.TABLE,
            {"record_id": str(record_id), "version_number": version_number},
            limit=1,
        )
        if not rows:
            raise NotFoundError(f"Version {version_number} of {record_id} not found")
        return Version.model_validate(rows[0])

    def restore_version(self, record: ContentRecord, version_number: int) -> ContentRecord:
        """
        Copy a historical snapshot onto an unsaved copy of `record`.

        Nothing is written. Saving the returned record appends a new version.
        """
        version = self.get_version(record.id, version_number)
        restored = {name: getattr(version, name) for name in VERSIONED_FIELDS}
        return record.model_copy(update=restored)

    def delete_all(self, record_id: UUID | str) -> int:
        """Drop the trail of a deleted record."""
        return self._repo.delete_where(self.TABLE, {"record_id": str(record_id)})
