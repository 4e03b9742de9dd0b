"""
Homepage curation: the hand-ordered trending and latest lists.

Lists are small, so every change rewrites the whole list with positions
0..n-1 inside one transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from installmod.domain.entities import KIND_TABLES, HomepageFeature, utcnow
from installmod.domain.errors import NotFoundError, ValidationError
from installmod.ports.repo import ContentRepoPort

logger = logging.getLogger(__name__)

TABLE = "homepage_features"


class CurationService:
    def __init__(self, repo: ContentRepoPort) -> None:
        self._repo = repo

    def entries(self, list_name: str) -> list[HomepageFeature]:
        rows = self._repo.find(TABLE, {"list_name": list_name}, order_by="position")
        return [HomepageFeature.model_validate(row) for row in rows]

    def set_list(
        self,
        list_name: str,
        items: Iterable[tuple[UUID | str, str]],
    ) -> list[HomepageFeature]:
        """
        Replace a list with `items` ((content_id, content_type) pairs).

        Duplicates keep their first position.
        """
        seen: set[str] = set()
        features: list[HomepageFeature] = []
        now = utcnow()
        for content_id, content_type in items:
            key = str(content_id)
            if key in seen:
                continue
            seen.add(key)
            try:
                features.append(
                    HomepageFeature(
                        list_name=list_name,
                        content_id=content_id,
                        content_type=content_type,
                        position=len(features),
                        created_at=now,
                    )
                )
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic(e) from e

        with self._repo.transaction():
            self._repo.delete_where(TABLE, {"list_name": list_name})
            for feature in features:
                self._repo.insert(TABLE, feature.model_dump(mode="json"))
        logger.info("Homepage list '%s' now holds %d entries", list_name, len(features))
        return features

    def add(self, list_name: str, content_id: UUID | str, content_type: str) -> list[HomepageFeature]:
        pairs = [(f.content_id, f.content_type) for f in self.entries(list_name)]
        pairs.append((content_id, content_type))
        return self.set_list(list_name, pairs)

    def remove(self, list_name: str, content_id: UUID | str) -> list[HomepageFeature]:
        pairs = [
            (f.content_id, f.content_type)
            for f in self.entries(list_name)
            if str(f.content_id) != str(content_id)
        ]
        return self.set_list(list_name, pairs)

    def move(self, list_name: str, content_id: UUID | str, offset: int) -> list[HomepageFeature]:
        """Shift an entry by `offset` places, clamped to the list bounds."""
        current = self.entries(list_name)
        index = next((i for i, f in enumerate(current) if str(f.content_id) == str(content_id)), None)
        if index is None:
            raise NotFoundError(f"{content_id} is not on the '{list_name}' list")
        target = max(0, min(len(current) - 1, index + offset))
        entry = current.pop(index)
        current.insert(target, entry)
        return self.set_list(list_name, [(f.content_id, f.content_type) for f in current])

    def get_list(self, list_name: str) -> list[dict[str, Any]]:
        """Live records on the list, in list order."""
        records: list[dict[str, Any]] = []
        for feature in self.entries(list_name):
            row = self._repo.get(KIND_TABLES[feature.content_type], str(feature.content_id))
            if row is None or row.get("status") != "published":
                continue
            records.append({**row, "content_type": feature.content_type, "position": feature.position})
        return records
