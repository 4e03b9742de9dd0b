"""
Dependent association replacement.

Mod features, screenshots, blog tags and related content hang off a
content record. A save replaces the whole set: delete every row for the
owner, then insert the current items. Ordered kinds store position = index.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from installmod.domain.entities import (
    KIND_TABLES,
    Association,
    BlogTag,
    ModFeature,
    RelatedContent,
    Screenshot,
)
from installmod.domain.errors import FieldError, ValidationError
from installmod.ports.repo import ContentRepoPort


@dataclass(frozen=True)
class AssociationKind:
    name: str
    table: str
    model: type[Association]
    payload_field: str
    content_types: frozenset[str]
    ordered: bool = False


ASSOCIATION_KINDS: dict[str, AssociationKind] = {
    "mod_features": AssociationKind(
        name="mod_features",
        table="mod_features",
        model=ModFeature,
        payload_field="feature",
        content_types=frozenset({"app", "game"}),
    ),
    "screenshots": AssociationKind(
        name="screenshots",
        table="screenshots",
        model=Screenshot,
        payload_field="url",
        content_types=frozenset({"app", "game"}),
        ordered=True,
    ),
    "blog_tags": AssociationKind(
        name="blog_tags",
        table="blog_tags",
        model=BlogTag,
        payload_field="tag_id",
        content_types=frozenset({"blog"}),
    ),
    "related_content": AssociationKind(
        name="related_content",
        table="related_content",
        model=RelatedContent,
        payload_field="related_id",
        content_types=frozenset({"app", "game"}),
        ordered=True,
    ),
}


def get_kind(name: str) -> AssociationKind:
    try:
        return ASSOCIATION_KINDS[name]
    except KeyError:
        raise ValidationError.single(
            "association_unknown", f"Unknown association kind '{name}'", "associations"
        ) from None


def kinds_for(content_type: str) -> list[AssociationKind]:
    return [k for k in ASSOCIATION_KINDS.values() if content_type in k.content_types]


class AssociationService:
    def __init__(self, repo: ContentRepoPort) -> None:
        self._repo = repo

    def build(
        self,
        content_id: UUID,
        content_type: str,
        kind: AssociationKind,
        items: Sequence[Any],
    ) -> list[Association]:
        """
        Turn raw items into association models.

        A plain value is taken as the kind's payload field; a mapping may
        carry extra payload (related_type for related content).
        """
        if content_type not in kind.content_types:
            raise ValidationError.single(
                "association_not_allowed",
                f"'{kind.name}' cannot be attached to '{content_type}' content",
                "associations",
            )

        built: list[Association] = []
        for index, item in enumerate(items):
            payload = dict(item) if isinstance(item, Mapping) else {kind.payload_field: item}
            payload.pop("id", None)
            payload.update(
                content_id=content_id,
                content_type=content_type,
                position=index if kind.ordered else None,
            )
            try:
                built.append(kind.model.model_validate(payload))
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic(e) from e
        self._check_targets(content_id, built)
        return built

    def _check_targets(self, content_id: UUID, built: Sequence[Association]) -> None:
        """Tags and related records must exist before they can be linked."""
        errors: list[FieldError] = []
        for association in built:
            if isinstance(association, BlogTag):
                if self._repo.get("tags", str(association.tag_id)) is None:
                    errors.append(
                        FieldError(
                            code="tag_missing",
                            message=f"Tag {association.tag_id} does not exist",
                            field="associations",
                        )
                    )
            elif isinstance(association, RelatedContent):
                table = KIND_TABLES[association.related_type]
                target = self._repo.get(table, str(association.related_id))
                if target is None or association.related_id == content_id:
                    errors.append(
                        FieldError(
                            code="related_missing",
                            message=f"No {association.related_type} {association.related_id} to relate to",
                            field="associations",
                        )
                    )
        if errors:
            raise ValidationError(errors)

    def replace(
        self,
        content_id: UUID,
        content_type: str,
        kind_name: str,
        items: Sequence[Any],
    ) -> list[Association]:
        """Full replace of one association kind for one owner."""
        kind = get_kind(kind_name)
        built = self.build(content_id, content_type, kind, items)

        with self._repo.transaction():
            self._repo.delete_where(
                kind.table, {"content_id": str(content_id), "content_type": content_type}
            )
            for association in built:
                self._repo.insert(kind.table, association.model_dump(mode="json"))
        return built

    def list(self, content_id: UUID, content_type: str, kind_name: str) -> list[Association]:
        kind = get_kind(kind_name)
        rows = self._repo.find(
            kind.table,
            {"content_id": str(content_id), "content_type": content_type},
            order_by="position" if kind.ordered else None,
        )
        return [kind.model.model_validate(row) for row in rows]

    def delete_all(self, content_id: UUID, content_type: str) -> int:
        removed = 0
        for kind in kinds_for(content_type):
            removed += self._repo.delete_where(
                kind.table, {"content_id": str(content_id), "content_type": content_type}
            )
        return removed

    def unlink_target(self, target_id: UUID, target_type: str) -> int:
        """Drop every related-content link that points at the given record."""
        return self._repo.delete_where(
            "related_content", {"related_id": str(target_id), "related_type": target_type}
        )
