"""
Slug uniqueness resolution.

The unique index on each content table is the authoritative guard; this
lookup only avoids a round trip that is certain to fail.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from uuid import UUID

from installmod.domain.errors import SlugGenerationFailed, ValidationError
from installmod.domain.slugs import generate_slug, new_disambiguator
from installmod.ports.repo import ContentRepoPort

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5


class SlugResolver:
    def __init__(
        self,
        repo: ContentRepoPort,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        disambiguator_length: int = 8,
        token_factory: Callable[[int], str] | None = None,
    ) -> None:
        self._repo = repo
        self._max_attempts = max_attempts
        self._length = disambiguator_length
        self._token_factory = token_factory or new_disambiguator

    def is_taken(self, slug: str, table: str, exclude_id: UUID | str | None = None) -> bool:
        rows = self._repo.find(table, {"slug": slug})
        excluded = str(exclude_id) if exclude_id is not None else None
        return any(str(row["id"]) != excluded for row in rows)

    def resolve_unique_slug(
        self,
        title: str,
        table: str,
        exclude_id: UUID | str | None = None,
    ) -> str:
        """
        Return a slug for `title` that no other row in `table` holds.

        Raises ValidationError when the title yields an empty slug and
        SlugGenerationFailed when every disambiguated candidate collides.
        """
        candidate = generate_slug(title)
        if not candidate:
            raise ValidationError.single(
                "slug_empty",
                "Title must contain at least one letter or digit",
                "title",
            )

        if not self.is_taken(candidate, table, exclude_id):
            return candidate

        for attempt in range(1, self._max_attempts + 1):
            disambiguated = generate_slug(title, self._token_factory(self._length))
            logger.info(
                "Slug '%s' taken in %s, trying '%s' (attempt %d/%d)",
                candidate,
                table,
                disambiguated,
                attempt,
                self._max_attempts,
            )
            if not self.is_taken(disambiguated, table, exclude_id):
                return disambiguated

        raise SlugGenerationFailed(title, self._max_attempts)

