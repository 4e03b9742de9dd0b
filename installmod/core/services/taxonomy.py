"""Categories and blog tags. Slugs go through the same resolver as content."""

from __future__ import annotations

from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from installmod.core.services.slugs import SlugResolver
from installmod.domain.entities import KIND_TABLES, Category, Tag
from installmod.domain.errors import NotFoundError, ValidationError
from installmod.ports.clock import ClockPort
from installmod.ports.repo import ContentRepoPort


class TaxonomyService:
    def __init__(self, repo: ContentRepoPort, clock: ClockPort, slugs: SlugResolver) -> None:
        self._repo = repo
        self._clock = clock
        self._slugs = slugs

    def create_category(self, name: str, type: str, description: str = "") -> Category:
        if not name.strip():
            raise ValidationError.single("name_required", "Name is required", "name")
        now = self._clock.now_utc()
        slug = self._slugs.resolve_unique_slug(name, "categories")
        try:
            category = Category(
                name=name.strip(),
                slug=slug,
                type=type,  # type: ignore[arg-type]
                description=description,
                created_at=now,
                updated_at=now,
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e
        self._repo.insert("categories", category.model_dump(mode="json"))
        return category

    def get_category(self, category_id: UUID | str) -> Category:
        row = self._repo.get("categories", str(category_id))
        if row is None:
            raise NotFoundError(f"Category {category_id} not found")
        return Category.model_validate(row)

    def list_categories(self, type: str | None = None) -> list[Category]:
        where = {"type": type} if type else None
        return [Category.model_validate(r) for r in self._repo.find("categories", where, order_by="name")]

    def delete_category(self, category_id: UUID | str) -> None:
        """Refuses while any app, game or blog post still uses the category."""
        in_use = sum(
            self._repo.count(table, {"category_id": str(category_id)}) for table in KIND_TABLES.values()
        )
        if in_use:
            raise ValidationError.single(
                "category_in_use",
                f"Category is used by {in_use} record(s); reassign them first",
                "category_id",
            )
        self._repo.delete("categories", str(category_id))

    def create_tag(self, name: str) -> Tag:
        if not name.strip():
            raise ValidationError.single("name_required", "Name is required", "name")
        tag = Tag(
            name=name.strip(),
            slug=self._slugs.resolve_unique_slug(name, "tags"),
            created_at=self._clock.now_utc(),
        )
        self._repo.insert("tags", tag.model_dump(mode="json"))
        return tag

    def list_tags(self) -> list[Tag]:
        return [Tag.model_validate(r) for r in self._repo.find("tags", order_by="name")]

    def delete_tag(self, tag_id: UUID | str) -> None:
        """Removes the tag and every blog's link to it."""
        with self._repo.transaction():
            self._repo.delete_where("blog_tags", {"tag_id": str(tag_id)})
            self._repo.delete("tags", str(tag_id))
