import re

import pytest

from installmod.domain.errors import NotFoundError, ValidationError


def test_create_issues_slug(ctx):
    publisher = ctx.publisher_service.create("Krafton Inc.", "Makers of PUBG", " https://krafton.com ")
    assert publisher.slug == "krafton-inc"
    assert publisher.website == "https://krafton.com"
    assert ctx.publisher_service.get_by_slug("krafton-inc").id == publisher.id


def test_duplicate_names_get_disambiguated(ctx):
    ctx.publisher_service.create("Supercell")
    second = ctx.publisher_service.create("Supercell!")
    assert re.fullmatch(r"supercell-[0-9a-f]{8}", second.slug)


def test_name_required(ctx):
    with pytest.raises(ValidationError):
        ctx.publisher_service.create("  ")
    with pytest.raises(ValidationError):
        ctx.publisher_service.create("!!!")


def test_rename_reslugs_other_edits_do_not(ctx, clock):
    publisher = ctx.publisher_service.create("Moon Studio")
    clock.advance(30)

    edited = ctx.publisher_service.update(publisher.id, {"description": "Indie"})
    assert edited.slug == "moon-studio"
    assert edited.updated_at == clock.now_utc()

    renamed = ctx.publisher_service.update(publisher.id, {"name": "Moon Studio Games"})
    assert renamed.slug == "moon-studio-games"
    assert ctx.publisher_service.get(publisher.id).slug == "moon-studio-games"


def test_update_rejects_server_fields(ctx):
    publisher = ctx.publisher_service.create("Moon Studio")
    with pytest.raises(ValidationError) as exc:
        ctx.publisher_service.update(publisher.id, {"slug": "hand-made"})
    assert exc.value.errors[0].code == "field_not_editable"


def test_list_and_delete(ctx):
    b = ctx.publisher_service.create("Beta")
    ctx.publisher_service.create("Alpha")
    assert [p.name for p in ctx.publisher_service.list()] == ["Alpha", "Beta"]

    ctx.publisher_service.delete(b.id)
    with pytest.raises(NotFoundError):
        ctx.publisher_service.get(b.id)


def test_list_content_is_live_and_by_name(ctx, game_category):
    ctx.publisher_service.create("Krafton")
    content = ctx.content_service
    content.create(
        "game",
        {
            "title": "PUBG Mobile",
            "category_id": game_category.id,
            "publisher": "Krafton",
            "status": "published",
        },
    )
    content.create("game", {"title": "Unreleased", "category_id": game_category.id, "publisher": "Krafton"})
    content.create("blog", {"title": "Krafton news", "publisher": "Krafton", "status": "published"})
    content.create("blog", {"title": "Other", "publisher": "Someone", "status": "published"})

    grouped = ctx.publisher_service.list_content("krafton")
    assert [r.title for r in grouped["game"]] == ["PUBG Mobile"]
    assert [r.title for r in grouped["blog"]] == ["Krafton news"]
    assert grouped["app"] == []

    with pytest.raises(NotFoundError):
        ctx.publisher_service.list_content("nobody")
