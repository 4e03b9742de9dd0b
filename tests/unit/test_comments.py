from uuid import uuid4

import pytest

from installmod.domain.errors import NotFoundError, ValidationError


@pytest.fixture
def post(ctx):
    return ctx.content_service.create("blog", {"title": "Open thread", "status": "published"}).record


def submit(ctx, post, **overrides):
    data = {"name": "Sam", "email": "sam@example.com", "message": "Nice mod!"}
    data.update(overrides)
    return ctx.comment_service.submit(post.id, "blog", **data)


def test_new_comments_are_pending(ctx, post, clock):
    comment = submit(ctx, post)
    assert comment.status == "pending"
    assert comment.created_at == clock.now_utc()
    assert ctx.comment_service.list_approved_for(post.id, "blog") == []


def test_approve_makes_visible(ctx, post):
    comment = submit(ctx, post)
    ctx.comment_service.approve(comment.id)
    assert [c.id for c in ctx.comment_service.list_approved_for(post.id, "blog")] == [comment.id]


def test_reject(ctx, post):
    comment = submit(ctx, post)
    assert ctx.comment_service.reject(comment.id).status == "rejected"
    assert [c.id for c in ctx.comment_service.list(status="rejected")] == [comment.id]


def test_validation_collects_all_errors(ctx, post):
    with pytest.raises(ValidationError) as exc:
        submit(ctx, post, name=" ", email="nope", message="")
    assert [e.code for e in exc.value.errors] == ["name_required", "email_invalid", "message_required"]


def test_draft_content_cannot_be_commented(ctx):
    draft = ctx.content_service.create("blog", {"title": "Draft"}).record
    with pytest.raises(NotFoundError):
        submit(ctx, draft)


def test_missing_content(ctx):
    with pytest.raises(NotFoundError):
        ctx.comment_service.submit(uuid4(), "game", "Sam", "sam@example.com", "hi")


def test_unknown_comment(ctx):
    with pytest.raises(NotFoundError):
        ctx.comment_service.approve(uuid4())


def test_delete(ctx, post):
    comment = submit(ctx, post)
    ctx.comment_service.delete(comment.id)
    assert ctx.comment_service.list() == []


def test_list_filters_content_type(ctx, post):
    submit(ctx, post)
    assert len(ctx.comment_service.list(content_type="blog")) == 1
    assert ctx.comment_service.list(content_type="app") == []
