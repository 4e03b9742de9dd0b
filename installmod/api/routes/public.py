"""
Public read surface.

Only live (published) records are visible. Stored media paths are turned
into servable URLs on the way out.
"""

from typing import Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from installmod.api.deps import get_context
from installmod.api.schemas import CommentCreateRequest, ErrorBatchRequest
from installmod.app_shell.context import ServiceContext
from installmod.domain.entities import ContentKind, ContentRecord

router = APIRouter()

# record field -> media bucket key in rules.media.buckets
MEDIA_FIELDS = {
    "icon_url": "icons",
    "featured_image": "blog_images",
}


def _bucket(ctx: ServiceContext, key: str) -> str | None:
    return ctx.rules.media.buckets.get(key)


def present(ctx: ServiceContext, record: ContentRecord | dict[str, Any]) -> dict[str, Any]:
    data = record.model_dump(mode="json") if isinstance(record, ContentRecord) else dict(record)
    for name, bucket_key in MEDIA_FIELDS.items():
        if name in data:
            data[name] = ctx.media.resolve(data[name], _bucket(ctx, bucket_key))
    return data


@router.get("/api/public/homepage/{list_name}")
def homepage_list(
    list_name: Literal["trending", "latest"],
    ctx: ServiceContext = Depends(get_context),
) -> list[dict[str, Any]]:
    return [present(ctx, row) for row in ctx.curation_service.get_list(list_name)]


@router.post("/api/public/comments", status_code=201)
def submit_comment(
    req: CommentCreateRequest, ctx: ServiceContext = Depends(get_context)
) -> dict[str, Any]:
    comment = ctx.comment_service.submit(
        req.content_id, req.content_type, req.name, req.email, req.message, req.reply_to
    )
    return {"id": str(comment.id), "status": comment.status}


@router.get("/api/public/publishers/{slug}")
def publisher_profile(slug: str, ctx: ServiceContext = Depends(get_context)) -> dict[str, Any]:
    publisher = ctx.publisher_service.get_by_slug(slug)
    content = ctx.publisher_service.list_content(slug)
    data = publisher.model_dump(mode="json")
    data["content"] = {kind: [present(ctx, r) for r in records] for kind, records in content.items()}
    return data


@router.get("/api/public/task-popup/{app_id}")
def task_popup(app_id: UUID, ctx: ServiceContext = Depends(get_context)) -> dict[str, Any]:
    """The popup to show before the app downloads; null means download straight away."""
    config = ctx.task_popup_service.popup_for(app_id)
    return {"popup": config.model_dump(mode="json") if config is not None else None}


@router.post("/api/public/{kind}/{slug}/download")
def record_download(
    kind: ContentKind, slug: str, ctx: ServiceContext = Depends(get_context)
) -> dict[str, Any]:
    record = ctx.content_service.get_live_by_slug(kind, slug)
    return {"download_count": ctx.content_service.record_download(kind, record.id)}


@router.post("/api/public/blog/{slug}/view")
def record_view(slug: str, ctx: ServiceContext = Depends(get_context)) -> dict[str, Any]:
    record = ctx.content_service.get_live_by_slug("blog", slug)
    return {"view_count": ctx.content_service.record_view(record.id)}


@router.get("/api/public/{kind}")
def list_live(
    kind: ContentKind,
    limit: int | None = None,
    offset: int = 0,
    ctx: ServiceContext = Depends(get_context),
) -> list[dict[str, Any]]:
    records = ctx.content_service.list_live(kind, limit=limit, offset=offset)
    return [present(ctx, r) for r in records]


@router.get("/api/public/{kind}/{slug}")
def get_live(
    kind: ContentKind,
    slug: str,
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, Any]:
    record = ctx.content_service.get_live_by_slug(kind, slug)
    data = present(ctx, record)

    if kind == "blog":
        data["tags"] = [
            str(t.tag_id) for t in ctx.association_service.list(record.id, kind, "blog_tags")  # type: ignore[attr-defined]
        ]
    else:
        data["mod_features"] = [
            f.feature for f in ctx.association_service.list(record.id, kind, "mod_features")  # type: ignore[attr-defined]
        ]
        data["screenshots"] = [
            ctx.media.resolve(s.url, _bucket(ctx, "screenshots"))  # type: ignore[attr-defined]
            for s in ctx.association_service.list(record.id, kind, "screenshots")
        ]
    data["comments"] = [
        c.model_dump(mode="json", exclude={"email"})
        for c in ctx.comment_service.list_approved_for(record.id, kind)
    ]
    return data


@router.get("/api/search")
def search(
    q: str = "",
    limit: int | None = None,
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, Any]:
    return {"results": ctx.search_service.search(q, limit)}


@router.post("/api/log-error")
def log_error(req: ErrorBatchRequest, ctx: ServiceContext = Depends(get_context)) -> JSONResponse:
    if not req.errors:
        return JSONResponse({"success": False, "message": "No errors provided"}, status_code=400)
    entries = ctx.error_log_service.record_batch(
        [e.model_dump(exclude_none=True) for e in req.errors]
    )
    return JSONResponse({"success": True, "count": len(entries)})


@router.get("/sitemap.xml")
def sitemap(ctx: ServiceContext = Depends(get_context)) -> Response:
    return Response(content=ctx.sitemap_service.render_xml(), media_type="application/xml")
