from typing import Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from installmod.api.deps import get_context
from installmod.api.schemas import (
    CategoryRequest,
    HomepageListRequest,
    HomepageMoveRequest,
    PublisherRequest,
    PublisherUpdateRequest,
    SitemapEntryRequest,
    SitemapEntryUpdateRequest,
    SitemapExclusionRequest,
    TagRequest,
    TaskPopupRequest,
)
from installmod.app_shell.context import ServiceContext

router = APIRouter()

HomepageListName = Literal["trending", "latest"]


# --- Categories & tags ---


@router.get("/categories")
def list_categories(
    type: str | None = None, ctx: ServiceContext = Depends(get_context)
) -> list[dict[str, Any]]:
    return [c.model_dump(mode="json") for c in ctx.taxonomy_service.list_categories(type)]


@router.post("/categories", status_code=201)
def create_category(req: CategoryRequest, ctx: ServiceContext = Depends(get_context)) -> dict[str, Any]:
    category = ctx.taxonomy_service.create_category(req.name, req.type, req.description)
    return category.model_dump(mode="json")


@router.delete("/categories/{category_id}", status_code=204)
def delete_category(category_id: UUID, ctx: ServiceContext = Depends(get_context)) -> Response:
    ctx.taxonomy_service.delete_category(category_id)
    return Response(status_code=204)


@router.get("/tags")
def list_tags(ctx: ServiceContext = Depends(get_context)) -> list[dict[str, Any]]:
    return [t.model_dump(mode="json") for t in ctx.taxonomy_service.list_tags()]


@router.post("/tags", status_code=201)
def create_tag(req: TagRequest, ctx: ServiceContext = Depends(get_context)) -> dict[str, Any]:
    return ctx.taxonomy_service.create_tag(req.name).model_dump(mode="json")


@router.delete("/tags/{tag_id}", status_code=204)
def delete_tag(tag_id: UUID, ctx: ServiceContext = Depends(get_context)) -> Response:
    ctx.taxonomy_service.delete_tag(tag_id)
    return Response(status_code=204)


# --- Publishers ---


@router.get("/publishers")
def list_publishers(ctx: ServiceContext = Depends(get_context)) -> list[dict[str, Any]]:
    return [p.model_dump(mode="json") for p in ctx.publisher_service.list()]


@router.post("/publishers", status_code=201)
def create_publisher(req: PublisherRequest, ctx: ServiceContext = Depends(get_context)) -> dict[str, Any]:
    publisher = ctx.publisher_service.create(req.name, req.description, req.website)
    return publisher.model_dump(mode="json")


@router.get("/publishers/{publisher_id}")
def get_publisher(publisher_id: UUID, ctx: ServiceContext = Depends(get_context)) -> dict[str, Any]:
    return ctx.publisher_service.get(publisher_id).model_dump(mode="json")


@router.patch("/publishers/{publisher_id}")
def update_publisher(
    publisher_id: UUID,
    req: PublisherUpdateRequest,
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, Any]:
    changes = req.model_dump(exclude_unset=True)
    return ctx.publisher_service.update(publisher_id, changes).model_dump(mode="json")


@router.delete("/publishers/{publisher_id}", status_code=204)
def delete_publisher(publisher_id: UUID, ctx: ServiceContext = Depends(get_context)) -> Response:
    ctx.publisher_service.delete(publisher_id)
    return Response(status_code=204)


# --- Task popup ---


@router.get("/task-popup")
def get_task_popup(ctx: ServiceContext = Depends(get_context)) -> dict[str, Any]:
    return ctx.task_popup_service.get_config().model_dump(mode="json")


@router.put("/task-popup")
def save_task_popup(req: TaskPopupRequest, ctx: ServiceContext = Depends(get_context)) -> dict[str, Any]:
    return ctx.task_popup_service.save_config(req.model_dump()).model_dump(mode="json")


# --- Homepage lists ---


@router.get("/homepage/{list_name}")
def get_homepage_list(
    list_name: HomepageListName, ctx: ServiceContext = Depends(get_context)
) -> list[dict[str, Any]]:
    return [f.model_dump(mode="json") for f in ctx.curation_service.entries(list_name)]


@router.put("/homepage/{list_name}")
def set_homepage_list(
    list_name: HomepageListName,
    req: HomepageListRequest,
    ctx: ServiceContext = Depends(get_context),
) -> list[dict[str, Any]]:
    features = ctx.curation_service.set_list(
        list_name, [(i.content_id, i.content_type) for i in req.items]
    )
    return [f.model_dump(mode="json") for f in features]


@router.post("/homepage/{list_name}/move")
def move_homepage_entry(
    list_name: HomepageListName,
    req: HomepageMoveRequest,
    ctx: ServiceContext = Depends(get_context),
) -> list[dict[str, Any]]:
    features = ctx.curation_service.move(list_name, req.content_id, req.offset)
    return [f.model_dump(mode="json") for f in features]


# --- Comments ---


@router.get("/comments")
def list_comments(
    status: str | None = None,
    content_type: str | None = None,
    ctx: ServiceContext = Depends(get_context),
) -> list[dict[str, Any]]:
    comments = ctx.comment_service.list(status=status, content_type=content_type)
    return [c.model_dump(mode="json") for c in comments]


@router.post("/comments/{comment_id}/approve")
def approve_comment(comment_id: UUID, ctx: ServiceContext = Depends(get_context)) -> dict[str, Any]:
    return ctx.comment_service.approve(comment_id).model_dump(mode="json")


@router.post("/comments/{comment_id}/reject")
def reject_comment(comment_id: UUID, ctx: ServiceContext = Depends(get_context)) -> dict[str, Any]:
    return ctx.comment_service.reject(comment_id).model_dump(mode="json")


@router.delete("/comments/{comment_id}", status_code=204)
def delete_comment(comment_id: UUID, ctx: ServiceContext = Depends(get_context)) -> Response:
    ctx.comment_service.delete(comment_id)
    return Response(status_code=204)


# --- Error logs ---


@router.get("/error-logs")
def list_error_logs(
    severity: str | None = None,
    limit: int | None = None,
    ctx: ServiceContext = Depends(get_context),
) -> list[dict[str, Any]]:
    return [e.model_dump(mode="json") for e in ctx.error_log_service.list(severity, limit)]


@router.get("/error-logs/stats")
def error_log_stats(ctx: ServiceContext = Depends(get_context)) -> dict[str, int]:
    return ctx.error_log_service.stats()


@router.delete("/error-logs")
def clear_error_logs(ctx: ServiceContext = Depends(get_context)) -> dict[str, int]:
    return {"deleted": ctx.error_log_service.clear()}


# --- Sitemap ---


@router.get("/sitemap/entries")
def list_sitemap_entries(ctx: ServiceContext = Depends(get_context)) -> list[dict[str, Any]]:
    return [e.model_dump(mode="json") for e in ctx.sitemap_service.list_entries()]


@router.post("/sitemap/entries", status_code=201)
def add_sitemap_entry(
    req: SitemapEntryRequest, ctx: ServiceContext = Depends(get_context)
) -> dict[str, Any]:
    return ctx.sitemap_service.add_entry(req.model_dump()).model_dump(mode="json")


@router.patch("/sitemap/entries/{entry_id}")
def update_sitemap_entry(
    entry_id: UUID,
    req: SitemapEntryUpdateRequest,
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, Any]:
    changes = req.model_dump(exclude_unset=True)
    return ctx.sitemap_service.update_entry(entry_id, changes).model_dump(mode="json")


@router.delete("/sitemap/entries/{entry_id}", status_code=204)
def delete_sitemap_entry(entry_id: UUID, ctx: ServiceContext = Depends(get_context)) -> Response:
    ctx.sitemap_service.delete_entry(entry_id)
    return Response(status_code=204)


@router.get("/sitemap/exclusions")
def list_sitemap_exclusions(ctx: ServiceContext = Depends(get_context)) -> list[dict[str, Any]]:
    return [e.model_dump(mode="json") for e in ctx.sitemap_service.list_exclusions()]


@router.post("/sitemap/exclusions", status_code=201)
def add_sitemap_exclusion(
    req: SitemapExclusionRequest, ctx: ServiceContext = Depends(get_context)
) -> dict[str, Any]:
    return ctx.sitemap_service.add_exclusion(req.url_pattern, req.reason).model_dump(mode="json")


@router.delete("/sitemap/exclusions/{exclusion_id}", status_code=204)
def delete_sitemap_exclusion(
    exclusion_id: UUID, ctx: ServiceContext = Depends(get_context)
) -> Response:
    ctx.sitemap_service.delete_exclusion(exclusion_id)
    return Response(status_code=204)
