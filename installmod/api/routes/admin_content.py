from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from installmod.api.deps import get_context
from installmod.api.schemas import (
    AssociationReplaceRequest,
    ContentCreateRequest,
    ContentUpdateRequest,
    IconColorRequest,
    SaveResponse,
    ScheduleRequest,
    TransitionRequest,
    VersionResponse,
)
from installmod.app_shell.context import ServiceContext
from installmod.core.services.content import SaveResult
from installmod.domain.entities import ContentKind
from installmod.domain.state import combine_schedule

router = APIRouter()

_CONTROL_FIELDS = {"status", "scheduled_at", "schedule", "associations"}


def resolve_schedule(
    ctx: ServiceContext,
    scheduled_at: datetime | None,
    schedule: ScheduleRequest | None,
) -> datetime | None:
    """An explicit date/time/zone wins over a bare timestamp."""
    if schedule is not None:
        tz_name = schedule.timezone or ctx.rules.publishing.display_timezone
        return combine_schedule(schedule.date, schedule.time, tz_name)
    return scheduled_at


def _save_response(result: SaveResult) -> SaveResponse:
    return SaveResponse(
        record=result.record.model_dump(mode="json"),
        version_number=result.version.version_number if result.version else None,
        associations={
            name: [a.model_dump(mode="json") for a in items]
            for name, items in result.associations.items()
        },
        warnings=result.warnings,
    )


def _fields(req: ContentCreateRequest | ContentUpdateRequest, ctx: ServiceContext) -> dict[str, Any]:
    fields = req.model_dump(exclude=_CONTROL_FIELDS, exclude_unset=True)
    if req.status is not None:
        fields["status"] = req.status
    when = resolve_schedule(ctx, req.scheduled_at, req.schedule)
    if when is not None:
        fields["scheduled_at"] = when
    return fields


@router.get("/{kind}")
def list_content(
    kind: ContentKind,
    status: str | None = None,
    limit: int | None = None,
    offset: int = 0,
    ctx: ServiceContext = Depends(get_context),
) -> list[dict[str, Any]]:
    """Admin listing, any status."""
    items = ctx.content_service.list(kind, status=status, limit=limit, offset=offset)
    return [i.model_dump(mode="json") for i in items]


@router.post("/{kind}", status_code=201)
def create_content(
    kind: ContentKind,
    req: ContentCreateRequest,
    ctx: ServiceContext = Depends(get_context),
) -> SaveResponse:
    result = ctx.content_service.create(kind, _fields(req, ctx), associations=req.associations)
    return _save_response(result)


@router.get("/{kind}/{record_id}")
def get_content(
    kind: ContentKind,
    record_id: UUID,
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, Any]:
    return ctx.content_service.get(kind, record_id).model_dump(mode="json")


@router.patch("/{kind}/{record_id}")
def update_content(
    kind: ContentKind,
    record_id: UUID,
    req: ContentUpdateRequest,
    ctx: ServiceContext = Depends(get_context),
) -> SaveResponse:
    result = ctx.content_service.update(
        kind, record_id, _fields(req, ctx), associations=req.associations
    )
    return _save_response(result)


@router.delete("/{kind}/{record_id}", status_code=204)
def delete_content(
    kind: ContentKind,
    record_id: UUID,
    ctx: ServiceContext = Depends(get_context),
) -> Response:
    ctx.content_service.delete(kind, record_id)
    return Response(status_code=204)


@router.post("/{kind}/{record_id}/transition")
def transition_content(
    kind: ContentKind,
    record_id: UUID,
    req: TransitionRequest,
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, Any]:
    when = resolve_schedule(ctx, req.scheduled_at, req.schedule)
    record = ctx.content_service.transition(kind, record_id, req.status, scheduled_at=when)
    return record.model_dump(mode="json")


@router.get("/{kind}/{record_id}/associations/{assoc}")
def list_associations(
    kind: ContentKind,
    record_id: UUID,
    assoc: str,
    ctx: ServiceContext = Depends(get_context),
) -> list[dict[str, Any]]:
    ctx.content_service.get(kind, record_id)
    items = ctx.association_service.list(record_id, kind, assoc)
    return [a.model_dump(mode="json") for a in items]


@router.put("/{kind}/{record_id}/associations/{assoc}")
def replace_associations(
    kind: ContentKind,
    record_id: UUID,
    assoc: str,
    req: AssociationReplaceRequest,
    ctx: ServiceContext = Depends(get_context),
) -> list[dict[str, Any]]:
    ctx.content_service.get(kind, record_id)
    items = ctx.association_service.replace(record_id, kind, assoc, req.items)
    return [a.model_dump(mode="json") for a in items]


@router.put("/{kind}/{record_id}/icon-color")
def set_icon_color(
    kind: ContentKind,
    record_id: UUID,
    req: IconColorRequest,
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, Any]:
    record = ctx.content_service.set_icon_bg_color(kind, record_id, req.color)
    return record.model_dump(mode="json")


@router.get("/blog/{record_id}/versions")
def list_versions(
    record_id: UUID,
    ctx: ServiceContext = Depends(get_context),
) -> list[VersionResponse]:
    ctx.content_service.get("blog", record_id)
    return [VersionResponse(**v.model_dump()) for v in ctx.version_trail.list_versions(record_id)]


@router.post("/blog/{record_id}/versions/{version_number}/restore")
def restore_version(
    record_id: UUID,
    version_number: int,
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, Any]:
    """Returns the draft with the old text; nothing is saved."""
    restored = ctx.content_service.restore_version(record_id, version_number)
    return restored.model_dump(mode="json")
