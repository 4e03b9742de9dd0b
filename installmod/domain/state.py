"""
Publication state machine.

- * -> draft: always allowed, clears scheduled_at and published_at
- * -> published: always allowed, clears scheduled_at, stamps published_at
- * -> scheduled: blog posts only, needs a scheduled_at in the future

Nothing here promotes scheduled records on its own; see
PublishService.sweep_due for the periodic promotion.
"""

from datetime import UTC, date, datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from installmod.domain.entities import KIND_STATUSES, ContentRecord
from installmod.domain.errors import (
    InconsistentStateError,
    InvalidTransitionError,
    ValidationError,
)


def allowed_statuses(kind: str) -> tuple[str, ...]:
    try:
        return KIND_STATUSES[kind]
    except KeyError:
        raise ValidationError.single("unknown_kind", f"Unknown content kind '{kind}'", "kind") from None


def can_transition(kind: str, current: str, new: str) -> bool:
    """Every status the kind supports is reachable from every other."""
    allowed = allowed_statuses(kind)
    return current in allowed and new in allowed


def as_utc(value: datetime) -> datetime:
    """Normalise to aware UTC; naive values are taken as UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def combine_schedule(day: date, at: time, tz_name: str = "UTC") -> datetime:
    """
    Build the UTC instant for a calendar date + wall-clock time in a zone.

    The zone must be an explicit IANA name; ambiguous wall times during a
    DST fall-back resolve to the first occurrence (fold=0).
    """
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError.single(
            "timezone_invalid", f"Unknown time zone '{tz_name}'", "timezone"
        ) from None
    return datetime.combine(day, at, tzinfo=zone).astimezone(UTC)


def check_consistency(record: ContentRecord) -> None:
    """Raise if status and scheduled_at disagree."""
    if record.status == "scheduled" and record.scheduled_at is None:
        raise InconsistentStateError(record.id, record.status, record.scheduled_at)
    if record.status != "scheduled" and record.scheduled_at is not None:
        raise InconsistentStateError(record.id, record.status, record.scheduled_at)


def is_live(record: ContentRecord) -> bool:
    return record.status == "published"


def transition(
    record: ContentRecord,
    kind: str,
    new_status: str,
    now: datetime,
    scheduled_at: datetime | None = None,
    grace_seconds: int = 0,
) -> ContentRecord:
    """
    Return a NEW record with the updated status and timestamps.

    Raises InvalidTransitionError for statuses the kind does not support and
    ValidationError when scheduling without a future timestamp.
    """
    if not can_transition(kind, record.status, new_status):
        raise InvalidTransitionError(
            record.status,
            new_status,
            reason=f"'{kind}' content supports {list(allowed_statuses(kind))}",
        )

    now = as_utc(now)
    updates: dict[str, Any] = {"status": new_status, "updated_at": now}

    if new_status == "scheduled":
        if scheduled_at is None:
            raise ValidationError.single(
                "scheduled_at_required",
                "scheduled_at is required for scheduling",
                "scheduled_at",
            )
        target = as_utc(scheduled_at)
        if target <= now + timedelta(seconds=grace_seconds):
            raise ValidationError.single(
                "scheduled_at_past",
                "scheduled_at must be in the future",
                "scheduled_at",
            )
        updates["scheduled_at"] = target
        updates["published_at"] = None
    elif new_status == "published":
        updates["scheduled_at"] = None
        if record.status != "published" or record.published_at is None:
            updates["published_at"] = now
    else:
        updates["scheduled_at"] = None
        updates["published_at"] = None

    result = record.model_copy(update=updates)
    check_consistency(result)
    return result
