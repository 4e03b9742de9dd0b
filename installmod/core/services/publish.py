"""
Scheduled-publish sweep.

Blog posts scheduled for a time that has passed are promoted to published.
Each promotion runs in its own transaction so one bad row cannot block the
rest of the batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from installmod.domain.entities import KIND_STATUSES, KIND_TABLES, RECORD_MODELS, ContentRecord
from installmod.domain.errors import ContentError
from installmod.domain.state import as_utc, transition
from installmod.ports.clock import ClockPort
from installmod.ports.repo import ContentRepoPort

logger = logging.getLogger(__name__)

SCHEDULABLE_KINDS = tuple(kind for kind, statuses in KIND_STATUSES.items() if "scheduled" in statuses)


@dataclass
class SweepResult:
    promoted: list[UUID] = field(default_factory=list)
    failed: dict[UUID, str] = field(default_factory=dict)

    @property
    def total_processed(self) -> int:
        return len(self.promoted) + len(self.failed)


class PublishService:
    def __init__(self, repo: ContentRepoPort, clock: ClockPort) -> None:
        self.repo = repo
        self.clock = clock

    def due(self, kind: str, now: datetime | None = None) -> list[ContentRecord]:
        """Scheduled records of `kind` whose time has come, oldest first."""
        now = as_utc(now or self.clock.now_utc())
        model = RECORD_MODELS[kind]
        rows = self.repo.find(KIND_TABLES[kind], {"status": "scheduled"})
        items = [model.model_validate(row) for row in rows]
        ready = [i for i in items if i.scheduled_at is not None and as_utc(i.scheduled_at) <= now]
        ready.sort(key=lambda i: as_utc(i.scheduled_at))  # type: ignore[arg-type]
        return ready

    def sweep_due(self, now: datetime | None = None) -> SweepResult:
        """
        Promote every due scheduled record to published.

        Returns which records were promoted and which failed, with the
        failure message.
        """
        now = as_utc(now or self.clock.now_utc())
        result = SweepResult()

        for kind in SCHEDULABLE_KINDS:
            table = KIND_TABLES[kind]
            for item in self.due(kind, now):
                try:
                    with self.repo.transaction():
                        # Re-read inside the transaction; an editor may have
                        # unscheduled it since the scan.
                        row = self.repo.get(table, str(item.id))
                        if row is None or row.get("status") != "scheduled":
                            continue
                        current = RECORD_MODELS[kind].model_validate(row)
                        promoted = transition(current, kind, "published", now)
                        self.repo.update(
                            table,
                            str(item.id),
                            promoted.model_dump(
                                mode="json",
                                include={"status", "scheduled_at", "published_at", "updated_at"},
                            ),
                        )
                    result.promoted.append(item.id)
                    logger.info("Published scheduled %s %s (due %s)", kind, item.id, item.scheduled_at)
                except ContentError as e:
                    logger.exception("Failed to publish scheduled %s %s", kind, item.id)
                    result.failed[item.id] = str(e)

        return result
