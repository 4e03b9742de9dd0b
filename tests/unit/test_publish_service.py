from datetime import UTC, datetime, timedelta

import pytest

from installmod.adapters.clock import FrozenClock
from installmod.adapters.memory_repo import InMemoryContentRepo
from installmod.adapters.sweeper import PublishSweeper
from installmod.app_shell.context import ServiceContext
from installmod.core.services.publish import SCHEDULABLE_KINDS, PublishService
from installmod.domain.errors import RepositoryError

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=UTC)


def schedule(ctx, title, delay):
    return ctx.content_service.create(
        "blog", {"title": title, "status": "scheduled", "scheduled_at": NOW + delay}
    ).record


def test_only_blogs_are_schedulable():
    assert SCHEDULABLE_KINDS == ("blog",)


def test_due_lists_past_schedules_oldest_first(ctx, clock):
    later = schedule(ctx, "Later", timedelta(hours=2))
    sooner = schedule(ctx, "Sooner", timedelta(hours=1))
    schedule(ctx, "Future", timedelta(days=5))

    clock.advance(3 * 3600)
    due = ctx.publish_service.due("blog")

    assert [r.id for r in due] == [sooner.id, later.id]


def test_sweep_promotes_due_posts(ctx, clock):
    post = schedule(ctx, "Launch", timedelta(minutes=30))
    waiting = schedule(ctx, "Next week", timedelta(days=7))

    clock.advance(3600)
    result = ctx.publish_service.sweep_due()

    assert result.promoted == [post.id]
    assert result.failed == {}
    promoted = ctx.content_service.get("blog", post.id)
    assert promoted.status == "published"
    assert promoted.scheduled_at is None
    assert promoted.published_at == clock.now_utc()
    assert ctx.content_service.get("blog", waiting.id).status == "scheduled"


def test_sweep_is_idempotent(ctx, clock):
    schedule(ctx, "Launch", timedelta(minutes=30))
    clock.advance(3600)

    assert len(ctx.publish_service.sweep_due().promoted) == 1
    assert ctx.publish_service.sweep_due().total_processed == 0


def test_sweep_does_not_version(ctx, clock):
    post = schedule(ctx, "Launch", timedelta(minutes=30))
    clock.advance(3600)
    ctx.publish_service.sweep_due()
    assert ctx.version_trail.latest_number(post.id) == 1


def test_sweep_before_due_does_nothing(ctx):
    schedule(ctx, "Launch", timedelta(minutes=30))
    assert ctx.publish_service.sweep_due().total_processed == 0


class FlakyRepo(InMemoryContentRepo):
    def __init__(self):
        super().__init__()
        self.broken_ids = set()

    def update(self, table, row_id, patch):
        if str(row_id) in self.broken_ids:
            raise RepositoryError("database is locked")
        return super().update(table, row_id, patch)


def test_one_failure_does_not_block_batch(rules):
    clock = FrozenClock(NOW)
    repo = FlakyRepo()
    ctx = ServiceContext.from_repo(repo, rules, clock=clock)
    bad = schedule(ctx, "Bad", timedelta(minutes=10))
    good = schedule(ctx, "Good", timedelta(minutes=20))
    repo.broken_ids.add(str(bad.id))

    clock.advance(3600)
    result = ctx.publish_service.sweep_due()

    assert result.promoted == [good.id]
    assert "database is locked" in result.failed[bad.id]
    assert result.total_processed == 2
    assert repo.get("blogs", str(bad.id))["status"] == "scheduled"


def test_explicit_now_overrides_clock(ctx):
    schedule(ctx, "Launch", timedelta(minutes=30))
    service = PublishService(ctx.content_repo, ctx.clock)
    assert len(service.sweep_due(NOW + timedelta(hours=1)).promoted) == 1


def test_sweeper_trigger_now(ctx, clock):
    schedule(ctx, "Launch", timedelta(minutes=30))
    clock.advance(3600)
    sweeper = PublishSweeper(ctx.publish_service, poll_interval_seconds=3600)

    assert not sweeper.is_running
    assert len(sweeper.trigger_now().promoted) == 1


def test_sweeper_start_stop(ctx):
    sweeper = PublishSweeper(ctx.publish_service, poll_interval_seconds=3600)
    sweeper.start()
    assert sweeper.is_running
    sweeper.start()
    sweeper.stop()
    assert not sweeper.is_running


@pytest.mark.parametrize("delay", [timedelta(seconds=1), timedelta(days=365)])
def test_sweep_catches_up_after_downtime(ctx, clock, delay):
    post = schedule(ctx, "Launch", delay)
    clock.set(NOW + delay + timedelta(days=30))
    assert ctx.publish_service.sweep_due().promoted == [post.id]
