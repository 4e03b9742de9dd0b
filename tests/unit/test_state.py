from datetime import UTC, date, datetime, time, timedelta, timezone

import pytest

from installmod.domain.entities import BlogPost, PackageRecord
from installmod.domain.errors import InconsistentStateError, InvalidTransitionError, ValidationError
from installmod.domain.state import (
    allowed_statuses,
    as_utc,
    can_transition,
    check_consistency,
    combine_schedule,
    is_live,
    transition,
)

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=UTC)


@pytest.fixture
def blog():
    return BlogPost(title="Post", slug="post")


@pytest.fixture
def game():
    return PackageRecord(title="Game", slug="game")


def test_allowed_statuses():
    assert allowed_statuses("blog") == ("draft", "published", "scheduled")
    assert allowed_statuses("app") == ("draft", "published")
    with pytest.raises(ValidationError):
        allowed_statuses("podcast")


def test_can_transition():
    assert can_transition("blog", "draft", "scheduled")
    assert can_transition("blog", "published", "draft")
    assert can_transition("game", "draft", "published")
    assert not can_transition("game", "draft", "scheduled")


def test_publish_clears_schedule_and_stamps_time(blog):
    scheduled = transition(blog, "blog", "scheduled", NOW, scheduled_at=NOW + timedelta(days=1))
    published = transition(scheduled, "blog", "published", NOW)

    assert published.status == "published"
    assert published.scheduled_at is None
    assert published.published_at == NOW
    assert published.updated_at == NOW


def test_republish_keeps_original_publish_time(blog):
    first = transition(blog, "blog", "published", NOW)
    again = transition(first, "blog", "published", NOW + timedelta(hours=3))
    assert again.published_at == NOW


def test_schedule_requires_timestamp(blog):
    with pytest.raises(ValidationError) as exc:
        transition(blog, "blog", "scheduled", NOW)
    assert exc.value.errors[0].code == "scheduled_at_required"


def test_schedule_requires_future(blog):
    with pytest.raises(ValidationError) as exc:
        transition(blog, "blog", "scheduled", NOW, scheduled_at=NOW - timedelta(minutes=1))
    assert exc.value.errors[0].code == "scheduled_at_past"

    with pytest.raises(ValidationError):
        transition(blog, "blog", "scheduled", NOW, scheduled_at=NOW)


def test_schedule_respects_grace(blog):
    with pytest.raises(ValidationError):
        transition(
            blog, "blog", "scheduled", NOW, scheduled_at=NOW + timedelta(seconds=5), grace_seconds=10
        )


def test_schedule_stores_utc(blog):
    local = datetime(2026, 3, 20, 18, 0, tzinfo=timezone(timedelta(hours=5)))
    scheduled = transition(blog, "blog", "scheduled", NOW, scheduled_at=local)

    assert scheduled.status == "scheduled"
    assert scheduled.scheduled_at == datetime(2026, 3, 20, 13, 0, tzinfo=UTC)
    assert scheduled.scheduled_at.utcoffset() == timedelta(0)
    assert scheduled.published_at is None


def test_naive_schedule_taken_as_utc(blog):
    scheduled = transition(blog, "blog", "scheduled", NOW, scheduled_at=datetime(2026, 4, 1, 8, 0))
    assert scheduled.scheduled_at == datetime(2026, 4, 1, 8, 0, tzinfo=UTC)


def test_draft_clears_schedule(blog):
    scheduled = transition(blog, "blog", "scheduled", NOW, scheduled_at=NOW + timedelta(days=2))
    draft = transition(scheduled, "blog", "draft", NOW)
    assert draft.status == "draft"
    assert draft.scheduled_at is None
    assert draft.published_at is None


def test_games_cannot_be_scheduled(game):
    with pytest.raises(InvalidTransitionError) as exc:
        transition(game, "game", "scheduled", NOW, scheduled_at=NOW + timedelta(days=1))
    assert exc.value.to_status == "scheduled"


def test_transition_returns_new_record(blog):
    published = transition(blog, "blog", "published", NOW)
    assert blog.status == "draft"
    assert published is not blog


def test_check_consistency():
    check_consistency(BlogPost(title="ok"))
    with pytest.raises(InconsistentStateError):
        check_consistency(BlogPost(title="bad", status="scheduled"))
    with pytest.raises(InconsistentStateError):
        check_consistency(BlogPost(title="bad", status="draft", scheduled_at=NOW))


def test_is_live(blog):
    assert not is_live(blog)
    assert is_live(transition(blog, "blog", "published", NOW))
    assert not is_live(transition(blog, "blog", "scheduled", NOW, scheduled_at=NOW + timedelta(hours=1)))


def test_combine_schedule_in_zone():
    # 09:00 in New York during EDT is 13:00 UTC
    when = combine_schedule(date(2026, 7, 1), time(9, 0), "America/New_York")
    assert when == datetime(2026, 7, 1, 13, 0, tzinfo=UTC)


def test_combine_schedule_defaults_to_utc():
    assert combine_schedule(date(2026, 7, 1), time(9, 0)) == datetime(2026, 7, 1, 9, 0, tzinfo=UTC)


def test_combine_schedule_rejects_unknown_zone():
    with pytest.raises(ValidationError) as exc:
        combine_schedule(date(2026, 7, 1), time(9, 0), "Mars/Olympus_Mons")
    assert exc.value.errors[0].code == "timezone_invalid"


def test_as_utc():
    assert as_utc(datetime(2026, 1, 1, 12, 0)).tzinfo == UTC
    shifted = as_utc(datetime(2026, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=-2))))
    assert shifted == datetime(2026, 1, 1, 14, 0, tzinfo=UTC)
