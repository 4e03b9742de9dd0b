from datetime import UTC, datetime

from installmod.adapters.clock import FrozenClock, SystemClock


def test_system_clock():
    clock = SystemClock()
    now = clock.now_utc()
    assert now.tzinfo is UTC
    diff = abs((datetime.now(UTC) - now).total_seconds())
    assert diff < 1.0


def test_frozen_clock():
    start = datetime(2026, 3, 14, 9, 30, tzinfo=UTC)
    clock = FrozenClock(start)
    assert clock.now_utc() == start

    clock.advance(90)
    assert clock.now_utc() == datetime(2026, 3, 14, 9, 31, 30, tzinfo=UTC)

    clock.set(start)
    assert clock.now_utc() == start


def test_frozen_clock_naive_is_utc():
    clock = FrozenClock(datetime(2026, 1, 1))
    assert clock.now_utc().tzinfo is UTC
