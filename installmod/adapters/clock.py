from datetime import UTC, datetime, timedelta


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class FrozenClock:
    """Clock pinned to a fixed instant, for tests and dry runs."""

    def __init__(self, frozen_utc: datetime) -> None:
        if frozen_utc.tzinfo is None:
            frozen_utc = frozen_utc.replace(tzinfo=UTC)
        self._now = frozen_utc

    def now_utc(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)

    def set(self, frozen_utc: datetime) -> None:
        self._now = frozen_utc
