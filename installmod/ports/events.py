from collections.abc import Callable
from typing import Any, Protocol

ChangeHandler = Callable[[dict[str, Any]], None]
Unsubscribe = Callable[[], None]


class ChangeFeedPort(Protocol):
    """Per-record change notifications."""

    def subscribe(self, table: str, record_id: str, on_change: ChangeHandler) -> Unsubscribe:
        """Register a handler; calling the returned function removes it."""
        ...

    def publish(self, table: str, record_id: str, row: dict[str, Any]) -> None:
        ...
