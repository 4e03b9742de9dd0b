"""
In-process change feed.

Handlers are keyed by (table, record_id). A failing handler is logged and
does not stop delivery to the others.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any

from installmod.ports.events import ChangeHandler, Unsubscribe

logger = logging.getLogger(__name__)


class InMemoryChangeFeed:
    def __init__(self) -> None:
        self._handlers: dict[tuple[str, str], list[ChangeHandler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, table: str, record_id: str, on_change: ChangeHandler) -> Unsubscribe:
        key = (table, str(record_id))
        with self._lock:
            self._handlers[key].append(on_change)

        def unsubscribe() -> None:
            with self._lock:
                handlers = self._handlers.get(key, [])
                if on_change in handlers:
                    handlers.remove(on_change)
                if not handlers:
                    self._handlers.pop(key, None)

        return unsubscribe

    def publish(self, table: str, record_id: str, row: dict[str, Any]) -> None:
        with self._lock:
            handlers = list(self._handlers.get((table, str(record_id)), []))

        for handler in handlers:
            try:
                handler(dict(row))
            except Exception:
                logger.exception("Change handler failed for %s/%s", table, record_id)

    def subscriber_count(self, table: str, record_id: str) -> int:
        with self._lock:
            return len(self._handlers.get((table, str(record_id)), []))
