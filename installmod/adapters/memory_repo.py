"""
In-memory content repository.

Implements ContentRepoPort over plain dicts for development and tests.
Transactions snapshot every table on entry and restore the snapshot when
the block raises; nested scopes join the outermost one. Unique keys mirror
the indexes created by the SQLite migrations.
"""

from __future__ import annotations

import copy
import threading
import uuid
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from installmod.domain.errors import NotFoundError, RepositoryError

Row = dict[str, Any]

DEFAULT_UNIQUE_KEYS: dict[str, list[tuple[str, ...]]] = {
    "apps": [("slug",)],
    "games": [("slug",)],
    "blogs": [("slug",)],
    "categories": [("slug",)],
    "tags": [("slug",)],
    "publishers": [("slug",)],
    "blog_versions": [("record_id", "version_number")],
}


def _matches(row: Mapping[str, Any], where: Mapping[str, Any] | None) -> bool:
    if not where:
        return True
    for key, expected in where.items():
        actual = row.get(key)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


def _sort_key(column: str) -> Callable[[Mapping[str, Any]], tuple[bool, Any]]:
    def key(row: Mapping[str, Any]) -> tuple[bool, Any]:
        value = row.get(column)
        return (value is not None, value)

    return key


class InMemoryContentRepo:
    def __init__(self, unique_keys: dict[str, list[tuple[str, ...]]] | None = None) -> None:
        self._tables: dict[str, dict[str, Row]] = {}
        self._unique = unique_keys if unique_keys is not None else DEFAULT_UNIQUE_KEYS
        self._lock = threading.RLock()
        self._depth = 0

    # --- helpers ---

    def _table(self, table: str) -> dict[str, Row]:
        return self._tables.setdefault(table, {})

    def _check_unique(self, table: str, row: Mapping[str, Any], row_id: str) -> None:
        for columns in self._unique.get(table, []):
            values = tuple(row.get(c) for c in columns)
            if any(v is None for v in values):
                continue
            for other_id, other in self._table(table).items():
                if other_id == row_id:
                    continue
                if tuple(other.get(c) for c in columns) == values:
                    raise RepositoryError(
                        f"UNIQUE constraint failed: {table}.{', '.join(columns)}",
                        constraint="unique",
                    )

    # --- reads ---

    def get(self, table: str, row_id: str) -> Row | None:
        with self._lock:
            row = self._table(table).get(str(row_id))
            return dict(row) if row is not None else None

    def find(
        self,
        table: str,
        where: Mapping[str, Any] | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Row]:
        with self._lock:
            rows = [dict(r) for r in self._table(table).values() if _matches(r, where)]
        if order_by:
            rows.sort(key=_sort_key(order_by), reverse=descending)
        rows = rows[offset:]
        if limit is not None:
            rows = rows[:limit]
        return rows

    def count(self, table: str, where: Mapping[str, Any] | None = None) -> int:
        with self._lock:
            return sum(1 for r in self._table(table).values() if _matches(r, where))

    def search(
        self,
        table: str,
        term: str,
        columns: Iterable[str],
        where: Mapping[str, Any] | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        needle = term.lower()
        columns = list(columns)
        hits = [
            row
            for row in self.find(table, where, order_by=order_by, descending=descending)
            if any(needle in str(row.get(c) or "").lower() for c in columns)
        ]
        if limit is not None:
            hits = hits[:limit]
        return hits

    # --- writes ---

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        new_row = dict(row)
        row_id = str(new_row.setdefault("id", str(uuid.uuid4())))
        new_row["id"] = row_id
        with self._lock:
            rows = self._table(table)
            if row_id in rows:
                raise RepositoryError(
                    f"UNIQUE constraint failed: {table}.id", constraint="unique"
                )
            self._check_unique(table, new_row, row_id)
            rows[row_id] = new_row
        return dict(new_row)

    def update(self, table: str, row_id: str, patch: Mapping[str, Any]) -> Row:
        row_id = str(row_id)
        with self._lock:
            rows = self._table(table)
            if row_id not in rows:
                raise NotFoundError(f"{table} row {row_id} not found")
            merged = {**rows[row_id], **{k: v for k, v in patch.items() if k != "id"}}
            self._check_unique(table, merged, row_id)
            rows[row_id] = merged
            return dict(merged)

    def delete(self, table: str, row_id: str) -> None:
        with self._lock:
            self._table(table).pop(str(row_id), None)

    def delete_where(self, table: str, where: Mapping[str, Any]) -> int:
        with self._lock:
            rows = self._table(table)
            doomed = [rid for rid, r in rows.items() if _matches(r, where)]
            for rid in doomed:
                del rows[rid]
            return len(doomed)

    def increment(self, table: str, row_id: str, column: str, amount: int = 1) -> int:
        with self._lock:
            row = self._table(table).get(str(row_id))
            if row is None:
                raise NotFoundError(f"{table} row {row_id} not found")
            row[column] = (row.get(column) or 0) + amount
            return row[column]

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            if self._depth > 0:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            snapshot = copy.deepcopy(self._tables)
            self._depth = 1
            try:
                yield
            except BaseException:
                self._tables = snapshot
                raise
            finally:
                self._depth = 0
