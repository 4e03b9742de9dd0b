from collections.abc import Iterable, Mapping
from contextlib import AbstractContextManager
from typing import Any, Protocol

Row = dict[str, Any]


class ContentRepoPort(Protocol):
    """
    Table-oriented persistence capability.

    Rows are JSON-safe dicts (UUIDs and datetimes as strings). `where`
    filters match on equality; a list/tuple/set value matches any member.
    Failures raise RepositoryError; update() on a missing id raises
    NotFoundError.
    """

    def get(self, table: str, row_id: str) -> Row | None:
        ...

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
        ...

    def count(self, table: str, where: Mapping[str, Any] | None = None) -> int:
        ...

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
        """Case-insensitive substring match of `term` against any of `columns`."""
        ...

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        ...

    def update(self, table: str, row_id: str, patch: Mapping[str, Any]) -> Row:
        ...

    def delete(self, table: str, row_id: str) -> None:
        ...

    def delete_where(self, table: str, where: Mapping[str, Any]) -> int:
        ...

    def increment(self, table: str, row_id: str, column: str, amount: int = 1) -> int:
        """Atomically add `amount` to a numeric column; returns the new value."""
        ...

    def transaction(self) -> AbstractContextManager[None]:
        """Scope in which every write commits together or not at all."""
        ...
