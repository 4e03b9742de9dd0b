import json
import re
import sqlite3
import threading
import uuid
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from installmod.domain.errors import NotFoundError, RepositoryError

Row = dict[str, Any]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Columns stored as JSON text and decoded on read.
JSON_COLUMNS: dict[str, set[str]] = {
    "error_logs": {"additional_data"},
    "task_popup_config": {"buttons", "target_apps"},
}


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _ident(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise RepositoryError(f"Invalid identifier: {name!r}")
    return f'"{name}"'


def _encode(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    if isinstance(value, bool):
        return int(value)
    return value


def _where_clause(where: Mapping[str, Any] | None) -> tuple[str, list[Any]]:
    if not where:
        return "", []
    parts: list[str] = []
    params: list[Any] = []
    for key, expected in where.items():
        column = _ident(key)
        if isinstance(expected, (list, tuple, set, frozenset)):
            values = list(expected)
            if not values:
                parts.append("0")
                continue
            parts.append(f"{column} IN ({', '.join('?' for _ in values)})")
            params.extend(_encode(v) for v in values)
        elif expected is None:
            parts.append(f"{column} IS NULL")
        else:
            parts.append(f"{column} = ?")
            params.append(_encode(expected))
    return " WHERE " + " AND ".join(parts), params


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _translate(exc: sqlite3.Error) -> RepositoryError:
    message = str(exc)
    if isinstance(exc, sqlite3.IntegrityError) and "UNIQUE" in message:
        return RepositoryError(message, constraint="unique")
    return RepositoryError(message)


class SQLiteContentRepo:
    """
    ContentRepoPort over a SQLite file.

    Outside a transaction every call opens its own connection and commits
    on success. Inside `transaction()` the calling thread reuses one
    connection until the outermost scope ends.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._local = threading.local()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        active = getattr(self._local, "conn", None)
        if active is not None:
            try:
                yield active
            except sqlite3.Error as e:
                raise _translate(e) from e
            return

        conn = self._get_conn()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise _translate(e) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if getattr(self._local, "conn", None) is not None:
            self._local.depth += 1
            try:
                yield
            finally:
                self._local.depth -= 1
            return

        conn = self._get_conn()
        self._local.conn = conn
        self._local.depth = 1
        try:
            yield
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            self._local.depth = 0
            conn.close()

    def _decode(self, table: str, row: Row | None) -> Row | None:
        if row is None:
            return None
        for column in JSON_COLUMNS.get(table, ()):
            value = row.get(column)
            if isinstance(value, str):
                row[column] = json.loads(value)
        return row

    # --- reads ---

    def get(self, table: str, row_id: str) -> Row | None:
        with self._session() as conn:
            row = conn.execute(
                f"SELECT * FROM {_ident(table)} WHERE id = ?", (str(row_id),)
            ).fetchone()
        return self._decode(table, row)

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
        clause, params = _where_clause(where)
        sql = f"SELECT * FROM {_ident(table)}{clause}"
        sql += self._order(order_by, descending)
        sql += self._page(limit, offset, params)
        with self._session() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._decode(table, r) for r in rows]

    def count(self, table: str, where: Mapping[str, Any] | None = None) -> int:
        clause, params = _where_clause(where)
        with self._session() as conn:
            row = conn.execute(
                f"SELECT COUNT(*) AS n FROM {_ident(table)}{clause}", params
            ).fetchone()
        return int(row["n"])

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
        columns = list(columns)
        if not columns:
            return []
        clause, params = _where_clause(where)
        pattern = f"%{_escape_like(term.lower())}%"
        like = " OR ".join(f"LOWER({_ident(c)}) LIKE ? ESCAPE '\\'" for c in columns)
        params.extend(pattern for _ in columns)
        clause = f"{clause} AND ({like})" if clause else f" WHERE ({like})"
        sql = f"SELECT * FROM {_ident(table)}{clause}"
        sql += self._order(order_by, descending)
        sql += self._page(limit, 0, params)
        with self._session() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._decode(table, r) for r in rows]

    @staticmethod
    def _order(order_by: str | None, descending: bool) -> str:
        if not order_by:
            return " ORDER BY rowid"
        direction = "DESC" if descending else "ASC"
        return f" ORDER BY {_ident(order_by)} {direction}"

    @staticmethod
    def _page(limit: int | None, offset: int, params: list[Any]) -> str:
        if limit is None and not offset:
            return ""
        params.append(-1 if limit is None else limit)
        params.append(offset)
        return " LIMIT ? OFFSET ?"

    # --- writes ---

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        new_row = dict(row)
        new_row["id"] = str(new_row.get("id") or uuid.uuid4())
        columns = list(new_row)
        sql = (
            f"INSERT INTO {_ident(table)} ({', '.join(_ident(c) for c in columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})"
        )
        with self._session() as conn:
            conn.execute(sql, [_encode(new_row[c]) for c in columns])
            stored = conn.execute(
                f"SELECT * FROM {_ident(table)} WHERE id = ?", (new_row["id"],)
            ).fetchone()
        return self._decode(table, stored)

    def update(self, table: str, row_id: str, patch: Mapping[str, Any]) -> Row:
        changes = {k: v for k, v in patch.items() if k != "id"}
        with self._session() as conn:
            if changes:
                assignments = ", ".join(f"{_ident(c)} = ?" for c in changes)
                params = [_encode(v) for v in changes.values()] + [str(row_id)]
                conn.execute(
                    f"UPDATE {_ident(table)} SET {assignments} WHERE id = ?", params
                )
            stored = conn.execute(
                f"SELECT * FROM {_ident(table)} WHERE id = ?", (str(row_id),)
            ).fetchone()
        if stored is None:
            raise NotFoundError(f"{table} row {row_id} not found")
        return self._decode(table, stored)

    def delete(self, table: str, row_id: str) -> None:
        with self._session() as conn:
            conn.execute(f"DELETE FROM {_ident(table)} WHERE id = ?", (str(row_id),))

    def delete_where(self, table: str, where: Mapping[str, Any]) -> int:
        clause, params = _where_clause(where)
        with self._session() as conn:
            cursor = conn.execute(f"DELETE FROM {_ident(table)}{clause}", params)
            return cursor.rowcount

    def increment(self, table: str, row_id: str, column: str, amount: int = 1) -> int:
        col = _ident(column)
        with self._session() as conn:
            cursor = conn.execute(
                f"UPDATE {_ident(table)} SET {col} = COALESCE({col}, 0) + ? WHERE id = ?",
                (amount, str(row_id)),
            )
            if cursor.rowcount == 0:
                raise NotFoundError(f"{table} row {row_id} not found")
            row = conn.execute(
                f"SELECT {col} AS n FROM {_ident(table)} WHERE id = ?", (str(row_id),)
            ).fetchone()
        return int(row["n"])
