from __future__ import annotations

import logging
import sqlite3
from collections.abc import Set
from typing import Any, Mapping, Optional

from .base import AbstractAdapter, OrderBy, Row
from .where_params import Between

logger = logging.getLogger(__name__)


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def build_where(criteria: Mapping[str, Any]) -> tuple[str, list[Any]]:
    """Translate criteria into a ``WHERE`` clause and its parameters.

    >>> build_where({"age": Between(1, 2), "name": None})
    ('WHERE "age" BETWEEN ? AND ? AND "name" IS NULL', [1, 2])
    """
    clauses: list[str] = []
    params: list[Any] = []
    for field, value in criteria.items():
        column = _quote(field)
        if value is None:
            clauses.append(f"{column} IS NULL")
        elif isinstance(value, Between):
            clauses.append(f"{column} BETWEEN ? AND ?")
            params.extend(value.as_tuple())
        elif isinstance(value, (list, tuple, Set)):
            values = list(value)
            if not values:
                clauses.append("0 = 1")
                continue
            placeholders = ", ".join("?" for _ in values)
            clauses.append(f"{column} IN ({placeholders})")
            params.extend(values)
        else:
            clauses.append(f"{column} = ?")
            params.append(value)
    if not clauses:
        return "", params
    return "WHERE " + " AND ".join(clauses), params


class SqliteAdapter(AbstractAdapter):
    """SQLite implementation of :class:`~deltamap.adapters.base.AdapterInterface`.

    Example:
        >>> adapter = SqliteAdapter(":memory:")
        >>> adapter.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
        >>> new_id = adapter.insert("users", {"name": "Ann"}, "id")
        >>> adapter.select_by("users", {"id": new_id})
        [{'id': 1, 'name': 'Ann'}]

    ``params`` are passed to :func:`sqlite3.connect` as keyword arguments.
    """

    def connect(self) -> None:
        if self.is_connected():
            return
        if not self.dsn:
            raise RuntimeError("SQLite adapter has no DSN configured")
        conn = sqlite3.connect(self.dsn, **self.params)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        self.connection = conn
        logger.debug("Connected to SQLite", extra={"dsn": self.dsn})

    def close(self) -> None:
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def _conn(self) -> sqlite3.Connection:
        self.connect()
        return self.connection

    def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> None:
        """Run a statement outside the row API, e.g. schema setup."""
        conn = self._conn()
        conn.execute(sql, params)
        conn.commit()

    def select_by(
        self,
        table: str,
        criteria: Mapping[str, Any],
        order_by: OrderBy = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Row]:
        where, params = build_where(criteria)
        parts = [f"SELECT * FROM {_quote(table)}"]
        if where:
            parts.append(where)
        order = self.get_order_by(order_by)
        if order:
            parts.append(order)
        if limit is not None:
            parts.append("LIMIT ?")
            params.append(int(limit))
            if offset is not None:
                parts.append("OFFSET ?")
                params.append(int(offset))
        elif offset is not None:
            parts.append("LIMIT -1 OFFSET ?")
            params.append(int(offset))
        cur = self._conn().execute(" ".join(parts), params)
        return [dict(row) for row in cur.fetchall()]

    def insert(self, table: str, row: Mapping[str, Any], id_field: str) -> Any:
        conn = self._conn()
        if row:
            columns = ", ".join(_quote(field) for field in row)
            placeholders = ", ".join("?" for _ in row)
            sql = f"INSERT INTO {_quote(table)} ({columns}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {_quote(table)} DEFAULT VALUES"
        try:
            cur = conn.execute(sql, list(row.values()))
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.warning("SQLite insert failed on %s: %s", table, exc)
            return None
        rowid = cur.lastrowid
        if rowid is None:
            return None
        if id_field:
            # The identity column may not be the rowid alias
            try:
                found = conn.execute(
                    f"SELECT {_quote(id_field)} FROM {_quote(table)} WHERE rowid = ?",
                    (rowid,),
                ).fetchone()
            except sqlite3.Error:
                return rowid
            if found is not None and found[0] is not None:
                return found[0]
        return rowid

    def update(
        self, table: str, row: Mapping[str, Any], key_criteria: Mapping[str, Any]
    ) -> bool:
        if not row:
            return True
        conn = self._conn()
        assignments = ", ".join(f"{_quote(field)} = ?" for field in row)
        where, where_params = build_where(key_criteria)
        sql = f"UPDATE {_quote(table)} SET {assignments} {where}".rstrip()
        try:
            conn.execute(sql, [*row.values(), *where_params])
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.warning("SQLite update failed on %s: %s", table, exc)
            return False
        return True

    def delete(self, table: str, key_criteria: Mapping[str, Any]) -> bool:
        if not key_criteria:
            raise ValueError("Refusing to delete without key criteria")
        conn = self._conn()
        where, params = build_where(key_criteria)
        try:
            cur = conn.execute(f"DELETE FROM {_quote(table)} {where}", params)
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.warning("SQLite delete failed on %s: %s", table, exc)
            return False
        return cur.rowcount > 0
