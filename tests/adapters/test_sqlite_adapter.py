from __future__ import annotations

from collections.abc import Generator

import pytest

from deltamap.adapters.sqlite_adapter import SqliteAdapter, build_where
from deltamap.adapters.where_params import Between


@pytest.fixture
def db() -> Generator[SqliteAdapter, None, None]:
    adapter = SqliteAdapter(":memory:")
    adapter.execute(
        "CREATE TABLE items (item_id INTEGER PRIMARY KEY, name TEXT UNIQUE, qty INTEGER)"
    )
    for name, qty in [("a", 1), ("b", 5), ("c", None), ("d", 9)]:
        adapter.insert("items", {"name": name, "qty": qty}, "item_id")
    yield adapter
    adapter.close()


def test_connects_lazily() -> None:
    adapter = SqliteAdapter(":memory:")
    assert adapter.is_connected() is False
    adapter.select_by("sqlite_master", {})
    assert adapter.is_connected() is True
    adapter.close()
    assert adapter.is_connected() is False


def test_connect_requires_dsn() -> None:
    with pytest.raises(RuntimeError):
        SqliteAdapter().connect()


def test_build_where_variants() -> None:
    assert build_where({}) == ("", [])
    where, params = build_where({"a": 1, "b": [2, 3], "c": set()})
    assert where == 'WHERE "a" = ? AND "b" IN (?, ?) AND 0 = 1'
    assert params == [1, 2, 3]


def test_select_criteria(db: SqliteAdapter) -> None:
    assert [r["name"] for r in db.select_by("items", {"qty": Between(2, 9)})] == ["b", "d"]
    assert [r["name"] for r in db.select_by("items", {"qty": None})] == ["c"]
    assert [r["name"] for r in db.select_by("items", {"name": ("a", "d")})] == ["a", "d"]
    assert db.select_by("items", {"name": []}) == []


def test_select_order_limit_offset(db: SqliteAdapter) -> None:
    rows = db.select_by("items", {}, {"item_id": "desc"}, limit=2)
    assert [r["name"] for r in rows] == ["d", "c"]
    rows = db.select_by("items", {}, "item_id", offset=3)
    assert [r["name"] for r in rows] == ["d"]


def test_insert_returns_identity(db: SqliteAdapter) -> None:
    new_id = db.insert("items", {"name": "e", "qty": 2}, "item_id")
    assert new_id == 5
    assert db.select_by("items", {"item_id": new_id}) == [
        {"item_id": 5, "name": "e", "qty": 2}
    ]


def test_insert_constraint_violation_is_falsy(db: SqliteAdapter) -> None:
    assert db.insert("items", {"name": "a"}, "item_id") is None


def test_update_and_delete(db: SqliteAdapter) -> None:
    assert db.update("items", {"qty": 100}, {"name": "a"}) is True
    assert db.select_by("items", {"name": "a"})[0]["qty"] == 100
    assert db.update("items", {"name": "b"}, {"name": "a"}) is False
    assert db.delete("items", {"item_id": 1}) is True
    assert db.delete("items", {"item_id": 1}) is False
    with pytest.raises(ValueError):
        db.delete("items", {})
