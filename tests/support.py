"""Entities and adapters shared by the test suite."""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional

from deltamap.adapters.base import AbstractAdapter, OrderBy, Row


class User:
    """Entity with conventional, custom, filtered and validated accessors."""

    def __init__(self) -> None:
        self._id: Optional[int] = None
        self._name: Optional[str] = None
        self._age: Optional[int] = None
        self._born: Optional[date] = None
        self._nickname = "anon"
        self.calls: list[str] = []

    def getId(self) -> Optional[int]:
        return self._id

    def setId(self, value: Optional[int]) -> None:
        self._id = value

    def getName(self) -> Optional[str]:
        return self._name

    def setName(self, value: Optional[str]) -> None:
        self.calls.append("setName")
        self._name = value

    def readAge(self) -> Optional[int]:
        return self._age

    def writeAge(self, value: Optional[int]) -> None:
        self._age = value

    def getBorn(self) -> Optional[date]:
        return self._born

    def setBorn(self, value: Optional[date]) -> None:
        self.calls.append(f"setBorn:{type(value).__name__}")
        self._born = value

    def parseBorn(self, value: Optional[str]) -> Optional[date]:
        self.calls.append("parseBorn")
        return date.fromisoformat(value) if value else None

    def formatBorn(self, value: Optional[date]) -> Optional[str]:
        return value.isoformat() if value else None

    def getNickname(self) -> str:
        return self._nickname

    def isAdult(self, value: int) -> bool:
        self.calls.append("isAdult")
        return value >= 18

    @staticmethod
    def notTooOld(value: int) -> bool:
        return value < 150


class Note:
    def __init__(self) -> None:
        self.note_id: Optional[int] = None
        self.text: Optional[str] = None

    def getNote_id(self) -> Optional[int]:
        return self.note_id

    def setNote_id(self, value: Optional[int]) -> None:
        self.note_id = value

    def getText(self) -> Optional[str]:
        return self.text

    def setText(self, value: Optional[str]) -> None:
        self.text = value


def user_meta() -> dict[str, Any]:
    return {
        "users": {
            "class": User,
            "id": "id",
            "fields": {
                "id": None,
                "name": {},
                "age": {
                    "get": "readAge",
                    "set": "writeAge",
                    "validators": ["isAdult", "hasNoSuchMethod", "notTooOld"],
                },
                "born": {"filters": {"input": "parseBorn", "output": "formatBorn"}},
                "nickname": {"get": "getNickname"},
            },
        },
        "notes": {
            "class": Note,
            "id": "note_id",
            "fields": {"note_id": None, "text": None},
        },
    }


class RecordingAdapter(AbstractAdapter):
    """In-memory adapter recording every call it receives."""

    def __init__(self, rows: Optional[list[Row]] = None, next_id: Any = 1) -> None:
        super().__init__("memory://")
        self.rows = list(rows or [])
        self.next_id = next_id
        self.update_result = True
        self.delete_result = True
        self.calls: list[tuple[Any, ...]] = []

    def connect(self) -> None:
        self.connection = object()

    def select_by(
        self,
        table: str,
        criteria: Mapping[str, Any],
        order_by: OrderBy = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Row]:
        self.calls.append(("select_by", table, dict(criteria), order_by, limit, offset))
        return [dict(row) for row in self.rows]

    def insert(self, table: str, row: Mapping[str, Any], id_field: str) -> Any:
        self.calls.append(("insert", table, dict(row), id_field))
        return self.next_id

    def update(self, table: str, row: Mapping[str, Any], key_criteria: Mapping[str, Any]) -> bool:
        self.calls.append(("update", table, dict(row), dict(key_criteria)))
        return self.update_result

    def delete(self, table: str, key_criteria: Mapping[str, Any]) -> bool:
        self.calls.append(("delete", table, dict(key_criteria)))
        return self.delete_result


