from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence, Union

Row = dict[str, Any]
OrderBy = Union[None, str, Mapping[str, str], Sequence[str]]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")
_DIRECTIONS = {"asc", "desc"}


def _check_field(field: Any) -> str:
    if not isinstance(field, str) or not _IDENTIFIER.match(field):
        raise ValueError(f"Invalid order by field: {field!r}")
    return field


def _check_direction(direction: Any) -> str:
    if not isinstance(direction, str) or direction.lower() not in _DIRECTIONS:
        raise ValueError(f"Invalid order by direction: {direction!r}")
    return direction.lower()


def render_order_by(order_by: OrderBy) -> str:
    """Render an ordering spec as an ``order by`` fragment.

    Accepted forms:
    - ``None`` or an empty mapping: no ordering, ``""``.
    - ``{"field": "asc" | "desc"}``: exactly one entry.
    - ``("field", "desc")`` or ``["field", "desc"]``.
    - ``"field"``: adapter default direction.

    A mapping with several entries is rejected since only one ordering pair
    is supported. Field names must be identifiers, optionally with a table
    prefix, so a raw clause such as ``"age desc"`` raises ``ValueError``;
    pass ``("age", "desc")`` instead.

    >>> render_order_by({"age": "desc"})
    'order by age desc'
    >>> render_order_by(["age", "desc"])
    'order by age desc'
    >>> render_order_by("age")
    'order by age'
    >>> render_order_by(None)
    ''
    """
    if order_by is None:
        return ""
    if isinstance(order_by, str):
        return f"order by {_check_field(order_by)}"
    if isinstance(order_by, Mapping):
        if not order_by:
            return ""
        if len(order_by) > 1:
            raise ValueError(
                "Ordering mapping must contain exactly one entry, "
                "use a (field, direction) pair instead"
            )
        ((field, direction),) = order_by.items()
        return f"order by {_check_field(field)} {_check_direction(direction)}"
    if isinstance(order_by, Sequence) and len(order_by) == 2:
        field, direction = order_by
        return f"order by {_check_field(field)} {_check_direction(direction)}"
    raise ValueError(f"Unsupported order by spec: {order_by!r}")


class AdapterInterface(ABC):
    """Contract a store must satisfy to back a repository."""

    @abstractmethod
    def select_by(
        self,
        table: str,
        criteria: Mapping[str, Any],
        order_by: OrderBy = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Row]:
        """
        Return rows of ``table`` matching ``criteria``.

        Example:
            >>> adapter.select_by("users", {"age": Between(18, 30)}, {"age": "asc"})
            [{"id": 1, "name": "Ann", "age": 21}, ...]

        :param table: Table name.
        :param criteria: Field to scalar (equality), ``None`` (is null) or
            :class:`~deltamap.adapters.where_params.Between` (range).
        :param order_by: Ordering spec accepted by :func:`render_order_by`.
        :return: Plain rows in store order.
        """

    @abstractmethod
    def insert(self, table: str, row: Mapping[str, Any], id_field: str) -> Any:
        """
        Insert ``row`` and return the new identity value, or a falsy value on failure.

        :param id_field: Name of the identity column generated by the store.
        """

    @abstractmethod
    def update(
        self, table: str, row: Mapping[str, Any], key_criteria: Mapping[str, Any]
    ) -> bool:
        """Update rows matching ``key_criteria`` with ``row``."""

    @abstractmethod
    def delete(self, table: str, key_criteria: Mapping[str, Any]) -> bool:
        """Delete rows matching ``key_criteria``."""

    @abstractmethod
    def connect(self) -> None:
        """Open the underlying connection."""

    @abstractmethod
    def is_connected(self) -> bool:
        """Return whether a connection is open."""


class AbstractAdapter(AdapterInterface):
    """Connection, DSN and parameter bookkeeping shared by adapters."""

    def __init__(self, dsn: Optional[str] = None, params: Optional[Mapping[str, Any]] = None) -> None:
        self._dsn = dsn
        self._params: dict[str, Any] = dict(params or {})
        self._connection: Any = None

    @property
    def dsn(self) -> Optional[str]:
        return self._dsn

    @dsn.setter
    def dsn(self, value: Optional[str]) -> None:
        self._dsn = value

    @property
    def params(self) -> dict[str, Any]:
        return self._params

    @params.setter
    def params(self, value: Mapping[str, Any]) -> None:
        self._params = dict(value)

    @property
    def connection(self) -> Any:
        return self._connection

    @connection.setter
    def connection(self, value: Any) -> None:
        self._connection = value

    def is_connected(self) -> bool:
        return self._connection is not None

    def get_order_by(self, order_by: OrderBy) -> str:
        return render_order_by(order_by)
