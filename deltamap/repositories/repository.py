"""Metadata-driven repository engine.

Entities stay persistence agnostic: the repository reads and writes them
only through the accessor, filter and validator methods named in the
metadata registry, and exchanges plain rows with an adapter.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Mapping, Optional, Union

from deltamap.adapters.base import AdapterInterface, OrderBy, Row
from deltamap.adapters.storage import DbaStorage
from deltamap.config.settings import settings
from deltamap.infrastructure.lookup_cache import LookupCache
from deltamap.logging_config import CacheStats
from deltamap.metadata.descriptors import (
    FieldDescriptor,
    MetaRegistry,
    entity_type_id,
    import_entity_class,
)

from .base import RepositoryInterface

logger = logging.getLogger(__name__)

METHOD_SET = "set"
METHOD_GET = "get"
FILTER_IN = "input"
FILTER_OUT = "output"

_MISSING: Any = object()


class MissingIdentityError(KeyError):
    """Raised when an update is requested for a row without its identity field."""


def is_empty_identity(value: Any) -> bool:
    """Return whether ``value`` cannot identify a stored row.

    Blank strings count as empty. The string ``"0"`` is a valid identity, so
    text keys such as ``"0"`` still route to updates.

    >>> [is_empty_identity(v) for v in (None, "", "  ", 0, 5, "abc")]
    [True, True, True, True, False, False]
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (int, float)):
        return value == 0
    return False


def _bind(cls: type, name: Optional[str]) -> Optional[Callable[..., Any]]:
    """Resolve method ``name`` of ``cls`` to a callable taking the entity first."""
    if name is None:
        return None
    try:
        raw = inspect.getattr_static(cls, name)
    except AttributeError:
        return None
    if isinstance(raw, (staticmethod, classmethod)):
        func = getattr(cls, name)
        return lambda entity, *args: func(*args)
    func = getattr(cls, name, None)
    if not callable(func):
        return None
    return func


@dataclass(frozen=True)
class FieldBinding:
    """Entity callables of one field; ``None`` where the entity lacks the method."""

    getter: Optional[Callable[..., Any]] = None
    setter: Optional[Callable[..., Any]] = None
    input_filter: Optional[Callable[..., Any]] = None
    output_filter: Optional[Callable[..., Any]] = None
    validators: tuple[Callable[..., Any], ...] = ()


class Repository(RepositoryInterface):
    """CRUD engine over a :class:`MetaRegistry` and an adapter.

    Metadata comes from ``meta`` or, for subclasses, from the ``meta_info``
    class attribute written in the nested-mapping schema::

        class UserRepository(Repository):
            meta_info = {
                "users": {
                    "class": User,
                    "id": "id",
                    "fields": {"id": None, "name": {"get": "getName", "set": "setName"}},
                }
            }

    The adapter is either passed in or looked up in :class:`DbaStorage`
    under ``dba`` on first use.
    """

    meta_info: ClassVar[Mapping[str, Any]] = {}

    def __init__(
        self,
        adapter: Optional[AdapterInterface] = None,
        *,
        meta: Union[MetaRegistry, Mapping[str, Any], None] = None,
        dba: Optional[str] = None,
    ) -> None:
        if meta is None:
            meta = self.meta_info
        self._meta = meta if isinstance(meta, MetaRegistry) else MetaRegistry.from_mapping(meta)
        self._adapter = adapter
        self._dba = dba or settings.default_dba
        self._self_cache: LookupCache[str, Any] = LookupCache()
        self.cache_stats = CacheStats(type(self).__name__)

    # ------------------------------------------------------------------
    # Adapter and cache plumbing
    # ------------------------------------------------------------------
    @property
    def meta(self) -> MetaRegistry:
        return self._meta

    def get_dba(self) -> str:
        return self._dba

    def set_dba(self, dba: str) -> None:
        self._dba = dba

    def set_adapter(self, adapter: AdapterInterface) -> None:
        self._adapter = adapter

    def get_adapter(self) -> AdapterInterface:
        if self._adapter is None:
            self._adapter = DbaStorage.get_dba(self._dba)
        return self._adapter

    def _cached(self, key: str, compute: Callable[[], Any]) -> Any:
        value = self._self_cache.get(key, _MISSING)
        if value is not _MISSING:
            self.cache_stats.record_hit()
            return value
        self.cache_stats.record_miss()
        value = compute()
        self._self_cache.set(key, value)
        return value

    # ------------------------------------------------------------------
    # Metadata resolution
    # ------------------------------------------------------------------
    def get_table_name(self, entity: Any = None) -> Optional[str]:
        """Return the table mapped to ``entity`` (instance, class or type id).

        Without an entity the first registered table is returned.
        """
        type_id = None if entity is None else entity_type_id(entity)

        def compute() -> Optional[str]:
            if type_id is None:
                return self._meta.default_table
            table = self._meta.find_table(type_id)
            if table is None:
                logger.warning("No table mapped for entity type %s", type_id)
            return table

        return self._cached(f"tableName|{type_id or ''}|", compute)

    def _table(self, table: Optional[str]) -> Optional[str]:
        return self.get_table_name() if table is None else table

    def get_entity_class(self, table: Optional[str] = None) -> Optional[type]:
        descriptor = self._meta.get(self._table(table))
        if descriptor is None:
            return None
        return descriptor.resolve_entity_class()

    def get_id_field(self, table: Optional[str]) -> Optional[str]:
        descriptor = self._meta.get(self._table(table))
        return None if descriptor is None else descriptor.id_field

    def get_fields(self, table: Optional[str]) -> list[str]:
        descriptor = self._meta.get(table) if table is not None else None
        return [] if descriptor is None else list(descriptor.fields)

    def get_field_meta(self, table: Optional[str], field: str) -> Optional[FieldDescriptor]:
        descriptor = self._meta.get(table) if table is not None else None
        if descriptor is None:
            return None
        return descriptor.fields.get(field)

    def get_field_method(self, table: Optional[str], field: str, kind: str) -> Optional[str]:
        """Return the accessor name of ``kind`` (``"get"``/``"set"``) for ``field``.

        Fields declared without accessors fall back to ``kind + Field``
        (``"setName"``). A descriptor naming only the other kind yields None.
        """
        field_meta = self.get_field_meta(table, field)
        if field_meta is None or not field_meta.has_accessors:
            return kind + field[:1].upper() + field[1:]
        return field_meta.method(kind)

    def get_field_filter(self, table: Optional[str], field: str, direction: str) -> Optional[str]:
        field_meta = self.get_field_meta(table, field)
        if field_meta is None:
            return None
        return field_meta.filter(direction)

    def get_field_validators(self, table: Optional[str], field: str) -> list[str]:
        field_meta = self.get_field_meta(table, field)
        if field_meta is None:
            return []
        return list(field_meta.validators)

    def get_binding(self, table: Optional[str], field: str) -> Optional[FieldBinding]:
        """Resolve the entity callables of ``field`` once per repository."""

        def compute() -> Optional[FieldBinding]:
            descriptor = self._meta.get(table) if table is not None else None
            if descriptor is None:
                return None
            cls = descriptor.resolve_entity_class()
            return FieldBinding(
                getter=_bind(cls, self.get_field_method(table, field, METHOD_GET)),
                setter=_bind(cls, self.get_field_method(table, field, METHOD_SET)),
                input_filter=_bind(cls, self.get_field_filter(table, field, FILTER_IN)),
                output_filter=_bind(cls, self.get_field_filter(table, field, FILTER_OUT)),
                validators=tuple(
                    bound
                    for bound in (
                        _bind(cls, name) for name in self.get_field_validators(table, field)
                    )
                    if bound is not None
                ),
            )

        return self._cached(f"binding|{table}|{field}|", compute)

    # ------------------------------------------------------------------
    # Entity field access
    # ------------------------------------------------------------------
    def _entity_table(self, entity: Any, table: Optional[str]) -> Optional[str]:
        return self.get_table_name(entity) if table is None else table

    def get_field(self, entity: Any, field: str, table: Optional[str] = None) -> Any:
        binding = self.get_binding(self._entity_table(entity, table), field)
        if binding is None or binding.getter is None:
            return None
        value = binding.getter(entity)
        if binding.output_filter is not None:
            value = binding.output_filter(entity, value)
        return value

    def set_field(self, entity: Any, field: str, value: Any, table: Optional[str] = None) -> bool:
        binding = self.get_binding(self._entity_table(entity, table), field)
        if binding is None:
            return False
        if binding.input_filter is not None:
            value = binding.input_filter(entity, value)
        if binding.setter is None:
            return False
        binding.setter(entity, value)
        return True

    def validate_field(self, entity: Any, field: str, value: Any) -> bool:
        """Run the declared validators in order; the first returning False rejects."""
        binding = self.get_binding(self.get_table_name(entity), field)
        if binding is None:
            return True
        for validator in binding.validators:
            if validator(entity, value) is False:
                return False
        return True

    def load(self, entity: Any, row: Mapping[str, Any], table: Optional[str] = None) -> None:
        """Apply ``row`` to ``entity``; keys that are not table fields are ignored."""
        table = self._entity_table(entity, table)
        fields = set(self.get_fields(table))
        for field, value in row.items():
            if field in fields:
                self.set_field(entity, field, value, table)

    def reserve(self, entity: Any, table: Optional[str] = None) -> Row:
        """Snapshot ``entity`` into a row holding every table field."""
        table = self._entity_table(entity, table)
        return {field: self.get_field(entity, field, table) for field in self.get_fields(table)}

    # ------------------------------------------------------------------
    # Row level primitives
    # ------------------------------------------------------------------
    def find_raw(
        self,
        criteria: Optional[Mapping[str, Any]] = None,
        table: Optional[str] = None,
        *,
        order_by: OrderBy = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Row]:
        return self.get_adapter().select_by(
            self._table(table), dict(criteria or {}), order_by, limit, offset
        )

    def insert_raw(self, row: Mapping[str, Any], table: Optional[str] = None) -> Any:
        """Insert ``row`` without its identity field; return the new id or False."""
        table = self._table(table)
        id_field = self.get_id_field(table)
        fields = {key: value for key, value in row.items() if key != id_field}
        new_id = self.get_adapter().insert(table, fields, id_field)
        if is_empty_identity(new_id):
            logger.warning("Insert into %s returned no identity", table)
            return False
        logger.debug("Inserted row", extra={"table": table, "id": new_id})
        return new_id

    def update_raw(self, row: Mapping[str, Any], table: Optional[str] = None) -> bool:
        table = self._table(table)
        id_field = self.get_id_field(table)
        if id_field not in row:
            raise MissingIdentityError(f"Row for {table!r} has no identity field {id_field!r}")
        fields = dict(row)
        id_value = fields.pop(id_field)
        result = bool(self.get_adapter().update(table, fields, {id_field: id_value}))
        if not result:
            logger.warning("Update of %s id=%s failed", table, id_value)
        return result

    def save_raw(self, row: Mapping[str, Any], table: Optional[str] = None) -> Any:
        table = self._table(table)
        if is_empty_identity(row.get(self.get_id_field(table))):
            return self.insert_raw(row, table)
        return self.update_raw(row, table)

    def delete_by_id(self, id_value: Any, table: Optional[str] = None) -> bool:
        table = self._table(table)
        id_field = self.get_id_field(table)
        result = bool(self.get_adapter().delete(table, {id_field: id_value}))
        logger.debug("Delete row", extra={"table": table, "id": id_value, "ok": result})
        return result

    # ------------------------------------------------------------------
    # Entity API
    # ------------------------------------------------------------------
    def _resolve_class(self, entity_class: Any) -> type:
        if entity_class is None:
            cls = self.get_entity_class()
        elif isinstance(entity_class, type):
            cls = entity_class
        else:
            table = self.get_table_name(entity_class)
            cls = self.get_entity_class(table) if table is not None else None
            if cls is None:
                cls = import_entity_class(entity_class)
        if cls is None:
            raise LookupError(f"No entity class mapped for {entity_class!r}")
        return cls

    def create(self, row: Optional[Mapping[str, Any]] = None, entity_class: Any = None) -> Any:
        entity = self._resolve_class(entity_class)()
        if row is not None:
            self.load(entity, row, self.get_table_name(entity_class))
        return entity

    def save(self, entity: Any) -> bool:
        table = self.get_table_name(entity)
        if table is None:
            return False
        id_field = self.get_id_field(table)
        row = self.reserve(entity, table)
        if not is_empty_identity(row.get(id_field)):
            return self.update_raw(row, table)
        new_id = self.insert_raw(row, table)
        if new_id is False:
            return False
        self.set_field(entity, id_field, new_id, table)
        return True

    def delete(self, entity: Any) -> bool:
        table = self.get_table_name(entity)
        if table is None:
            return False
        id_value = self.get_field(entity, self.get_id_field(table), table)
        if is_empty_identity(id_value):
            return False
        return self.delete_by_id(id_value, table)

    def find(
        self,
        criteria: Optional[Mapping[str, Any]] = None,
        entity_class: Any = None,
        *,
        order_by: OrderBy = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Any]:
        table = self.get_table_name(entity_class)
        if table is None:
            return []
        cls = self._resolve_class(entity_class)
        rows = self.find_raw(criteria, table, order_by=order_by, limit=limit, offset=offset)
        return [self.create(row, cls) for row in rows]

    def find_one(self, criteria: Optional[Mapping[str, Any]] = None, entity_class: Any = None) -> Optional[Any]:
        items = self.find(criteria, entity_class)
        return items[0] if items else None

    def find_by_id(self, id_value: Any, entity_class: Any = None) -> Optional[Any]:
        table = self.get_table_name(entity_class)
        if table is None:
            return None
        return self.find_one({self.get_id_field(table): id_value}, entity_class)
