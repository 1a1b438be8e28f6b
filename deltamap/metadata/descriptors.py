"""Typed metadata describing how tables map onto entity classes.

The external schema keeps the legacy keys so existing metadata files load
unchanged::

    {
        "users": {
            "class": "app.entities.User",
            "id": "id",
            "fields": {
                "id": null,
                "name": {"get": "getName", "set": "setName"},
                "born": {
                    "filters": {"input": "parseDate", "output": "formatDate"},
                    "validators": ["checkBorn"]
                }
            }
        }
    }
"""

from __future__ import annotations

import importlib
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class MetadataError(ValueError):
    """Raised when metadata is malformed or references unknown classes."""


def entity_type_id(entity: Any) -> str:
    """Return the identifier used to match an entity against metadata.

    Accepts an entity instance, an entity class or an identifier string.

    >>> entity_type_id(dict)
    'builtins.dict'
    >>> entity_type_id("app.entities.User")
    'app.entities.User'
    """
    if isinstance(entity, str):
        return entity
    cls = entity if isinstance(entity, type) else type(entity)
    return f"{cls.__module__}.{cls.__qualname__}"


@lru_cache(maxsize=None)
def import_entity_class(path: str) -> type:
    """Import ``"package.module.Class"`` and return the class."""
    module_name, _, class_name = path.rpartition(".")
    if not module_name:
        raise MetadataError(f"Entity class path must be dotted: {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise MetadataError(f"Cannot import entity module {module_name!r}") from exc
    cls = getattr(module, class_name, None)
    if not isinstance(cls, type):
        raise MetadataError(f"{path!r} does not name a class")
    return cls


class FieldFilters(BaseModel):
    input: Optional[str] = None
    output: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")


class FieldDescriptor(BaseModel):
    """Accessor, filter and validator names of a single field."""

    get_method: Optional[str] = Field(default=None, alias="get")
    set_method: Optional[str] = Field(default=None, alias="set")
    filters: FieldFilters = Field(default_factory=FieldFilters)
    validators: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    @property
    def has_accessors(self) -> bool:
        return self.get_method is not None or self.set_method is not None

    def method(self, kind: str) -> Optional[str]:
        if kind == "get":
            return self.get_method
        if kind == "set":
            return self.set_method
        raise ValueError(f"Unknown accessor kind: {kind!r}")

    def filter(self, direction: str) -> Optional[str]:
        if direction not in ("input", "output"):
            raise ValueError(f"Unknown filter direction: {direction!r}")
        return getattr(self.filters, direction)


class TableDescriptor(BaseModel):
    """Binds a table to an entity class, its identity field and its fields."""

    entity_class: Any = Field(alias="class")
    id_field: str = Field(alias="id")
    fields: dict[str, Optional[FieldDescriptor]] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    @field_validator("entity_class")
    @classmethod
    def _class_or_path(cls, v: Any) -> Any:
        if isinstance(v, type):
            return v
        if isinstance(v, str) and v.strip():
            # Legacy files may carry a leading namespace separator
            return v.strip().lstrip("\\").replace("\\", ".")
        raise ValueError("class must be a type or a dotted import path")

    @property
    def declared_id(self) -> str:
        """Identifier as written in the metadata, possibly a re-exported path."""
        return entity_type_id(self.entity_class)

    @property
    def type_id(self) -> str:
        """Identifier of the class itself, matching its instances."""
        return entity_type_id(self.resolve_entity_class())

    def resolve_entity_class(self) -> type:
        if isinstance(self.entity_class, type):
            return self.entity_class
        return import_entity_class(self.entity_class)


class MetaRegistry:
    """Ordered, read-only mapping of table name to :class:`TableDescriptor`.

    The first table is the default table of a repository.
    """

    def __init__(self, tables: Mapping[str, TableDescriptor]) -> None:
        if not tables:
            raise MetadataError("Metadata registry must declare at least one table")
        seen: dict[str, str] = {}
        for table, descriptor in tables.items():
            # Declared paths only; resolving them here would import entity modules
            other = seen.get(descriptor.declared_id)
            if other is not None:
                raise MetadataError(
                    f"Entity type {descriptor.declared_id!r} is mapped by both "
                    f"{other!r} and {table!r}"
                )
            seen[descriptor.declared_id] = table
        self._tables = MappingProxyType(dict(tables))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "MetaRegistry":
        """Build a registry from the nested-mapping metadata schema."""
        tables: dict[str, TableDescriptor] = {}
        for table, value in raw.items():
            if isinstance(value, TableDescriptor):
                tables[table] = value
                continue
            try:
                tables[table] = TableDescriptor.model_validate(value)
            except ValidationError as exc:
                raise MetadataError(f"Invalid metadata for table {table!r}: {exc}") from exc
        return cls(tables)

    @property
    def tables(self) -> Mapping[str, TableDescriptor]:
        return self._tables

    @property
    def default_table(self) -> str:
        return next(iter(self._tables))

    def get(self, table: str) -> Optional[TableDescriptor]:
        return self._tables.get(table)

    def find_table(self, type_id: str) -> Optional[str]:
        """Return the table mapped to ``type_id``.

        Declared paths are compared first. Classes named by a re-exported path
        (``"shop.Item"`` for ``shop.models.Item``) are then matched through the
        imported class.
        """
        for table, descriptor in self._tables.items():
            if descriptor.declared_id == type_id:
                return table
        for table, descriptor in self._tables.items():
            if descriptor.type_id == type_id:
                return table
        return None

    def __getitem__(self, table: str) -> TableDescriptor:
        return self._tables[table]

    def __contains__(self, table: object) -> bool:
        return table in self._tables

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)
