"""Table and field metadata."""

from .descriptors import (
    FieldDescriptor,
    FieldFilters,
    MetaRegistry,
    MetadataError,
    TableDescriptor,
    entity_type_id,
)
from .loader import load_registry, load_registry_from_settings

__all__ = [
    "FieldDescriptor",
    "FieldFilters",
    "MetaRegistry",
    "MetadataError",
    "TableDescriptor",
    "entity_type_id",
    "load_registry",
    "load_registry_from_settings",
]
