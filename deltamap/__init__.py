"""Metadata-driven data mapper binding plain entities to relational rows."""

from .adapters.base import AbstractAdapter, AdapterInterface, render_order_by
from .adapters.where_params import Between
from .metadata import FieldDescriptor, MetaRegistry, MetadataError, TableDescriptor
from .repositories.repository import MissingIdentityError, Repository

__all__ = [
    "AbstractAdapter",
    "AdapterInterface",
    "Between",
    "FieldDescriptor",
    "MetaRegistry",
    "MetadataError",
    "MissingIdentityError",
    "Repository",
    "TableDescriptor",
    "render_order_by",
]
