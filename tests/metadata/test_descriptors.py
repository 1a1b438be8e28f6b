from __future__ import annotations

import pytest
from support import Note, User, user_meta

from deltamap.metadata.descriptors import (
    FieldDescriptor,
    MetaRegistry,
    MetadataError,
    TableDescriptor,
    entity_type_id,
    import_entity_class,
)


def test_registry_from_legacy_mapping() -> None:
    registry = MetaRegistry.from_mapping(user_meta())
    assert list(registry) == ["users", "notes"]
    assert registry.default_table == "users"
    users = registry["users"]
    assert users.id_field == "id"
    assert users.fields["id"] is None
    assert users.fields["age"].set_method == "writeAge"
    assert users.fields["age"].validators == ("isAdult", "hasNoSuchMethod", "notTooOld")
    assert users.fields["born"].filter("input") == "parseBorn"
    assert registry.find_table(entity_type_id(Note)) == "notes"
    assert registry.get("missing") is None
    assert "notes" in registry and len(registry) == 2


def test_field_descriptor_accessors() -> None:
    empty = FieldDescriptor()
    assert empty.has_accessors is False
    only_get = FieldDescriptor.model_validate({"get": "getX"})
    assert only_get.has_accessors is True
    assert only_get.method("get") == "getX"
    assert only_get.method("set") is None
    with pytest.raises(ValueError):
        only_get.method("delete")
    with pytest.raises(ValueError):
        only_get.filter("sideways")


def test_descriptors_are_frozen() -> None:
    descriptor = FieldDescriptor(get="getX")
    with pytest.raises(Exception):
        descriptor.get_method = "other"  # type: ignore[misc]


def test_unknown_field_keys_rejected() -> None:
    with pytest.raises(MetadataError):
        MetaRegistry.from_mapping(
            {"users": {"class": User, "id": "id", "fields": {"name": {"getter": "x"}}}}
        )


def test_missing_identity_rejected() -> None:
    with pytest.raises(MetadataError):
        MetaRegistry.from_mapping({"users": {"class": User, "fields": {}}})


def test_empty_registry_rejected() -> None:
    with pytest.raises(MetadataError):
        MetaRegistry({})


def test_duplicate_entity_type_rejected() -> None:
    with pytest.raises(MetadataError):
        MetaRegistry.from_mapping(
            {
                "users": {"class": User, "id": "id"},
                "people": {"class": User, "id": "id"},
            }
        )


def test_legacy_namespace_separators_are_normalized() -> None:
    table = TableDescriptor.model_validate({"class": "\\types\\SimpleNamespace", "id": "id"})
    assert table.entity_class == "types.SimpleNamespace"
    assert table.type_id == "types.SimpleNamespace"
    assert table.resolve_entity_class().__name__ == "SimpleNamespace"


@pytest.mark.parametrize("path", ["NoDots", "no_such_module_xyz.Thing", "types.no_such_class"])
def test_bad_class_paths(path: str) -> None:
    with pytest.raises(MetadataError):
        import_entity_class(path)


def test_invalid_class_value_rejected() -> None:
    with pytest.raises(MetadataError):
        MetaRegistry.from_mapping({"users": {"class": 123, "id": "id"}})


def test_reexported_class_path_matches_instances() -> None:
    from catalog import Item

    registry = MetaRegistry.from_mapping({"items": {"class": "catalog.Item", "id": "id"}})
    descriptor = registry["items"]
    assert descriptor.declared_id == "catalog.Item"
    assert descriptor.type_id == entity_type_id(Item) == "catalog.models.Item"
    assert registry.find_table("catalog.Item") == "items"
    assert registry.find_table(entity_type_id(Item())) == "items"
    assert registry.find_table("catalog.Other") is None
