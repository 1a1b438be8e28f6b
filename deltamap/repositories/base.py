from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional


class RepositoryInterface(ABC):
    @abstractmethod
    def create(self, row: Optional[Mapping[str, Any]] = None, entity_class: Any = None) -> Any:
        """
        Instantiate a new entity, optionally loaded from ``row``.

        Example:
            >>> repo.create({"name": "Ann"})
            User(id=None, name='Ann')

        :param row: Field values to load into the fresh entity.
        :param entity_class: Entity class or type identifier; defaults to the
            class of the default table.
        """

    @abstractmethod
    def find(self, criteria: Optional[Mapping[str, Any]] = None, entity_class: Any = None) -> list[Any]:
        """
        Fetch every entity matching ``criteria``.

        Example:
            >>> repo.find({"age": Between(18, 30)})
            [User(...), User(...)]

        :param criteria: Field to value criteria passed to the adapter.
        :return: Entities in the order the adapter returned the rows.
        """

    @abstractmethod
    def find_one(self, criteria: Optional[Mapping[str, Any]] = None, entity_class: Any = None) -> Optional[Any]:
        """
        Fetch the first entity matching ``criteria``.

        :return: Entity if found, otherwise None.
        """

    @abstractmethod
    def find_by_id(self, id_value: Any, entity_class: Any = None) -> Optional[Any]:
        """
        Fetch an entity by its identity value.

        Example:
            >>> repo.find_by_id(42)
            User(id=42, name='Ann')

        :return: Entity if found, otherwise None.
        """

    @abstractmethod
    def save(self, entity: Any) -> bool:
        """
        Insert or update ``entity`` depending on whether it has an identity.

        A freshly inserted entity receives its new identity value.
        """

    @abstractmethod
    def delete(self, entity: Any) -> bool:
        """
        Delete ``entity`` by its identity value.

        :return: False when the entity has no identity or the store refused.
        """
