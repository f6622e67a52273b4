"""
Entity metadata stores.

Metadata feeds ``meta``-sourced attributes and the cache fingerprint: a
change to any metadata of an entity changes the cache key of every block
tree parsed for it.
"""

import copy
from abc import ABC, abstractmethod
from typing import Any, Optional


class BaseMetadataStore(ABC):
    """Abstract per-entity key/value store."""

    @abstractmethod
    def get(self, entity_id: int, key: str) -> Optional[Any]:
        """
        Return one metadata value.

        Args:
            entity_id: Owning entity
            key: Metadata key

        Returns:
            The stored value, or None if the key is missing
        """
        pass

    @abstractmethod
    def get_all(self, entity_id: int) -> dict[str, Any]:
        """Return every metadata entry of an entity (empty dict if none)."""
        pass


class InMemoryMetadataStore(BaseMetadataStore):
    """Dict-backed metadata store."""

    def __init__(self, data: Optional[dict[int, dict[str, Any]]] = None):
        self._data: dict[int, dict[str, Any]] = {}
        for entity_id, entries in (data or {}).items():
            # JSON-loaded data has string entity ids
            self._data[int(entity_id)] = dict(entries)

    def get(self, entity_id: int, key: str) -> Optional[Any]:
        return copy.deepcopy(self._data.get(entity_id, {}).get(key))

    def get_all(self, entity_id: int) -> dict[str, Any]:
        return copy.deepcopy(self._data.get(entity_id, {}))

    def set(self, entity_id: int, key: str, value: Any) -> None:
        self._data.setdefault(entity_id, {})[key] = value

    def delete(self, entity_id: int, key: str) -> bool:
        entries = self._data.get(entity_id)
        if entries is None or key not in entries:
            return False
        del entries[key]
        return True
