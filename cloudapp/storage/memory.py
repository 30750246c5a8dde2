"""In-memory table used by the local runtime and the tests."""

from __future__ import annotations

from threading import Lock
from typing import Generic

from cloudapp.abstractions import EntityT
from cloudapp.storage.keys import EntityKeys


class InMemoryTable(Generic[EntityT]):
    """Dictionary keyed by ``(partition_key, sort_key)`` and guarded by a lock.

    Single-key operations are atomic. ``query`` and ``scan`` return
    point-in-time snapshots. Entities are copied on the way in and out.
    """

    def __init__(self, entity_type: type[EntityT]):
        self.entity_type = entity_type
        self.keys = EntityKeys.for_entity(entity_type)
        self._store: dict[tuple[str, str | None], EntityT] = {}
        self._lock = Lock()

    async def get(self, partition_key: str, sort_key: str | None = None) -> EntityT | None:
        with self._lock:
            entity = self._store.get(_key(partition_key, sort_key))
        return None if entity is None else entity.model_copy(deep=True)

    async def put(self, entity: EntityT) -> None:
        key = (self.keys.partition_value(entity), self.keys.sort_value(entity))
        stored = entity.model_copy(deep=True)
        with self._lock:
            self._store[key] = stored

    async def delete(self, partition_key: str, sort_key: str | None = None) -> None:
        partition_key = str(partition_key)
        with self._lock:
            if sort_key is not None or self.keys.sort_key is None:
                self._store.pop(_key(partition_key, sort_key), None)
                return
            # Whole partition; compares the stored key exactly, so "user1" never matches "user10".
            for key in [key for key in self._store if key[0] == partition_key]:
                del self._store[key]

    async def query(self, partition_key: str) -> list[EntityT]:
        partition_key = str(partition_key)
        with self._lock:
            matches = [entity for key, entity in self._store.items() if key[0] == partition_key]
        return [entity.model_copy(deep=True) for entity in matches]

    async def scan(self) -> list[EntityT]:
        with self._lock:
            snapshot = list(self._store.values())
        return [entity.model_copy(deep=True) for entity in snapshot]

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


def _key(partition_key: object, sort_key: object | None) -> tuple[str, str | None]:
    # put() stores stringified key values.
    return str(partition_key), None if sort_key is None else str(sort_key)
