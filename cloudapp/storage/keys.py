"""Key metadata for storage entities."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from cloudapp.abstractions import PartitionKey, SortKey, TableEntity, get_table_name
from cloudapp.exceptions import TableConfigurationError


@dataclass(frozen=True, slots=True)
class EntityKeys:
    """Which fields of an entity hold its partition and sort keys."""

    partition_key: str
    sort_key: str | None = None

    @classmethod
    def for_entity(cls, entity_type: type[TableEntity]) -> EntityKeys:
        partition = _fields_marked(entity_type, PartitionKey)
        sort = _fields_marked(entity_type, SortKey)
        name = entity_type.__name__
        if not partition:
            raise TableConfigurationError(
                f"Entity type {name} must have a field marked with PartitionKey()."
            )
        if len(partition) > 1:
            raise TableConfigurationError(
                f"Entity type {name} marks {len(partition)} partition keys: {', '.join(partition)}."
            )
        if len(sort) > 1:
            raise TableConfigurationError(
                f"Entity type {name} marks {len(sort)} sort keys: {', '.join(sort)}."
            )
        return cls(partition_key=partition[0], sort_key=sort[0] if sort else None)

    def partition_value(self, entity: TableEntity) -> str:
        value = getattr(entity, self.partition_key)
        if value is None:
            raise ValueError("Partition key value cannot be None.")
        return str(value)

    def sort_value(self, entity: TableEntity) -> str | None:
        if self.sort_key is None:
            return None
        value = getattr(entity, self.sort_key)
        return None if value is None else str(value)

    def attribute_names(self, entity_type: type[TableEntity]) -> tuple[str, str | None]:
        """Wire (camelCase) names of the key fields."""
        fields = entity_type.model_fields
        pk = fields[self.partition_key].alias or self.partition_key
        if self.sort_key is None:
            return pk, None
        return pk, fields[self.sort_key].alias or self.sort_key


def _fields_marked(entity_type: type[TableEntity], marker: type) -> list[str]:
    return [
        name
        for name, info in entity_type.model_fields.items()
        if any(isinstance(meta, marker) or meta is marker for meta in info.metadata)
    ]


def default_table_name(entity_type: type[Any]) -> str:
    """Physical table name declared for ``entity_type``.

    ``@table_name`` wins; otherwise the class name plus ``s``. Names already
    ending in ``s`` are ambiguous and must be overridden explicitly.
    """
    explicit = get_table_name(entity_type)
    if explicit:
        return explicit
    name = entity_type.__name__
    if name.lower().endswith("s"):
        raise TableConfigurationError(
            f"Cannot derive a table name for {name}; decorate it with @table_name(...)."
        )
    return f"{name}s"


def table_env_var(entity_type: type[Any]) -> str:
    return f"TABLE_{entity_type.__name__.upper()}"


def resolve_table_name(entity_type: type[Any], declared: str | None = None) -> str:
    """Runtime table name: ``TABLE_<ENTITY>`` from the deployed stack, else the declared name."""
    from_env = os.environ.get(table_env_var(entity_type))
    if from_env:
        return from_env
    return declared or default_table_name(entity_type)
