"""DynamoDB-backed table used by deployed functions."""

from __future__ import annotations

import asyncio
import json
from decimal import Decimal
from typing import Any, Generic

import boto3
import structlog
from boto3.dynamodb.conditions import Key

from cloudapp.abstractions import EntityT
from cloudapp.storage.keys import EntityKeys, resolve_table_name

logger = structlog.get_logger(__name__)


def create_dynamodb_resource(*, region_name: str | None = None, endpoint_url: str | None = None) -> Any:
    return boto3.resource("dynamodb", region_name=region_name, endpoint_url=endpoint_url)


class DynamoDbTable(Generic[EntityT]):
    """Table over a boto3 ``Table`` resource.

    Item attributes use the entity's camelCase wire names. boto3 is blocking,
    so every call runs in a worker thread; cancelling the awaiting task
    returns control immediately but cannot abort the HTTP call already in
    flight.
    """

    def __init__(
        self,
        entity_type: type[EntityT],
        resource: Any,
        *,
        table_name: str | None = None,
    ):
        self.entity_type = entity_type
        self.keys = EntityKeys.for_entity(entity_type)
        self.table_name = resolve_table_name(entity_type, table_name)
        self._pk_attr, self._sk_attr = self.keys.attribute_names(entity_type)
        self._table = resource.Table(self.table_name)

    async def get(self, partition_key: str, sort_key: str | None = None) -> EntityT | None:
        if self._sk_attr is not None and sort_key is None:
            return None
        response = await asyncio.to_thread(self._table.get_item, Key=self._key(partition_key, sort_key))
        item = response.get("Item")
        return None if item is None else self._deserialize(item)

    async def put(self, entity: EntityT) -> None:
        await asyncio.to_thread(self._table.put_item, Item=self._serialize(entity))

    async def delete(self, partition_key: str, sort_key: str | None = None) -> None:
        if sort_key is not None or self._sk_attr is None:
            await asyncio.to_thread(self._table.delete_item, Key=self._key(partition_key, sort_key))
            return
        items = await asyncio.to_thread(self._query_items, partition_key)
        await asyncio.to_thread(self._delete_items, items)

    async def query(self, partition_key: str) -> list[EntityT]:
        items = await asyncio.to_thread(self._query_items, partition_key)
        return [self._deserialize(item) for item in items]

    async def scan(self) -> list[EntityT]:
        items = await asyncio.to_thread(self._scan_items)
        return [self._deserialize(item) for item in items]

    def _key(self, partition_key: str, sort_key: str | None) -> dict[str, str]:
        key = {self._pk_attr: partition_key}
        if self._sk_attr is not None and sort_key is not None:
            key[self._sk_attr] = sort_key
        return key

    def _query_items(self, partition_key: str) -> list[dict[str, Any]]:
        kwargs: dict[str, Any] = {"KeyConditionExpression": Key(self._pk_attr).eq(partition_key)}
        items: list[dict[str, Any]] = []
        while True:
            response = self._table.query(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def _scan_items(self) -> list[dict[str, Any]]:
        kwargs: dict[str, Any] = {}
        items: list[dict[str, Any]] = []
        while True:
            response = self._table.scan(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def _delete_items(self, items: list[dict[str, Any]]) -> None:
        with self._table.batch_writer() as batch:
            for item in items:
                batch.delete_item(Key={self._pk_attr: item[self._pk_attr], self._sk_attr: item[self._sk_attr]})
        logger.debug("dynamodb.partition_deleted", table=self.table_name, items=len(items))

    def _serialize(self, entity: EntityT) -> dict[str, Any]:
        # DynamoDB rejects float; round-trip through JSON to turn them into Decimal.
        payload = entity.model_dump_json(by_alias=True)
        return json.loads(payload, parse_float=Decimal)

    def _deserialize(self, item: dict[str, Any]) -> EntityT:
        return self.entity_type.model_validate(_from_dynamo(item))


def _from_dynamo(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {key: _from_dynamo(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_from_dynamo(item) for item in value]
    return value
