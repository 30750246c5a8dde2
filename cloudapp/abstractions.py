"""Contracts application code is written against."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

HTTP_API_ATTR = "__cloudapp_http_api__"
FUNCTION_CONFIG_ATTR = "__cloudapp_function_config__"
TABLE_NAME_ATTR = "__cloudapp_table_name__"


class Method(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    @property
    def binds_from_route(self) -> bool:
        """GET and DELETE bind from route + query, everything else from the body."""
        return self in (Method.GET, Method.DELETE)


@dataclass(frozen=True, slots=True)
class HttpApi:
    method: Method
    route: str


@dataclass(frozen=True, slots=True)
class FunctionConfig:
    memory_mb: int | None = None
    timeout_seconds: int | None = None


def http_api(method: Method | str, route: str):
    """Mark a function class as reachable at ``method route``."""

    if not isinstance(method, Method):
        method = Method(method.upper())
    api = HttpApi(method=method, route=route)

    def decorate(cls: type) -> type:
        # Stored in the class __dict__ so subclasses do not inherit the route.
        setattr(cls, HTTP_API_ATTR, api)
        return cls

    return decorate


def function_config(*, memory_mb: int | None = None, timeout_seconds: int | None = None):
    config = FunctionConfig(memory_mb=memory_mb, timeout_seconds=timeout_seconds)

    def decorate(cls: type) -> type:
        setattr(cls, FUNCTION_CONFIG_ATTR, config)
        return cls

    return decorate


def table_name(name: str):
    """Override the physical table name of a storage entity."""

    def decorate(cls: type) -> type:
        setattr(cls, TABLE_NAME_ATTR, name)
        return cls

    return decorate


def get_http_api(cls: type) -> HttpApi | None:
    return cls.__dict__.get(HTTP_API_ATTR)


def get_function_config(cls: type) -> FunctionConfig | None:
    return cls.__dict__.get(FUNCTION_CONFIG_ATTR)


def get_table_name(cls: type) -> str | None:
    return cls.__dict__.get(TABLE_NAME_ATTR)


class Shape(BaseModel):
    """Base for request and response shapes.

    Fields are snake_case in Python and camelCase on the wire.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TableEntity(Shape):
    """Marker base for storage entities."""


class PartitionKey:
    """Field marker: ``id: Annotated[str, PartitionKey()]``."""

    def __repr__(self) -> str:
        return "PartitionKey()"


class SortKey:
    """Field marker: ``sk: Annotated[str, SortKey()]``."""

    def __repr__(self) -> str:
        return "SortKey()"


RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")
EntityT = TypeVar("EntityT", bound=TableEntity)


class HttpFunction(ABC, Generic[RequestT, ResponseT]):
    """HTTP-triggered function (API Gateway -> Lambda, or a local route)."""

    @abstractmethod
    async def handle(self, request: RequestT) -> ResponseT:
        raise NotImplementedError


@runtime_checkable
class Table(Protocol[EntityT]):
    """Key-value table over one entity type."""

    async def get(self, partition_key: str, sort_key: str | None = None) -> EntityT | None: ...

    async def put(self, entity: EntityT) -> None: ...

    async def delete(self, partition_key: str, sort_key: str | None = None) -> None: ...

    async def query(self, partition_key: str) -> list[EntityT]: ...

    async def scan(self) -> list[EntityT]: ...
