from __future__ import annotations

import sys
from abc import abstractmethod
from typing import Annotated

import pytest

from cloudapp import (
    ConfigurationError,
    HttpFunction,
    Method,
    PartitionKey,
    Shape,
    TableConfigurationError,
    TableEntity,
    http_api,
    table_name,
)
from cloudapp.discovery import FunctionDiscovery, TableDiscovery, describe_function, function_shapes
from cloudapp.registration import CloudDefaults, TableRegistration
from samples.order_api.functions import CreateOrderRequest, CreateOrderResponse


class Ping(Shape):
    message: str = "pong"


class PingBase(HttpFunction[Ping, Ping]):
    @abstractmethod
    def prefix(self) -> str: ...

    async def handle(self, request: Ping) -> Ping:
        return Ping(message=self.prefix() + request.message)


@http_api(Method.GET, "/abstract")
class AbstractPing(PingBase):
    pass


class Undecorated(HttpFunction[Ping, Ping]):
    async def handle(self, request: Ping) -> Ping:
        return request


@http_api("post", "/ping")
class ConcretePing(PingBase):
    def prefix(self) -> str:
        return ">"


@http_api(Method.GET, "/child")
class ChildPing(ConcretePing):
    pass


class PlainRequest:
    pass


@http_api(Method.GET, "/legacy")
class Legacy(HttpFunction[PlainRequest, dict]):
    async def handle(self, request: PlainRequest) -> dict:
        return {}


class Address(TableEntity):
    id: Annotated[str, PartitionKey()]


@table_name("addresses")
class NamedAddress(TableEntity):
    id: Annotated[str, PartitionKey()]


def test_discovers_sample_functions() -> None:
    names = {r.name for r in FunctionDiscovery().from_module("samples.order_api.functions").discover()}
    assert names == {"CreateOrder", "GetOrder", "ListOrders"}


def test_package_discovery_walks_submodules_once() -> None:
    found = FunctionDiscovery().from_module("samples").from_module("samples.order_api").discover()
    assert sorted(r.name for r in found) == ["CreateOrder", "GetOrder", "ListOrders"]


def test_filter_limits_discovery() -> None:
    found = (
        FunctionDiscovery()
        .from_module("samples.order_api.functions")
        .with_filter(lambda cls: cls.__name__.startswith("Get"))
        .discover()
    )
    assert [r.name for r in found] == ["GetOrder"]


def test_discovery_without_module_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        FunctionDiscovery().discover()
    with pytest.raises(ConfigurationError):
        TableDiscovery().discover()


def test_abstract_and_undecorated_classes_are_skipped() -> None:
    assert describe_function(AbstractPing) is None
    assert describe_function(Undecorated) is None
    assert describe_function(PingBase) is None


def test_shapes_and_method_come_from_declaration() -> None:
    registration = describe_function(ConcretePing)
    assert registration.request_type is Ping
    assert registration.http_api.method is Method.POST
    assert registration.http_api.route == "/ping"


def test_route_is_not_inherited_but_shapes_are() -> None:
    registration = describe_function(ChildPing)
    assert registration.http_api.route == "/child"
    assert function_shapes(ChildPing) == (Ping, Ping)


def test_function_shapes_of_sample() -> None:
    from samples.order_api.functions import CreateOrder

    assert function_shapes(CreateOrder) == (CreateOrderRequest, CreateOrderResponse)


def test_discovers_sample_tables() -> None:
    tables = TableDiscovery().from_module("samples.order_api.models").discover()
    assert [t.name for t in tables] == ["Order"]
    assert tables[0].keys.partition_key == "id"


def test_table_name_ending_in_s_needs_explicit_name() -> None:
    with pytest.raises(TableConfigurationError, match="table_name"):
        TableRegistration.for_entity(Address).with_options(CloudDefaults())

    named = TableRegistration.for_entity(NamedAddress).with_options(CloudDefaults())
    assert named.table_name == "addresses"


def test_filter_runs_before_shape_checks() -> None:
    this_module = sys.modules[__name__]
    with pytest.raises(ConfigurationError, match="must be a pydantic model"):
        FunctionDiscovery().from_module(this_module).discover()

    found = FunctionDiscovery().from_module(this_module).with_filter(lambda cls: cls is not Legacy).discover()
    assert {r.name for r in found} == {"ConcretePing", "ChildPing"}
