from __future__ import annotations

import asyncio

from cloudapp import HttpFunction, Method, NotFoundError, Shape, http_api
from cloudapp.discovery import describe_function
from cloudapp.dispatcher import INTERNAL_ERROR_MESSAGE, Dispatcher
from cloudapp.services import ServiceCollection, ServiceProvider
from cloudapp.storage import InMemoryTable
from samples.order_api.functions import CreateOrder, GetOrder
from samples.order_api.models import Order


class LookupRequest(Shape):
    key: str


class LookupResponse(Shape):
    key: str
    upper_key: str


@http_api(Method.GET, "/lookup/{key}")
class Lookup(HttpFunction[LookupRequest, LookupResponse]):
    async def handle(self, request: LookupRequest) -> LookupResponse:
        if request.key == "boom":
            raise RuntimeError("database password is hunter2")
        if request.key == "dict":
            return {}["missing"]
        if request.key == "gone":
            raise NotFoundError("gone for good")
        return LookupResponse(key=request.key, upper_key=request.key.upper())


def make_dispatcher(function_type: type, provider: ServiceProvider | None = None) -> Dispatcher:
    provider = provider or ServiceProvider(ServiceCollection(), InMemoryTable)
    return Dispatcher(describe_function(function_type), provider)


def dispatch(dispatcher: Dispatcher, **kwargs):
    return asyncio.run(dispatcher.dispatch(**kwargs))


def test_success_serializes_with_wire_names() -> None:
    result = dispatch(make_dispatcher(Lookup), route_values={"key": "abc"})
    assert result.status_code == 200
    assert result.body == {"key": "abc", "upperKey": "ABC"}


def test_not_found_maps_to_404_with_message() -> None:
    result = dispatch(make_dispatcher(Lookup), route_values={"key": "gone"})
    assert result.status_code == 404
    assert result.body == {"error": "gone for good"}


def test_unexpected_error_is_generic_500() -> None:
    result = dispatch(make_dispatcher(Lookup), route_values={"key": "boom"})
    assert result.status_code == 500
    assert result.body == {"error": INTERNAL_ERROR_MESSAGE}
    assert "hunter2" not in str(result.body)


def test_plain_key_error_is_not_a_404() -> None:
    result = dispatch(make_dispatcher(Lookup), route_values={"key": "dict"})
    assert result.status_code == 500


def test_invalid_body_is_400() -> None:
    result = dispatch(make_dispatcher(CreateOrder), body=b'{"name": "x", "total": "lots"}')
    assert result.status_code == 400
    assert "total" in result.body["error"]


def test_create_then_get_shares_the_provider_tables() -> None:
    provider = ServiceProvider(ServiceCollection(), InMemoryTable)
    created = dispatch(make_dispatcher(CreateOrder, provider), body=b'{"name": "Alice", "total": 42.5}')
    order_id = created.body["id"]

    fetched = dispatch(make_dispatcher(GetOrder, provider), route_values={"id": order_id})

    assert fetched.status_code == 200
    assert fetched.body == {"id": order_id, "name": "Alice", "total": 42.5}
    assert len(provider.table(Order)) == 1


def test_partial_body_zero_fills_missing_fields() -> None:
    provider = ServiceProvider(ServiceCollection(), InMemoryTable)
    created = dispatch(make_dispatcher(CreateOrder, provider), body=b'{"name": "Alice"}')
    assert created.status_code == 200

    fetched = dispatch(make_dispatcher(GetOrder, provider), route_values={"id": created.body["id"]})
    assert fetched.body == {"id": created.body["id"], "name": "Alice", "total": 0.0}
