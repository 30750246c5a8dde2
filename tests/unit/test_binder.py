from __future__ import annotations

from datetime import datetime
from typing import Optional

import pytest

from cloudapp import BindingError, Shape
from cloudapp.binder import bind_body, bind_values, collect_values, normalize_key, zero_value


class SearchRequest(Shape):
    customer_name: str
    page: int
    active: bool = True


class Address(Shape):
    city: str


class ProfileRequest(Shape):
    name: str
    age: int
    tags: list[str]
    address: Address
    nickname: Optional[str]


def test_normalize_key_ignores_case_and_separators() -> None:
    assert normalize_key("customer_name") == normalize_key("CustomerName") == normalize_key("customer-name")


def test_route_value_wins_over_query_value() -> None:
    values = collect_values({"id": "from-route"}, [("ID", "from-query")])
    assert values == {"id": "from-route"}


def test_first_repeated_query_value_wins() -> None:
    values = collect_values(None, [("page", "1"), ("page", "2")])
    assert values["page"] == "1"


def test_bind_values_is_case_insensitive_and_coerces() -> None:
    request = bind_values(SearchRequest, {"CUSTOMERNAME": "alice", "Page": "3", "active": "false"})
    assert request == SearchRequest(customer_name="alice", page=3, active=False)


def test_bind_values_zero_fills_missing_required_fields() -> None:
    request = bind_values(SearchRequest, {})
    assert request.customer_name == ""
    assert request.page == 0
    assert request.active is True


def test_bind_values_coercion_failure_is_binding_error() -> None:
    with pytest.raises(BindingError, match="page"):
        bind_values(SearchRequest, {"page": "abc"})


def test_bind_body_accepts_camel_case_and_snake_case() -> None:
    assert bind_body(SearchRequest, b'{"customerName": "a", "page": 1}').customer_name == "a"
    assert bind_body(SearchRequest, '{"customer_name": "b", "page": 2}').page == 2


def test_bind_body_empty_binds_defaults() -> None:
    for body in (None, b"", "   "):
        request = bind_body(SearchRequest, body)
        assert request.customer_name == ""
        assert request.page == 0


@pytest.mark.parametrize(
    "body",
    [
        b"{not json",
        b"[1, 2, 3]",
        b"\xff\xfe",
        b'{"page": "abc"}',
    ],
)
def test_bind_body_rejects_bad_payloads(body: bytes) -> None:
    with pytest.raises(BindingError):
        bind_body(SearchRequest, body)


def test_zero_values_for_common_types() -> None:
    assert zero_value(str) == ""
    assert zero_value(int) == 0
    assert zero_value(float) == 0.0
    assert zero_value(bool) is False
    assert zero_value(list[str]) == []
    assert zero_value(Optional[int]) is None
    assert zero_value(datetime) == datetime.min


def test_nested_shape_zero_value() -> None:
    request = bind_values(ProfileRequest, {})
    assert request.address == Address(city="")
    assert request.tags == []
    assert request.nickname is None


def test_bind_body_zero_fills_fields_missing_from_payload() -> None:
    request = bind_body(SearchRequest, b'{"customerName": "a"}')
    assert request == SearchRequest(customer_name="a", page=0, active=True)


def test_bind_body_partial_nested_payload() -> None:
    request = bind_body(ProfileRequest, b'{"name": "Ann", "address": {"city": "Oslo"}}')
    assert request.age == 0
    assert request.tags == []
    assert request.address.city == "Oslo"
