from __future__ import annotations

import logging

import pytest
from structlog.typing import FilteringBoundLogger

from cloudapp import (
    ConfigurationError,
    DependencyValidationError,
    HttpFunction,
    Method,
    Shape,
    Table,
    http_api,
)
from cloudapp.discovery import describe_function
from cloudapp.services import ServiceCollection, ServiceProvider, constructor_parameters
from cloudapp.storage import InMemoryTable
from cloudapp.validation import find_missing_dependencies, validate_dependencies
from samples.order_api.models import Order


class Clock:
    def now(self) -> str:
        return "2024-01-01T00:00:00Z"


class Empty(Shape):
    pass


@http_api(Method.GET, "/time")
class WhatTime(HttpFunction[Empty, Empty]):
    def __init__(self, clock: Clock, orders: Table[Order], log: FilteringBoundLogger):
        self.clock = clock
        self.orders = orders
        self.log = log

    async def handle(self, request: Empty) -> Empty:
        return Empty()


@http_api(Method.GET, "/stdlib")
class UsesStdlibLogger(HttpFunction[Empty, Empty]):
    def __init__(self, orders: Table[Order], log: logging.Logger, retries: int = 3):
        self.orders = orders
        self.log = log
        self.retries = retries

    async def handle(self, request: Empty) -> Empty:
        return Empty()


@http_api(Method.GET, "/partial")
class PartlyResolvable(HttpFunction[Empty, Empty]):
    def __init__(self, orders: Table[Order], clock: MissingClock):  # noqa: F821
        self.orders = orders
        self.clock = clock

    async def handle(self, request: Empty) -> Empty:
        return Empty()


def registration(function_type: type):
    return describe_function(function_type)


def test_constructor_parameters_resolve_string_annotations() -> None:
    params = {p.name: p for p in constructor_parameters(WhatTime)}
    assert params["clock"].annotation is Clock
    assert params["orders"].annotation == Table[Order]
    assert not params["clock"].has_default


def test_missing_service_names_function_and_parameter() -> None:
    missing = find_missing_dependencies([registration(WhatTime)], ServiceCollection())
    assert missing == ["WhatTime requires Clock (parameter 'clock')"]


def test_tables_loggers_and_defaults_need_no_registration() -> None:
    services = ServiceCollection()
    assert find_missing_dependencies([registration(UsesStdlibLogger)], services) == []
    assert len(services) == 0


def test_validate_dependencies_reports_every_missing_entry() -> None:
    with pytest.raises(DependencyValidationError) as excinfo:
        validate_dependencies([registration(WhatTime)], ServiceCollection())

    assert excinfo.value.missing == ["WhatTime requires Clock (parameter 'clock')"]
    assert "Missing service registrations" in str(excinfo.value)


def test_provider_injects_services_tables_and_loggers() -> None:
    clock = Clock()
    services = ServiceCollection().add_singleton(Clock, clock)
    provider = ServiceProvider(services, InMemoryTable)

    function = provider.create(WhatTime)

    assert function.clock is clock
    assert isinstance(function.orders, InMemoryTable)
    assert function.orders is provider.table(Order)
    assert hasattr(function.log, "info")


def test_provider_supplies_stdlib_logger_and_keeps_defaults() -> None:
    provider = ServiceProvider(ServiceCollection(), InMemoryTable)

    function = provider.create(UsesStdlibLogger)

    assert isinstance(function.log, logging.Logger)
    assert function.retries == 3


def test_factory_is_called_per_construction() -> None:
    services = ServiceCollection().add_factory(Clock, Clock)
    provider = ServiceProvider(services, InMemoryTable)

    assert provider.create(WhatTime).clock is not provider.create(WhatTime).clock


def test_provider_raises_for_unregistered_service() -> None:
    provider = ServiceProvider(ServiceCollection(), InMemoryTable)
    with pytest.raises(ConfigurationError, match="parameter 'clock'"):
        provider.create(WhatTime)


def test_unresolvable_annotation_does_not_hide_the_others() -> None:
    params = {p.name: p for p in constructor_parameters(PartlyResolvable)}
    assert params["orders"].annotation == Table[Order]
    assert params["clock"].annotation == "MissingClock"

    missing = find_missing_dependencies([registration(PartlyResolvable)], ServiceCollection())
    assert missing == ["PartlyResolvable requires MissingClock (parameter 'clock')"]
