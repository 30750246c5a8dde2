"""Explicit service registrations and per-request function construction."""

from __future__ import annotations

import inspect
import logging
import typing
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Any

import structlog
import structlog.stdlib
import structlog.typing

from cloudapp.abstractions import Table, TableEntity
from cloudapp.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

TableFactory = Callable[[type[TableEntity]], Any]

_STRUCTLOG_TYPES: tuple[Any, ...] = (
    structlog.typing.FilteringBoundLogger,
    structlog.typing.BindableLogger,
    structlog.stdlib.BoundLogger,
    structlog.BoundLogger,
)

_EMPTY = inspect.Parameter.empty


@dataclass(frozen=True, slots=True)
class ConstructorParameter:
    name: str
    annotation: Any
    has_default: bool


def constructor_parameters(cls: type) -> list[ConstructorParameter]:
    """Named ``__init__`` parameters of ``cls`` with resolved annotations."""
    init = cls.__init__
    if init is object.__init__:
        return []
    try:
        hints = typing.get_type_hints(init)
    except (NameError, TypeError):
        # One unresolvable annotation; resolve the others one by one.
        hints = {}
    namespace = getattr(init, "__globals__", {})
    params = []
    for index, param in enumerate(inspect.signature(init).parameters.values()):
        if index == 0 or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        annotation = hints.get(param.name, param.annotation)
        if isinstance(annotation, str):
            annotation = _resolve_annotation(cls, param.name, annotation, namespace)
        params.append(ConstructorParameter(param.name, annotation, param.default is not _EMPTY))
    return params


def _resolve_annotation(cls: type, name: str, annotation: str, namespace: dict[str, Any]) -> Any:
    try:
        return eval(annotation, namespace)  # noqa: S307
    except (NameError, SyntaxError, TypeError, AttributeError) as exc:
        logger.warning(
            "services.annotation_unresolved",
            function=cls.__name__,
            parameter=name,
            annotation=annotation,
            error=str(exc),
        )
        return annotation


def table_entity_of(annotation: Any) -> type[TableEntity] | None:
    """Entity type of a ``Table[Entity]`` annotation."""
    if typing.get_origin(annotation) is not Table:
        return None
    args = typing.get_args(annotation)
    if len(args) == 1 and inspect.isclass(args[0]) and issubclass(args[0], TableEntity):
        return args[0]
    return None


def is_logger_annotation(annotation: Any) -> bool:
    return annotation in _STRUCTLOG_TYPES or annotation is logging.Logger


def describe_annotation(annotation: Any) -> str:
    if annotation is _EMPTY:
        return "<unannotated>"
    if isinstance(annotation, str):
        return annotation
    return getattr(annotation, "__name__", repr(annotation))


class ServiceCollection:
    """Application services that functions may receive in ``__init__``."""

    def __init__(self) -> None:
        self._factories: dict[Any, Callable[[], Any]] = {}

    def add_singleton(self, service_type: Any, instance: Any) -> ServiceCollection:
        self._factories[service_type] = lambda: instance
        return self

    def add_factory(self, service_type: Any, factory: Callable[[], Any]) -> ServiceCollection:
        """Register a factory called once per function construction."""
        self._factories[service_type] = factory
        return self

    def __contains__(self, service_type: Any) -> bool:
        return service_type in self._factories

    def __len__(self) -> int:
        return len(self._factories)

    @property
    def registered_types(self) -> frozenset[Any]:
        return frozenset(self._factories)

    def resolve(self, service_type: Any) -> Any:
        try:
            factory = self._factories[service_type]
        except KeyError:
            raise ConfigurationError(f"No service registered for {describe_annotation(service_type)}") from None
        return factory()


class ServiceProvider:
    """Builds function instances for one execution context.

    Tables are created lazily, one per entity type, and shared by every
    request handled by this provider.
    """

    def __init__(self, services: ServiceCollection, table_factory: TableFactory):
        self.services = services
        self._table_factory = table_factory
        self._tables: dict[type[TableEntity], Any] = {}
        self._lock = Lock()

    def table(self, entity_type: type[TableEntity]) -> Any:
        with self._lock:
            table = self._tables.get(entity_type)
            if table is None:
                table = self._table_factory(entity_type)
                self._tables[entity_type] = table
            return table

    def create(self, function_type: type) -> Any:
        kwargs: dict[str, Any] = {}
        for param in constructor_parameters(function_type):
            entity_type = table_entity_of(param.annotation)
            if entity_type is not None:
                kwargs[param.name] = self.table(entity_type)
            elif param.annotation is logging.Logger:
                kwargs[param.name] = logging.getLogger(function_type.__module__)
            elif is_logger_annotation(param.annotation):
                kwargs[param.name] = structlog.get_logger(function_type.__module__).bind(
                    function=function_type.__name__
                )
            elif param.annotation in self.services:
                kwargs[param.name] = self.services.resolve(param.annotation)
            elif not param.has_default:
                raise ConfigurationError(
                    f"{function_type.__name__} requires {describe_annotation(param.annotation)} "
                    f"(parameter '{param.name}')"
                )
        return function_type(**kwargs)
