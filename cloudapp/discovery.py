"""Convention-based discovery of functions and tables in a module tree."""

from __future__ import annotations

import importlib
import inspect
import pkgutil
from collections.abc import Callable, Iterator
from types import ModuleType
from typing import TypeVar, get_args, get_origin

from pydantic import BaseModel

from cloudapp.abstractions import HttpFunction, TableEntity, get_http_api
from cloudapp.exceptions import ConfigurationError
from cloudapp.registration import FunctionRegistration, TableRegistration

TypePredicate = Callable[[type], bool]


def iter_module_types(module: ModuleType | str) -> Iterator[type]:
    """Yield each class in ``module`` (and its submodules, for packages) once."""
    if isinstance(module, str):
        module = importlib.import_module(module)
    seen: set[int] = set()
    for mod in _walk(module):
        for value in vars(mod).values():
            if inspect.isclass(value) and id(value) not in seen:
                seen.add(id(value))
                yield value


def _walk(module: ModuleType) -> Iterator[ModuleType]:
    yield module
    path = getattr(module, "__path__", None)
    if path is None:
        return
    for info in pkgutil.walk_packages(path, prefix=f"{module.__name__}."):
        yield importlib.import_module(info.name)


def function_shapes(cls: type) -> tuple[type, type] | None:
    """Return ``(request, response)`` bound on the ``HttpFunction`` base, if any."""
    for klass in cls.__mro__:
        for base in getattr(klass, "__orig_bases__", ()):
            if get_origin(base) is not HttpFunction:
                continue
            args = get_args(base)
            if len(args) == 2 and not any(isinstance(arg, TypeVar) for arg in args):
                return args[0], args[1]
    return None


class FunctionDiscovery:
    def __init__(self) -> None:
        self._modules: list[ModuleType | str] = []
        self._filter: TypePredicate | None = None

    def from_module(self, module: ModuleType | str) -> FunctionDiscovery:
        self._modules.append(module)
        return self

    def with_filter(self, predicate: TypePredicate) -> FunctionDiscovery:
        self._filter = predicate
        return self

    def discover(self) -> list[FunctionRegistration]:
        if not self._modules:
            raise ConfigurationError("Function discovery needs at least one module; call from_module().")
        registrations: list[FunctionRegistration] = []
        seen: set[type] = set()
        for module in self._modules:
            for cls in iter_module_types(module):
                if cls in seen:
                    continue
                if self._filter is not None and not self._filter(cls):
                    continue
                registration = describe_function(cls)
                if registration is None:
                    continue
                seen.add(cls)
                registrations.append(registration)
        return registrations


def describe_function(cls: type) -> FunctionRegistration | None:
    """Registration for ``cls``, or None when it does not follow the conventions."""
    if not _is_subclass(cls, HttpFunction) or inspect.isabstract(cls):
        return None
    api = get_http_api(cls)
    if api is None:
        return None
    shapes = function_shapes(cls)
    if shapes is None:
        return None
    request_type, response_type = shapes
    if not (inspect.isclass(request_type) and issubclass(request_type, BaseModel)):
        raise ConfigurationError(
            f"{cls.__name__} request type {request_type!r} must be a pydantic model (derive Shape)."
        )
    return FunctionRegistration(
        function_type=cls,
        request_type=request_type,
        response_type=response_type,
        http_api=api,
    )


class TableDiscovery:
    def __init__(self) -> None:
        self._modules: list[ModuleType | str] = []

    def from_module(self, module: ModuleType | str) -> TableDiscovery:
        self._modules.append(module)
        return self

    def discover(self) -> list[TableRegistration]:
        if not self._modules:
            raise ConfigurationError("Table discovery needs at least one module; call from_module().")
        registrations: list[TableRegistration] = []
        seen: set[type] = set()
        for module in self._modules:
            for cls in iter_module_types(module):
                if cls in seen or cls is TableEntity:
                    continue
                if not _is_subclass(cls, TableEntity) or inspect.isabstract(cls):
                    continue
                seen.add(cls)
                registrations.append(TableRegistration.for_entity(cls))
        return registrations


def _is_subclass(cls: type, base: type) -> bool:
    # typing special forms show up in module namespaces and may refuse issubclass().
    try:
        return issubclass(cls, base)
    except TypeError:
        return False
