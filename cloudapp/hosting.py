"""Application builder and the entry point shared by every execution mode."""

from __future__ import annotations

import importlib
import sys
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TextIO

import structlog

from cloudapp.context import (
    CliCommand,
    CloudApplicationContext,
    ExecutionMode,
    detect_mode_and_command,
)
from cloudapp.discovery import FunctionDiscovery, TableDiscovery, describe_function
from cloudapp.exceptions import ConfigurationError
from cloudapp.registration import (
    CloudDefaults,
    FunctionOptions,
    FunctionRegistration,
    TableOptions,
    TableRegistration,
)
from cloudapp.runtime import Runtime, create_runtime
from cloudapp.services import ServiceCollection
from cloudapp.settings import Settings, get_settings
from cloudapp.validation import validate_dependencies

logger = structlog.get_logger(__name__)


class CloudApplication:
    def __init__(self, context: CloudApplicationContext, runtime: Runtime | None):
        self.context = context
        self.runtime = runtime

    @staticmethod
    def create_builder(
        args: Sequence[str] | None = None,
        *,
        settings: Settings | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> CloudApplicationBuilder:
        return CloudApplicationBuilder(args, settings=settings, environ=environ)

    def run(self) -> None:
        if self.context.command is CliCommand.LIST:
            self.print_resources()
            return
        if self.runtime is None:
            raise ConfigurationError(f"No runtime configured for execution mode '{self.context.mode.value}'.")
        self.runtime.run(self.context)

    def print_resources(self, stream: TextIO | None = None) -> None:
        out = stream or sys.stdout
        print("=== cloudapp resources ===", file=out)
        print(file=out)
        print(f"Functions ({len(self.context.functions)}):", file=out)
        for function in self.context.functions:
            api = function.http_api
            print(f"  {api.method.value:<7} {api.route:<30} -> {function.name}", file=out)
        print(file=out)
        print(f"Tables ({len(self.context.tables)}):", file=out)
        for table in self.context.tables:
            print(f"  {table.name:<30} -> {table.table_name}", file=out)

    @property
    def lambda_handler(self) -> Callable[[dict[str, Any], Any], dict[str, Any]]:
        from cloudapp.runtime.aws_lambda import LambdaRuntime

        runtime = self.runtime if isinstance(self.runtime, LambdaRuntime) else LambdaRuntime()
        return runtime.create_handler(self.context)

    def create_asgi_app(self):
        """FastAPI app for the local runtime, e.g. for ``uvicorn`` or a TestClient."""
        from cloudapp.runtime.local import create_app

        return create_app(self.context)


class CloudApplicationBuilder:
    """Collects discovery sources, explicit registrations and services.

    ``build()`` turns them into an immutable :class:`CloudApplicationContext`
    and picks the runtime for the detected execution mode.
    """

    def __init__(
        self,
        args: Sequence[str] | None = None,
        *,
        settings: Settings | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        self.args = tuple(sys.argv[1:] if args is None else args)
        self.settings = settings or get_settings()
        self.services = ServiceCollection()
        self.defaults = CloudDefaults()
        self._environ = environ
        self._function_discovery: FunctionDiscovery | None = None
        self._table_discovery: TableDiscovery | None = None
        self._explicit_functions: list[tuple[type, Callable[[FunctionOptions], None] | None]] = []
        self._explicit_tables: list[tuple[type, Callable[[TableOptions], None] | None]] = []
        self._runtime: Runtime | None = None

    def add_functions(self) -> FunctionDiscovery:
        self._function_discovery = FunctionDiscovery()
        return self._function_discovery

    def add_tables(self) -> TableDiscovery:
        self._table_discovery = TableDiscovery()
        return self._table_discovery

    def add_function(
        self,
        function_type: type,
        configure: Callable[[FunctionOptions], None] | None = None,
    ) -> CloudApplicationBuilder:
        """Register ``function_type`` explicitly, optionally overriding its options."""
        self._explicit_functions.append((function_type, configure))
        return self

    def add_table(
        self,
        entity_type: type,
        configure: Callable[[TableOptions], None] | None = None,
    ) -> CloudApplicationBuilder:
        self._explicit_tables.append((entity_type, configure))
        return self

    def configure_defaults(self, configure: Callable[[CloudDefaults], None]) -> CloudApplicationBuilder:
        configure(self.defaults)
        return self

    def use_runtime(self, runtime: Runtime) -> CloudApplicationBuilder:
        self._runtime = runtime
        return self

    def build(self, *, application: str | None = None) -> CloudApplication:
        mode, command = detect_mode_and_command(self.args, self._environ)
        logger.info("application.mode", mode=mode.value, command=command.value)

        functions = self._build_functions()
        tables = self._build_tables()
        logger.info("application.discovered", functions=len(functions), tables=len(tables))
        for function in functions:
            logger.debug(
                "application.function",
                method=function.http_api.method.value,
                route=function.http_api.route,
                function=function.name,
            )

        # Listing is read-only introspection and must work with an incomplete service setup.
        if command is not CliCommand.LIST:
            validate_dependencies(functions, self.services)

        context = CloudApplicationContext(
            args=self.args,
            mode=mode,
            command=command,
            functions=tuple(functions),
            tables=tuple(tables),
            defaults=self.defaults,
            services=self.services,
            settings=self.settings,
            application=application or self.settings.application,
        )
        runtime = self._runtime or create_runtime(mode)
        logger.info("application.runtime", runtime=type(runtime).__name__)
        return CloudApplication(context, runtime)

    def _build_functions(self) -> list[FunctionRegistration]:
        discovered = self._function_discovery.discover() if self._function_discovery else []
        by_type = {registration.function_type: registration for registration in discovered}
        overrides: dict[type, FunctionOptions] = {}
        for function_type, configure in self._explicit_functions:
            if function_type not in by_type:
                registration = describe_function(function_type)
                if registration is None:
                    raise ConfigurationError(
                        f"{function_type.__name__} is not a concrete HttpFunction with an @http_api route."
                    )
                by_type[function_type] = registration
                discovered.append(registration)
            if configure is not None:
                options = overrides.setdefault(function_type, FunctionOptions())
                configure(options)

        functions = [
            registration.with_options(self.defaults, overrides.get(registration.function_type))
            for registration in discovered
        ]
        _check_unique(
            functions,
            key=lambda f: f.name,
            message="Function names must be unique; {key} is defined more than once.",
        )
        _check_unique(
            functions,
            key=lambda f: (f.http_api.method, f.http_api.route),
            message="Route {key} is mapped by more than one function.",
        )
        return functions

    def _build_tables(self) -> list[TableRegistration]:
        discovered = self._table_discovery.discover() if self._table_discovery else []
        known = {registration.entity_type for registration in discovered}
        overrides: dict[type, TableOptions] = {}
        for entity_type, configure in self._explicit_tables:
            if entity_type not in known:
                known.add(entity_type)
                discovered.append(TableRegistration.for_entity(entity_type))
            if configure is not None:
                options = overrides.setdefault(entity_type, TableOptions())
                configure(options)
        tables = [
            registration.with_options(self.defaults, overrides.get(registration.entity_type))
            for registration in discovered
        ]
        _check_unique(
            tables,
            key=lambda t: t.name,
            message="Entity names must be unique; {key} is defined more than once.",
        )
        return tables


def _check_unique(items: Sequence[Any], *, key: Callable[[Any], Any], message: str) -> None:
    seen: set[Any] = set()
    for item in items:
        value = key(item)
        if value in seen:
            raise ConfigurationError(message.format(key=_describe_key(value)))
        seen.add(value)


def _describe_key(value: Any) -> str:
    if isinstance(value, tuple):
        method, route = value
        return f"{method.value} {route}"
    return str(value)


def load_application(target: str) -> CloudApplication:
    """Import ``module:attribute`` and return it as a built application.

    The attribute may be a :class:`CloudApplication`, a builder, or a
    zero-argument factory returning either.
    """
    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(f"Expected 'module:attribute', got {target!r}.")
    module = importlib.import_module(module_name)
    try:
        value = getattr(module, attribute)
    except AttributeError:
        raise ConfigurationError(f"Module {module_name!r} has no attribute {attribute!r}.") from None
    if not isinstance(value, (CloudApplication, CloudApplicationBuilder)) and callable(value):
        value = value()
    if isinstance(value, CloudApplicationBuilder):
        value = value.build(application=target)
    if not isinstance(value, CloudApplication):
        raise ConfigurationError(f"{target} is not a CloudApplication or CloudApplicationBuilder.")
    return value


__all__ = [
    "CloudApplication",
    "CloudApplicationBuilder",
    "ExecutionMode",
    "CliCommand",
    "load_application",
]
