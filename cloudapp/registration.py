"""Registration records produced once at startup."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from cloudapp.abstractions import HttpApi, TableEntity, get_function_config, get_table_name
from cloudapp.storage.keys import EntityKeys, default_table_name


@dataclass(slots=True)
class LambdaDefaults:
    memory_mb: int = 256
    timeout_seconds: int = 30
    runtime: str = "python3.12"
    architecture: str = "arm64"


@dataclass(slots=True)
class DynamoDbDefaults:
    billing_mode: str = "PAY_PER_REQUEST"


@dataclass(slots=True)
class CloudDefaults:
    """Built-in resource defaults, adjustable via ``builder.configure_defaults``."""

    lambda_: LambdaDefaults = field(default_factory=LambdaDefaults)
    dynamodb: DynamoDbDefaults = field(default_factory=DynamoDbDefaults)


@dataclass(slots=True)
class FunctionOptions:
    memory_mb: int | None = None
    timeout_seconds: int | None = None


@dataclass(slots=True)
class TableOptions:
    table_name: str | None = None
    billing_mode: str | None = None


@dataclass(frozen=True, slots=True)
class FunctionRegistration:
    function_type: type
    request_type: type
    response_type: type
    http_api: HttpApi
    memory_mb: int = 256
    timeout_seconds: int = 30

    @property
    def name(self) -> str:
        return self.function_type.__name__

    def with_options(self, defaults: CloudDefaults, override: FunctionOptions | None = None) -> FunctionRegistration:
        """Resolve resource options: defaults < ``@function_config`` < explicit override."""
        memory_mb = defaults.lambda_.memory_mb
        timeout_seconds = defaults.lambda_.timeout_seconds
        for layer in (get_function_config(self.function_type), override):
            if layer is None:
                continue
            if layer.memory_mb is not None:
                memory_mb = layer.memory_mb
            if layer.timeout_seconds is not None:
                timeout_seconds = layer.timeout_seconds
        return replace(self, memory_mb=memory_mb, timeout_seconds=timeout_seconds)


@dataclass(frozen=True, slots=True)
class TableRegistration:
    entity_type: type[TableEntity]
    keys: EntityKeys
    table_name: str | None = None
    billing_mode: str = "PAY_PER_REQUEST"

    @classmethod
    def for_entity(cls, entity_type: type[TableEntity]) -> TableRegistration:
        return cls(
            entity_type=entity_type,
            keys=EntityKeys.for_entity(entity_type),
            table_name=get_table_name(entity_type),
        )

    @property
    def name(self) -> str:
        return self.entity_type.__name__

    def with_options(self, defaults: CloudDefaults, override: TableOptions | None = None) -> TableRegistration:
        billing_mode = defaults.dynamodb.billing_mode
        table_name = self.table_name
        if override is not None:
            billing_mode = override.billing_mode or billing_mode
            table_name = override.table_name or table_name
        if table_name is None:
            table_name = default_table_name(self.entity_type)
        return replace(self, billing_mode=billing_mode, table_name=table_name)
