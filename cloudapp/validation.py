"""Startup check that every function's constructor can be satisfied."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from cloudapp.exceptions import DependencyValidationError
from cloudapp.registration import FunctionRegistration
from cloudapp.services import (
    ServiceCollection,
    constructor_parameters,
    describe_annotation,
    is_logger_annotation,
    table_entity_of,
)

logger = structlog.get_logger(__name__)


def find_missing_dependencies(
    functions: Iterable[FunctionRegistration],
    services: ServiceCollection,
) -> list[str]:
    missing: list[str] = []
    for registration in functions:
        for param in constructor_parameters(registration.function_type):
            # Tables and loggers are supplied by every runtime.
            if table_entity_of(param.annotation) is not None or is_logger_annotation(param.annotation):
                continue
            if param.annotation in services or param.has_default:
                continue
            missing.append(
                f"{registration.name} requires {describe_annotation(param.annotation)} "
                f"(parameter '{param.name}')"
            )
    return missing


def validate_dependencies(
    functions: Iterable[FunctionRegistration],
    services: ServiceCollection,
) -> None:
    """Raise one DependencyValidationError listing every unsatisfiable parameter."""
    missing = find_missing_dependencies(functions, services)
    if missing:
        logger.error("dependency_validation.failed", missing=missing)
        raise DependencyValidationError(missing)
