"""AWS Lambda runtime: one deployed function per Lambda, DynamoDB tables."""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
from collections.abc import Callable
from functools import lru_cache
from typing import Any

import structlog

from cloudapp.context import CloudApplicationContext
from cloudapp.dispatcher import Dispatcher, DispatchResult
from cloudapp.exceptions import ConfigurationError, FunctionInvocationError
from cloudapp.logs import configure_logging
from cloudapp.services import ServiceProvider
from cloudapp.settings import get_settings
from cloudapp.storage import DynamoDbTable, create_dynamodb_resource

LOGGER = structlog.get_logger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}

LambdaHandler = Callable[[dict[str, Any], Any], dict[str, Any]]


class LambdaRuntime:
    def __init__(self, resource: Any = None):
        self._resource = resource

    def run(self, context: CloudApplicationContext) -> None:
        raise ConfigurationError(
            "The Lambda runtime is driven by the Lambda service; point the function handler "
            "at cloudapp.runtime.aws_lambda.handler instead of calling run()."
        )

    def create_handler(self, context: CloudApplicationContext) -> LambdaHandler:
        """Build the handler for the function named by ``CLOUDAPP_FUNCTION``."""
        settings = context.settings
        name = settings.function_name
        if not name:
            raise FunctionInvocationError(
                "unknown",
                "CLOUDAPP_FUNCTION environment variable not set. "
                "This Lambda was not deployed by cloudapp.",
            )
        registration = context.find_function(name)
        if registration is None:
            raise FunctionInvocationError(name, f"Function '{name}' not found in discovered functions.")

        resource = self._resource or create_dynamodb_resource(
            region_name=settings.aws_region,
            endpoint_url=settings.dynamodb_endpoint_url,
        )
        declared_names = {table.entity_type: table.table_name for table in context.tables}

        def table_factory(entity_type: type) -> DynamoDbTable:
            return DynamoDbTable(entity_type, resource, table_name=declared_names.get(entity_type))

        dispatcher = Dispatcher(registration, ServiceProvider(context.services, table_factory))
        LOGGER.info("runtime.lambda.pinned", function=name)

        def handler(event: dict[str, Any], lambda_context: Any) -> dict[str, Any]:
            request_id = getattr(lambda_context, "aws_request_id", None)
            structlog.contextvars.bind_contextvars(request_id=request_id)
            try:
                result = asyncio.run(dispatch_event(dispatcher, event))
            finally:
                structlog.contextvars.unbind_contextvars("request_id")
            return to_proxy_response(result)

        return handler


async def dispatch_event(dispatcher: Dispatcher, event: dict[str, Any]) -> DispatchResult:
    """Dispatch an API Gateway proxy event (HTTP API v2, REST v1 also accepted)."""
    try:
        body = event_body(event)
    except ValueError as exc:
        return DispatchResult.error(400, str(exc))
    return await dispatcher.dispatch(
        route_values=event.get("pathParameters") or {},
        query_values=event_query(event),
        body=body,
    )


def event_body(event: dict[str, Any]) -> bytes | str | None:
    body = event.get("body")
    if body is None or not event.get("isBase64Encoded"):
        return body
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Invalid base64 body: {exc}") from exc


def event_query(event: dict[str, Any]) -> list[tuple[str, str]]:
    multi = event.get("multiValueQueryStringParameters")
    if multi:
        return [(key, value) for key, values in multi.items() for value in values or ()]
    single = event.get("queryStringParameters") or {}
    return list(single.items())


def to_proxy_response(result: DispatchResult) -> dict[str, Any]:
    return {
        "statusCode": result.status_code,
        "headers": dict(JSON_HEADERS),
        "body": json.dumps(result.body),
    }


@lru_cache(maxsize=1)
def _load_handler() -> LambdaHandler:
    # Imported here: hosting imports the runtimes.
    from cloudapp.hosting import load_application

    settings = get_settings()
    configure_logging(settings.log_level)
    if not settings.application:
        raise ConfigurationError(
            "CLOUDAPP_APPLICATION environment variable not set; expected 'module:attribute'."
        )
    return load_application(settings.application).lambda_handler


def handler(event: dict[str, Any], lambda_context: Any) -> dict[str, Any]:
    """Entry point configured on every deployed function."""
    return _load_handler()(event, lambda_context)
