"""Local development runtime: FastAPI + uvicorn over in-memory tables."""

from __future__ import annotations

import structlog
import uvicorn
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from cloudapp import metrics
from cloudapp.context import CloudApplicationContext
from cloudapp.dispatcher import Dispatcher
from cloudapp.logs import configure_logging
from cloudapp.services import ServiceProvider
from cloudapp.storage import InMemoryTable

LOGGER = structlog.get_logger(__name__)


def create_app(context: CloudApplicationContext) -> FastAPI:
    """FastAPI app with one route per discovered function."""
    settings = context.settings
    provider = ServiceProvider(context.services, InMemoryTable)
    for table in context.tables:
        provider.table(table.entity_type)

    app = FastAPI(title=context.application or "cloudapp")
    app.state.provider = provider

    for registration in context.functions:
        dispatcher = Dispatcher(registration, provider)
        app.add_api_route(
            registration.http_api.route,
            _endpoint(dispatcher),
            methods=[registration.http_api.method.value],
            name=registration.name,
            response_class=JSONResponse,
        )
        LOGGER.info(
            "runtime.mapped",
            method=registration.http_api.method.value,
            route=registration.http_api.route,
            function=registration.name,
        )

    @app.get("/healthz", response_class=Response, include_in_schema=False)
    async def healthz() -> Response:
        return Response(content="ok\n", media_type="text/plain")

    @app.get("/metrics", include_in_schema=False)
    async def metrics_endpoint() -> Response:
        if not settings.metrics_enabled:
            raise HTTPException(status_code=404, detail="metrics disabled")
        payload, content_type = metrics.render_metrics()
        return Response(content=payload, media_type=content_type)

    return app


def _endpoint(dispatcher: Dispatcher):
    binds_from_route = dispatcher.registration.http_api.method.binds_from_route

    async def endpoint(request: Request) -> JSONResponse:
        body = None if binds_from_route else await request.body()
        result = await dispatcher.dispatch(
            route_values=request.path_params,
            query_values=request.query_params.multi_items(),
            body=body,
        )
        return JSONResponse(content=result.body, status_code=result.status_code)

    endpoint.__name__ = dispatcher.registration.name
    return endpoint


class LocalRuntime:
    def run(self, context: CloudApplicationContext) -> None:
        settings = context.settings
        configure_logging(settings.log_level, json_logs=False)
        app = create_app(context)
        LOGGER.info("runtime.local.start", host=settings.host, port=settings.port)
        uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
