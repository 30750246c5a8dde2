"""Per-request pipeline shared by every execution context."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from time import perf_counter
from typing import Any

import structlog
from pydantic import TypeAdapter

from cloudapp import metrics
from cloudapp.binder import bind_body, bind_values, collect_values
from cloudapp.exceptions import BindingError, NotFoundError
from cloudapp.registration import FunctionRegistration
from cloudapp.services import ServiceProvider

LOGGER = structlog.get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


@dataclass(frozen=True, slots=True)
class DispatchResult:
    status_code: int
    body: Any

    @classmethod
    def error(cls, status_code: int, message: str) -> DispatchResult:
        return cls(status_code=status_code, body={"error": message})


class Dispatcher:
    """resolve -> bind -> invoke -> serialize for one registered function.

    Any failure short-circuits to a terminal error result: binding errors are
    400, ``NotFoundError`` is 404 and everything else is a generic 500 whose
    detail only goes to the log.
    """

    def __init__(self, registration: FunctionRegistration, provider: ServiceProvider):
        self.registration = registration
        self.provider = provider
        self._response_adapter = TypeAdapter(registration.response_type)

    async def dispatch(
        self,
        *,
        route_values: Mapping[str, Any] | None = None,
        query_values: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
        body: bytes | str | None = None,
    ) -> DispatchResult:
        start = perf_counter()
        name = self.registration.name
        log = LOGGER.bind(function=name)
        try:
            function = self.provider.create(self.registration.function_type)
            if self.registration.http_api.method.binds_from_route:
                request = bind_values(
                    self.registration.request_type,
                    collect_values(route_values, query_values),
                )
            else:
                request = bind_body(self.registration.request_type, body)
            response = await function.handle(request)
            result = DispatchResult(
                status_code=200,
                body=self._response_adapter.dump_python(response, mode="json", by_alias=True),
            )
        except BindingError as exc:
            log.warning("dispatch.bad_request", error=str(exc))
            result = DispatchResult.error(400, str(exc))
        except NotFoundError as exc:
            log.warning("dispatch.not_found", error=str(exc))
            result = DispatchResult.error(404, str(exc))
        except Exception:
            log.exception("dispatch.error")
            result = DispatchResult.error(500, INTERNAL_ERROR_MESSAGE)

        latency_ms = (perf_counter() - start) * 1000
        metrics.observe_dispatch(function=name, status_code=result.status_code, latency_ms=latency_ms)
        log.info("dispatch.end", status=result.status_code, latency_ms=latency_ms)
        return result
