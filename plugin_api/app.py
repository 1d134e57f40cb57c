"""FastAPI application exposing a local DNS provider over the plugin protocol.

`create_app` wraps one ``ProviderPort`` implementation and serves:

    any  /                      negotiation headers, empty body
    GET  /records               list records
    POST /records               apply a change-set
    POST /propertyvaluesequal   compare two property values
    POST /adjustendpoints       normalize endpoints

Request bodies are parsed as JSON whatever their declared content type. A
``null`` body stands for an empty change-set, endpoint list or comparison.
Bodies that are not JSON or do not fit the wire shape answer 400 and provider
failures answer 500, both with an empty body. Failure details go to the
server log only.
"""

import json
import logging
from typing import Any, Callable, Optional, TypeVar

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dnsplug.adapters.api_errors import MalformedPayloadError
from dnsplug.adapters.wire import (
    changes_from_wire,
    endpoints_from_wire,
    endpoints_to_wire,
    property_request_from_wire,
)
from dnsplug.domain.contract import (
    CONTENT_TYPE_HEADER,
    MEDIA_TYPE,
    OP_ADJUST_ENDPOINTS,
    OP_APPLY_CHANGES,
    OP_PROPERTY_VALUES_EQUAL,
    OP_RECORDS,
    ROUTE_ADJUST_ENDPOINTS,
    ROUTE_NEGOTIATE,
    ROUTE_PROPERTY_VALUES_EQUAL,
    ROUTE_RECORDS,
    VARY_HEADER,
)
from dnsplug.domain.ports import ProviderPort
from plugin_api.timeouts import (
    DEFAULT_READ_TIMEOUT_S,
    DEFAULT_WRITE_TIMEOUT_S,
    TimeoutMiddleware,
)

API_VERSION = "0.1.0"
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

T = TypeVar("T")


class ProviderCallFailed(Exception):
    """Local provider raised; mapped to an empty 500 response."""

    def __init__(self, operation: str) -> None:
        super().__init__(operation)
        self.operation = operation


async def json_body(request: Request) -> Any:
    """Parse the raw request body as JSON, ignoring ``Content-Type``."""
    raw = await request.body()
    try:
        return json.loads(raw)
    except ValueError as exc:
        ctx = f"{request.method} {request.url.path}"
        raise MalformedPayloadError(f"{ctx}: body is not valid JSON", context=ctx) from exc


def create_app(
    provider: ProviderPort,
    *,
    media_type: str = MEDIA_TYPE,
    read_timeout_s: Optional[float] = DEFAULT_READ_TIMEOUT_S,
    write_timeout_s: Optional[float] = DEFAULT_WRITE_TIMEOUT_S,
    logger: Optional[logging.Logger] = None,
) -> FastAPI:
    """Build the plugin API around ``provider``.

    Parameters
    ----------
    provider : ProviderPort
        Local implementation; called from request threads concurrently.
    media_type : str
        Value returned in ``Content-Type`` by the negotiation route.
    read_timeout_s, write_timeout_s : Optional[float]
        Per-request body read and response write deadlines. ``None`` disables
        the timeout middleware.
    logger : Optional[logging.Logger]
        Destination for failure details.
    """
    log = logger or logging.getLogger("plugin_api.app")
    app = FastAPI(title="DNS Provider Plugin API", version=API_VERSION)

    if read_timeout_s is not None and write_timeout_s is not None:
        app.add_middleware(
            TimeoutMiddleware,
            read_timeout_s=read_timeout_s,
            write_timeout_s=write_timeout_s,
            logger=log,
        )

    def call_provider(operation: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except Exception as exc:
            log.exception("Provider %s failed", operation)
            raise ProviderCallFailed(operation) from exc

    # ---------- Error mapping ----------
    @app.exception_handler(MalformedPayloadError)
    async def bad_request(request: Request, exc: MalformedPayloadError):
        log.warning("Rejected body for %s %s: %s", request.method, request.url.path, exc)
        return Response(status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            log.error("Unsupported method %s on %s", request.method, request.url.path)
            return Response(status_code=400)
        return Response(status_code=exc.status_code, headers=getattr(exc, "headers", None))

    @app.exception_handler(ProviderCallFailed)
    async def provider_failed(request: Request, exc: ProviderCallFailed):
        return Response(status_code=500)

    # ---------- Negotiation ----------
    @app.api_route(ROUTE_NEGOTIATE, methods=ALL_METHODS)
    def negotiate() -> Response:
        return Response(
            status_code=200,
            headers={VARY_HEADER: CONTENT_TYPE_HEADER, CONTENT_TYPE_HEADER: media_type},
        )

    # ---------- Records ----------
    @app.get(ROUTE_RECORDS)
    def records() -> Response:
        endpoints = call_provider(OP_RECORDS, provider.records)
        return JSONResponse(endpoints_to_wire(endpoints))

    @app.post(ROUTE_RECORDS)
    def apply_changes(payload: Any = Depends(json_body)) -> Response:
        changes = changes_from_wire(payload, ctx=OP_APPLY_CHANGES)
        call_provider(OP_APPLY_CHANGES, lambda: provider.apply_changes(changes))
        return Response(status_code=200)

    # ---------- Comparison / adjustment ----------
    @app.post(ROUTE_PROPERTY_VALUES_EQUAL)
    def property_values_equal(payload: Any = Depends(json_body)) -> Response:
        req = property_request_from_wire(payload, ctx=OP_PROPERTY_VALUES_EQUAL)
        equals = call_provider(
            OP_PROPERTY_VALUES_EQUAL,
            lambda: provider.property_values_equal(req.name, req.previous, req.current),
        )
        return JSONResponse({"equals": bool(equals)})

    @app.post(ROUTE_ADJUST_ENDPOINTS)
    def adjust_endpoints(payload: Any = Depends(json_body)) -> Response:
        endpoints = endpoints_from_wire(payload, ctx=OP_ADJUST_ENDPOINTS)
        adjusted = call_provider(OP_ADJUST_ENDPOINTS, lambda: provider.adjust_endpoints(endpoints))
        return JSONResponse(endpoints_to_wire(adjusted))

    return app
