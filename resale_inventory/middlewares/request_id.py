"""Correlation ids and the per-request ``request.completed`` log line.

The id comes from the caller's ``X-Request-ID`` when it is short and plain
enough to log verbatim, otherwise a fresh one is minted. The log line names
the matched route template (``/api/inventory/{item_id}``) rather than the
concrete path, and picks its level from the response status so failed
inventory calls surface as warnings.
"""

from __future__ import annotations

import logging
import re
import time
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Health checks and metric scrapes would drown out the inventory traffic.
QUIET_PATHS = frozenset({"/health", "/metrics"})

_SAFE_REQUEST_ID = re.compile(r"[A-Za-z0-9._-]{1,64}")

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
principal_ctx_var: ContextVar[str | None] = ContextVar("principal", default=None)

logger = logging.getLogger(__name__)


def resolve_request_id(header_value: str | None) -> str:
    if header_value and _SAFE_REQUEST_ID.fullmatch(header_value):
        return header_value
    return uuid4().hex


def route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        # request.state is shared with the endpoint; auth records the principal there.
        request.state.request_id = request_id
        token = request_id_ctx_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        if request.url.path in QUIET_PATHS:
            return response

        details = {
            "request_id": request_id,
            "method": request.method,
            "route": route_template(request),
            "status": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        }
        item_id = request.path_params.get("item_id")
        if item_id:
            details["item_id"] = item_id
        principal = getattr(request.state, "principal", None)
        if principal:
            details["principal"] = principal
        logger.log(level_for_status(response.status_code), "request.completed", extra={"extra_data": details})
        return response
