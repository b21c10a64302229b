from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-Id"

log = logging.getLogger("plugin_loader.request")

_current_request_id: ContextVar[Optional[str]] = ContextVar("plugin_loader_request_id", default=None)


def current_request_id() -> Optional[str]:
    return _current_request_id.get()


def request_id_of(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or request.headers.get(REQUEST_ID_HEADER)


class RequestIdLogFilter(logging.Filter):
    """
    Stamps ``record.request_id`` so conversion warnings (dropped ``func``,
    failing plugin servers) can be traced back to the call that loaded the plugin.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id() or "-"
        return True


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = rid

        token = _current_request_id.set(rid)
        start = time.time()
        try:
            response: Response = await call_next(request)
        finally:
            _current_request_id.reset(token)
        dur_ms = int((time.time() - start) * 1000)

        response.headers[REQUEST_ID_HEADER] = rid
        log.info(
            "%s",
            {
                "event": "request",
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": dur_ms,
            },
        )
        return response
