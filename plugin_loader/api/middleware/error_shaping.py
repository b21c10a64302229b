from __future__ import annotations

import logging
import traceback
from typing import Any, Callable, Dict

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from plugin_loader.core.errors import (
    CyclicEntityDependency,
    LegacyConversionError,
    PluginLoadError,
    SchemaNotFound,
    SchemaValidationError,
)

from .request_id import request_id_of

log = logging.getLogger("plugin_loader.errors")


def error_status(exc: PluginLoadError) -> int:
    # a missing schema is the only "not there"; everything else is a bad plugin
    if isinstance(exc, SchemaNotFound):
        return 404
    return 422


def error_detail(exc: PluginLoadError) -> Dict[str, Any]:
    """JSON-safe description of a loader failure."""
    detail: Dict[str, Any] = {"code": type(exc).__name__, "message": str(exc)}

    plugin = getattr(exc, "plugin", None)
    if plugin:
        detail["plugin"] = plugin
    if isinstance(exc, LegacyConversionError) and exc.field_path:
        detail["field"] = ".".join(exc.field_path)
    if isinstance(exc, SchemaValidationError) and exc.violation is not None:
        detail["violation"] = exc.violation.model_dump()
    if isinstance(exc, CyclicEntityDependency):
        detail["cycle"] = exc.cycle
    return detail


async def plugin_load_error_handler(request: Request, exc: PluginLoadError) -> JSONResponse:
    rid = request_id_of(request)
    status = error_status(exc)
    log.warning(
        "plugin load failed: %s rid=%s path=%s status=%s",
        exc,
        rid,
        request.url.path,
        status,
    )
    payload: Dict[str, Any] = {"detail": error_detail(exc)}
    if rid:
        payload["request_id"] = rid
    return JSONResponse(status_code=status, content=payload)


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    Last line of defence for failures outside the loader's error types
    (misconfigured settings, bugs): a 500 with the request id, never a traceback.
    The traceback is logged server-side.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = request_id_of(request)
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            payload = {"detail": "Internal Server Error"}
            if rid:
                payload["request_id"] = rid
            return JSONResponse(status_code=500, content=payload)


def install_error_handling(app: FastAPI) -> None:
    app.add_exception_handler(PluginLoadError, plugin_load_error_handler)
    app.add_middleware(SafeErrorMiddleware)
