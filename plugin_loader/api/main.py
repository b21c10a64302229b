from __future__ import annotations

from fastapi import FastAPI

from plugin_loader import __version__
from plugin_loader.api.middleware.error_shaping import install_error_handling
from plugin_loader.api.middleware.request_id import RequestIdMiddleware
from plugin_loader.api.routes import health, schemas

app = FastAPI(
    title="Plugin Schema Loader API",
    version=__version__,
)

# Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper,
# so SafeErrorMiddleware (added by install_error_handling) wraps RequestIdMiddleware.
app.add_middleware(RequestIdMiddleware)
install_error_handling(app)

app.include_router(health.router)
app.include_router(schemas.router)
