import logging
import os

from plugin_loader.api.main import app
from plugin_loader.api.middleware.request_id import RequestIdLogFilter


def configure_logging() -> None:
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdLogFilter())
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s rid=%(request_id)s %(message)s")
    )
    logging.basicConfig(
        level=(os.getenv("PLUGIN_LOADER_LOG_LEVEL") or "INFO").upper(),
        handlers=[handler],
    )


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    host = os.getenv("PLUGIN_LOADER_HOST", "0.0.0.0")
    port = int(os.getenv("PLUGIN_LOADER_PORT", "8001"))
    uvicorn.run(app, host=host, port=port)
