"""
Event Ingest - HTTP endpoint for JSON event envelopes.

Features:
- POST /events: bounded read, strict decode, timestamp defaulting, validation
- GET /health: liveness probe
- Structured logging with correlation IDs
- Prometheus metrics at /metrics
"""
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import Settings, get_settings
from .logging import setup_logging, get_logger
from .handler import EventHandler
from .middleware import CorrelationIdMiddleware, ErrorHandlerMiddleware, MetricsMiddleware
from .metrics import Metrics

SERVICE_NAME = "event-ingest"


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework errors (404, 405, ...) in the service's error envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "request failed", "details": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def create_app(
    settings: Optional[Settings] = None,
    logger=None,
    metrics: Optional[Metrics] = None,
) -> FastAPI:
    """
    Build the ASGI application.

    Args:
        settings: Service settings (defaults to the cached environment settings).
        logger: Logger handed to the event handler. When omitted, structlog is
            configured from ``settings`` and its logger is used.
        metrics: Metrics container (defaults to a fresh private registry).
    """
    settings = settings or get_settings()
    if logger is None:
        setup_logging(json_output=settings.LOG_JSON, service_name=SERVICE_NAME, level=settings.LOG_LEVEL)
        logger = get_logger()
    metrics = metrics or Metrics(service_name=SERVICE_NAME, version=__version__)

    app = FastAPI(
        title="Event Ingest",
        version=__version__,
        description="Accepts and validates JSON event envelopes",
    )
    app.state.settings = settings
    app.state.metrics = metrics

    handler = EventHandler(logger, max_body_size=settings.MAX_EVENT_SIZE, metrics=metrics)
    handler.register(app)
    app.state.handler = handler

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Added last runs first: correlation ID, then metrics, then error envelope
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(MetricsMiddleware, metrics=metrics)
    app.add_middleware(CorrelationIdMiddleware)

    app.mount("/metrics", make_asgi_app(registry=metrics.registry))

    return app


app = create_app()


def run(settings: Optional[Settings] = None) -> None:
    """
    Serve the app until the server stops.

    A listener failure is logged at critical level and ends the process with
    status 1.
    """
    logger = get_logger()
    if settings is None:
        settings, application = get_settings(), app
    else:
        application = create_app(settings, logger=logger)

    config = uvicorn.Config(
        application,
        host=settings.SERVICE_HOST,
        port=settings.SERVICE_PORT,
        # uvicorn has no dedicated header deadline; the keep-alive timeout
        # bounds how long an idle connection may sit before sending a request
        timeout_keep_alive=max(1, round(settings.READ_HEADER_TIMEOUT)),
        h11_max_incomplete_event_size=64 * 1024,
        log_config=None,
        access_log=False,
    )
    server = uvicorn.Server(config)

    logger.info(
        "server.starting",
        addr=f"{settings.SERVICE_HOST}:{settings.SERVICE_PORT}",
        env=settings.ENV,
        version=__version__,
    )
    try:
        server.run()
    except OSError as exc:
        logger.critical("server.failed", error=str(exc))
        sys.exit(1)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.critical("server.failed", error=f"server exited with status {exc.code}")
            sys.exit(1)
        raise


if __name__ == "__main__":
    run()
