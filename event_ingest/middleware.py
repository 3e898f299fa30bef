"""
Middleware for observability and error envelopes.
"""
import uuid
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
import structlog


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add correlation IDs to all requests.

    - Extracts correlation ID from X-Correlation-ID header if present
    - Generates new UUID if not present
    - Binds correlation ID to structlog context
    - Adds correlation ID to response headers
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("x-correlation-id") or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            http_method=request.method,
            http_path=request.url.path,
        )

        response = await call_next(request)
        response.headers["x-correlation-id"] = correlation_id
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turns exceptions escaping a route into a JSON error envelope."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            structlog.get_logger().error(
                "unhandled.exception",
                error=str(exc),
                error_type=type(exc).__name__,
                path=request.url.path,
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={"error": "internal server error", "details": str(exc)},
            )


UNMATCHED_PATH = "unmatched"


def route_path(request: Request) -> str:
    """Route template for metric labels; unrouted requests share one label."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_PATH


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Middleware to collect HTTP metrics for Prometheus.

    - Records request count by method, route template, status
    - Records request duration histogram
    - Tracks active requests
    """

    def __init__(self, app, metrics):
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next):
        # Skip metrics endpoint to avoid recursion
        if request.url.path.startswith("/metrics"):
            return await call_next(request)

        active = self.metrics.http_requests_active.labels(service=self.metrics.service_name)
        active.inc()
        start_time = time.time()
        status = 500

        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            duration = time.time() - start_time
            path = route_path(request)
            self.metrics.http_requests_total.labels(
                service=self.metrics.service_name,
                method=request.method,
                path=path,
                status=status,
            ).inc()
            self.metrics.http_request_duration.labels(
                service=self.metrics.service_name,
                method=request.method,
                path=path,
            ).observe(duration)
            active.dec()
