"""
HTTP handlers for event ingestion.

``POST /events`` reads a bounded body, decodes it into an :class:`Event`,
defaults the timestamp, validates the envelope and logs acceptance.
``GET /health`` is a bare liveness probe.
"""
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from .errors import (
    DecodeError,
    IngestError,
    PayloadTooLargeError,
    TrailingContentError,
    UnknownFieldError,
)
from .event_models import Event, format_rfc3339, is_zero_time
from .metrics import Metrics

DEFAULT_MAX_BODY_SIZE = 1 << 20  # 1 MiB


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def read_limited_body(request: Request, limit: int) -> bytes:
    """
    Read the request body, stopping as soon as it grows past ``limit``.

    Raises:
        PayloadTooLargeError: declared or streamed size exceeds ``limit``.
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError(
            f"declared size {declared} exceeds the {limit} byte limit"
        )

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise PayloadTooLargeError(f"request body exceeds the {limit} byte limit")
    return bytes(body)


def decode_event(body: bytes) -> Event:
    """
    Decode exactly one JSON object into an :class:`Event`.

    Raises:
        UnknownFieldError: a top-level key is not part of the envelope.
        TrailingContentError: more JSON follows the first value.
        DecodeError: anything else that is not a well-formed envelope.
    """
    try:
        return Event.model_validate_json(body)
    except ValidationError as exc:
        raise _decode_error_from(exc) from exc


def _decode_error_from(exc: ValidationError) -> DecodeError:
    errors = exc.errors(include_url=False)
    for err in errors:
        if err["type"] == "json_invalid":
            cause = str(err.get("ctx", {}).get("error", err["msg"]))
            if "trailing characters" in cause:
                return TrailingContentError(cause)
            return DecodeError(cause)
    for err in errors:
        if err["type"] == "extra_forbidden":
            field = ".".join(str(part) for part in err["loc"])
            return UnknownFieldError(f'json: unknown field "{field}"')
    first = errors[0]
    where = ".".join(str(part) for part in first["loc"]) or "body"
    return DecodeError(f"{where}: {first['msg']}")


class EventHandler:
    """
    Owns the ingestion routes and their collaborators.

    The logger is passed in rather than looked up so callers control where
    acceptance lines go; it must tolerate concurrent writers.
    """

    def __init__(
        self,
        logger: Any,
        max_body_size: int = DEFAULT_MAX_BODY_SIZE,
        clock: Callable[[], datetime] = utc_now,
        metrics: Optional[Metrics] = None,
    ):
        self.logger = logger
        self.max_body_size = max_body_size
        self.clock = clock
        self.metrics = metrics

    def register(self, router) -> None:
        """Attach the handler's routes to a FastAPI app or APIRouter."""
        router.add_api_route(
            "/events",
            self.handle_post_event,
            methods=["POST"],
            status_code=202,
            response_class=JSONResponse,
        )
        router.add_api_route(
            "/health",
            self.handle_health,
            methods=["GET"],
            response_class=PlainTextResponse,
        )

    async def handle_post_event(self, request: Request) -> JSONResponse:
        try:
            body = await read_limited_body(request, self.max_body_size)
            event = decode_event(body)
            if event.timestamp is None or is_zero_time(event.timestamp):
                event = event.model_copy(update={"timestamp": self.clock().astimezone(timezone.utc)})
            event.validate()
        except IngestError as exc:
            return self._reject(exc)

        self.logger.info(
            "event.accepted",
            id=event.id,
            type=event.type,
            source=event.source,
            timestamp=format_rfc3339(event.timestamp),
        )
        if self.metrics is not None:
            self.metrics.record_event_accepted(len(body))

        return JSONResponse(status_code=202, content={"status": "accepted", "id": event.id})

    async def handle_health(self) -> PlainTextResponse:
        return PlainTextResponse("ok")

    def _reject(self, exc: IngestError) -> JSONResponse:
        self.logger.warning(
            "event.rejected",
            error=exc.message,
            details=exc.details,
            status_code=exc.status_code,
        )
        if self.metrics is not None:
            self.metrics.record_event_rejected(type(exc).__name__)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
