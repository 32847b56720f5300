"""Telemetry utilities: request timing, canonical log lines, operation spans."""

import asyncio
import os
import time
import uuid
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.logger import get_logger
from core.wide_event import clear_wide_event, get_wide_event, init_wide_event

logger = get_logger(__name__)

# Spans are only recorded when an OpenTelemetry SDK is configured for the
# process (e.g. via opentelemetry-instrument); otherwise the API is a no-op.
TELEMETRY_ENABLED = bool(os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"))

SERVICE_NAME = os.getenv("SERVICE_NAME", "catalog-admin-api")
SERVICE_VERSION = os.getenv("SERVICE_VERSION", "0.1.0")

# Requests slower than this are always logged
SLOW_REQUEST_MS = 1000

tracer = trace.get_tracer(__name__)

P = ParamSpec("P")
R = TypeVar("R")


# Longest client-supplied X-Request-Id accepted for correlation
MAX_REQUEST_ID_LENGTH = 128


def _incoming_request_id(scope: Scope) -> str | None:
    for name, value in scope.get("headers", []):
        if name == b"x-request-id":
            request_id = value.decode("latin-1").strip()
            if 0 < len(request_id) <= MAX_REQUEST_ID_LENGTH:
                return request_id
            return None
    return None


class RequestTimingMiddleware:
    """Times each request and emits one wide event per request.

    A client-supplied X-Request-Id is reused so the caller can correlate
    logs. Server errors log at ERROR, client errors and slow requests at
    INFO, fast successes at DEBUG.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        client = scope.get("client")
        request_id = _incoming_request_id(scope) or str(uuid.uuid4())

        wide_event = init_wide_event()
        wide_event["service_name"] = SERVICE_NAME
        wide_event["service_version"] = SERVICE_VERSION
        wide_event["request_id"] = request_id
        wide_event["http_method"] = method
        wide_event["http_path"] = path
        wide_event["http_client_ip"] = client[0] if client else "unknown"

        response_status: int | None = None

        def _finish(outcome: str) -> None:
            duration_ms = (time.perf_counter() - start_time) * 1000
            route = scope.get("route")
            event = get_wide_event()
            event["http_route"] = getattr(route, "path", None) or path
            event["http_status_code"] = response_status
            event["duration_ms"] = round(duration_ms, 2)
            event["outcome"] = outcome

            if response_status is None or response_status >= 500:
                logger.error("request.completed", **event)
            elif response_status >= 400 or duration_ms > SLOW_REQUEST_MS:
                logger.info("request.completed", **event)
            else:
                logger.debug("request.completed", **event)
            clear_wide_event()

        async def send_wrapper(message: Message) -> None:
            nonlocal response_status

            if message.get("type") == "http.response.start":
                response_status = int(message.get("status", 0))
                headers: list[tuple[bytes, bytes]] = list(message.get("headers", []))
                duration_ms = (time.perf_counter() - start_time) * 1000
                headers.append(
                    (b"x-request-duration-ms", f"{duration_ms:.2f}".encode())
                )
                headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = headers

            await send(message)

            if message.get("type") == "http.response.body" and not message.get(
                "more_body", False
            ):
                _finish(
                    "success"
                    if response_status is not None and response_status < 400
                    else "error"
                )

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            get_wide_event()["exception_type"] = type(exc).__name__
            _finish("exception")
            raise


def track_operation(
    operation_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator to wrap an async business operation in a span."""

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"track_operation requires an async function: {func!r}")

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            if not TELEMETRY_ENABLED:
                return await func(*args, **kwargs)

            with tracer.start_as_current_span(
                operation_name, attributes={"operation.name": operation_name}
            ) as span:
                start_time = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                    span.set_attribute("operation.success", True)
                    return result
                except Exception as e:
                    span.set_attribute("operation.success", False)
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise
                finally:
                    duration_ms = (time.perf_counter() - start_time) * 1000
                    span.set_attribute("operation.duration_ms", duration_ms)

        return wrapper

    return decorator
