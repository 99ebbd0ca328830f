"""Prometheus metrics for HTTP traffic and class-session workflow."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from time import perf_counter

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

HTTP_REQUESTS_TOTAL = Counter(
    "classledger_http_requests_total",
    "Total number of HTTP requests handled by the API.",
    ["method", "path", "status_code"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "classledger_http_request_duration_seconds",
    "HTTP request latency in seconds.",
    ["method", "path"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

SESSION_TRANSITIONS_TOTAL = Counter(
    "classledger_session_transitions_total",
    "Class session lifecycle transitions applied.",
    ["transition"],
)

UPLOAD_TASKS_CREATED_TOTAL = Counter(
    "classledger_upload_tasks_created_total",
    "Upload tasks created, by trigger.",
    ["trigger"],
)


def record_transition(transition: str, count: int = 1) -> None:
    if count > 0:
        SESSION_TRANSITIONS_TOTAL.labels(transition=transition).inc(count)


def record_upload_tasks_created(trigger: str, count: int = 1) -> None:
    if count > 0:
        UPLOAD_TASKS_CREATED_TOTAL.labels(trigger=trigger).inc(count)


def _request_path_label(request: Request) -> str:
    route = request.scope.get("route")
    route_path = getattr(route, "path", None)
    if route_path:
        return str(route_path)
    return request.url.path


async def instrument_http_request(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Track request count and latency for each endpoint."""
    started_at = perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        path_label = _request_path_label(request)
        method_label = request.method.upper()

        HTTP_REQUESTS_TOTAL.labels(
            method=method_label,
            path=path_label,
            status_code=str(status_code),
        ).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(
            method=method_label,
            path=path_label,
        ).observe(perf_counter() - started_at)


def build_metrics_response() -> Response:
    """Return metrics payload in Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
