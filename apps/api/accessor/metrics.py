from __future__ import annotations

import re

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.requests import Request


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

access_evaluations_total = Counter(
    "access_evaluations_total",
    "Total access evaluations by outcome",
    ["access_type", "outcome"],
)

access_denied_fields_count = Counter(
    "access_denied_fields_count",
    "Total fields stripped for a requested access type",
    ["object_name", "access_type"],
)

access_reports_total = Counter(
    "access_reports_total",
    "Total accessibility reports generated",
)

access_report_objects_count = Counter(
    "access_report_objects_count",
    "Total objects rendered into accessibility reports",
)

authz_policy_cache_hit_total = Counter(
    "authz_policy_cache_hit_total",
    "Authorization policy cache hits",
)

authz_policy_cache_miss_total = Counter(
    "authz_policy_cache_miss_total",
    "Authorization policy cache misses",
)

authz_db_queries_count_total = Counter(
    "authz_db_queries_count_total",
    "Authorization DB query count",
)


_UUID_RE = re.compile(
    r"\b[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[1-5][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}\b"
)
_INT_RE = re.compile(r"/\d+\b")


def _sanitize_path(path: str) -> str:
    without_uuids = _UUID_RE.sub("{id}", path)
    return _INT_RE.sub("/{id}", without_uuids)


def resolve_http_path_label(request: Request) -> str:
    route = request.scope.get("route")
    if route is not None:
        path_format = getattr(route, "path_format", None)
        if isinstance(path_format, str) and path_format:
            return path_format
        route_path = getattr(route, "path", None)
        if isinstance(route_path, str) and route_path:
            return route_path
    return _sanitize_path(request.url.path)


def observe_http_request(method: str, path: str, status: int, duration: float) -> None:
    http_requests_total.labels(method=method, path=path, status=str(status)).inc()
    http_request_duration_seconds.labels(method=method, path=path).observe(duration)


def observe_access_evaluation(access_type: str, outcome: str) -> None:
    access_evaluations_total.labels(access_type=access_type, outcome=outcome).inc()


def observe_denied_fields(object_name: str, access_type: str, count: int) -> None:
    if count > 0:
        access_denied_fields_count.labels(object_name=object_name, access_type=access_type).inc(count)


def observe_access_report(object_count: int) -> None:
    access_reports_total.inc()
    if object_count > 0:
        access_report_objects_count.inc(object_count)


def observe_authz_policy_cache_hit() -> None:
    authz_policy_cache_hit_total.inc()


def observe_authz_policy_cache_miss() -> None:
    authz_policy_cache_miss_total.inc()


def observe_authz_db_queries_count(count: int = 1) -> None:
    if count > 0:
        authz_db_queries_count_total.inc(count)


def generate_metrics_payload() -> bytes:
    return generate_latest()


def metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
