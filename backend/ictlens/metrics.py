"""
ICT Lens — Prometheus-Compatible Metrics

Lightweight in-process metrics:
- http_requests_total{method, path, status} — request counter
- http_request_duration_seconds{method, path} — response time summary
- ict_scans_total / ict_signals_total{direction} — engine activity
- GET /metrics — text/plain Prometheus exposition format
"""

from __future__ import annotations

import threading
import time
from collections import defaultdict

from fastapi import APIRouter
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from ictlens.models import ICTSignal

# ────────────────────────────────────────────────
# In-Memory Metric Store
# ────────────────────────────────────────────────

_request_counts: dict[tuple[str, str, int], int] = defaultdict(int)
_request_durations: dict[tuple[str, str], list[float]] = defaultdict(list)
_scan_count = 0
_signal_counts: dict[str, int] = defaultdict(int)

# Scans run in the threadpool (sync route), so their counters need a lock
_scan_lock = threading.Lock()

# Max stored durations per path to prevent memory leak
_MAX_DURATION_SAMPLES = 1000


def record_request(method: str, path: str, status_code: int, duration: float) -> None:
    """Record a single request's metrics."""
    _request_counts[(method, path, status_code)] += 1

    durations = _request_durations[(method, path)]
    durations.append(duration)
    if len(durations) > _MAX_DURATION_SAMPLES:
        _request_durations[(method, path)] = durations[-_MAX_DURATION_SAMPLES:]


def record_scan(signals: list[ICTSignal]) -> None:
    """Count one engine scan and the signals it produced."""
    global _scan_count
    with _scan_lock:
        _scan_count += 1
        for signal in signals:
            _signal_counts[signal.direction.value] += 1


def reset_metrics() -> None:
    global _scan_count
    _request_counts.clear()
    _request_durations.clear()
    with _scan_lock:
        _signal_counts.clear()
        _scan_count = 0


# ────────────────────────────────────────────────
# Metrics Collection Middleware
# ────────────────────────────────────────────────


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collects per-request metrics for Prometheus exposition."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        record_request(
            method=request.method,
            path=str(request.url.path),
            status_code=response.status_code,
            duration=time.perf_counter() - start,
        )
        return response


# ────────────────────────────────────────────────
# Prometheus Exposition Endpoint
# ────────────────────────────────────────────────

metrics_router = APIRouter()


def _format_prometheus() -> str:
    """Format metrics in Prometheus text exposition format."""
    lines: list[str] = []

    lines.append("# HELP http_requests_total Total HTTP requests processed.")
    lines.append("# TYPE http_requests_total counter")
    for (method, path, status), count in sorted(_request_counts.items()):
        lines.append(
            f'http_requests_total{{method="{method}",path="{path}",status="{status}"}} {count}'
        )

    lines.append("")
    lines.append("# HELP http_request_duration_seconds HTTP request duration in seconds.")
    lines.append("# TYPE http_request_duration_seconds summary")
    for (method, path), durations in sorted(_request_durations.items()):
        if not durations:
            continue
        count = len(durations)
        sorted_d = sorted(durations)
        p50 = sorted_d[int(count * 0.5)]
        p95 = sorted_d[min(int(count * 0.95), count - 1)]

        label = f'method="{method}",path="{path}"'
        lines.append(f'http_request_duration_seconds{{{label},quantile="0.5"}} {p50:.6f}')
        lines.append(f'http_request_duration_seconds{{{label},quantile="0.95"}} {p95:.6f}')
        lines.append(f"http_request_duration_seconds_sum{{{label}}} {sum(durations):.6f}")
        lines.append(f"http_request_duration_seconds_count{{{label}}} {count}")

    lines.append("")
    lines.append("# HELP ict_scans_total FVG engine scans run.")
    lines.append("# TYPE ict_scans_total counter")
    lines.append(f"ict_scans_total {_scan_count}")

    lines.append("")
    lines.append("# HELP ict_signals_total Confluence signals emitted.")
    lines.append("# TYPE ict_signals_total counter")
    for direction, count in sorted(_signal_counts.items()):
        lines.append(f'ict_signals_total{{direction="{direction}"}} {count}')

    lines.append("")
    return "\n".join(lines)


@metrics_router.get("/metrics", include_in_schema=False)
async def get_metrics():
    """Prometheus-compatible metrics endpoint."""
    return PlainTextResponse(
        content=_format_prometheus(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
