"""Lightweight observability helpers (logging + metrics)."""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections import defaultdict
from threading import Lock
from typing import Iterable, Protocol

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from companion.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_BUCKETS_MS = [50, 100, 250, 500, 1000, 2500, 5000, 10000]


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the application process."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


class MetricsBackend(Protocol):
    """Metrics backend interface."""

    def observe_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
    ) -> None:
        ...

    def observe_external_api(
        self,
        provider: str,
        operation: str,
        status_code: int,
        duration_ms: float,
    ) -> None:
        ...

    def external_call_count(self, provider: str, operation: str | None = None) -> int:
        ...

    def render_prometheus(self) -> str:
        ...


class MetricsCollector:
    """In-process metrics collector with Prometheus text output."""

    def __init__(self, buckets_ms: Iterable[int] | None = None) -> None:
        self._lock = Lock()
        self._request_counts: dict[tuple[str, str, str], int] = defaultdict(int)
        self._duration_sum_ms: dict[tuple[str, str], float] = defaultdict(float)
        self._duration_count: dict[tuple[str, str], int] = defaultdict(int)
        self._duration_buckets: dict[tuple[str, str], dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._external_counts: dict[tuple[str, str, str], int] = defaultdict(int)
        self._external_duration_sum_ms: dict[tuple[str, str], float] = defaultdict(float)
        self._external_duration_count: dict[tuple[str, str], int] = defaultdict(int)
        self._external_duration_buckets: dict[tuple[str, str], dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._buckets_ms = list(buckets_ms or DEFAULT_BUCKETS_MS)

    def observe_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
    ) -> None:
        """Record a single request observation."""
        count_key = (method, path, str(status_code))
        duration_key = (method, path)
        bucket_key = self._bucket_for(duration_ms)

        with self._lock:
            self._request_counts[count_key] += 1
            self._duration_sum_ms[duration_key] += duration_ms
            self._duration_count[duration_key] += 1
            self._duration_buckets[duration_key][bucket_key] += 1

    def observe_external_api(
        self,
        provider: str,
        operation: str,
        status_code: int,
        duration_ms: float,
    ) -> None:
        """Record an external API call observation."""
        duration_key = (provider, operation)
        bucket_key = self._bucket_for(duration_ms)
        status = str(status_code)

        with self._lock:
            self._external_counts[(provider, operation, status)] += 1
            self._external_duration_sum_ms[duration_key] += duration_ms
            self._external_duration_count[duration_key] += 1
            self._external_duration_buckets[duration_key][bucket_key] += 1

    def external_call_count(self, provider: str, operation: str | None = None) -> int:
        """Total recorded calls to a provider, optionally for one operation."""
        with self._lock:
            return sum(
                count
                for (p, op, _), count in self._external_counts.items()
                if p == provider and (operation is None or op == operation)
            )

    def render_prometheus(self) -> str:
        """Render metrics in Prometheus text format."""
        lines: list[str] = [
            "# HELP http_requests_total Total HTTP requests",
            "# TYPE http_requests_total counter",
        ]
        with self._lock:
            for (method, path, status), count in sorted(self._request_counts.items()):
                lines.append(
                    f'http_requests_total{{method="{method}",path="{path}",status="{status}"}} {count}'
                )

            lines.extend(
                [
                    "# HELP http_request_duration_ms Request duration in milliseconds",
                    "# TYPE http_request_duration_ms histogram",
                ]
            )
            for (method, path), total in sorted(self._duration_sum_ms.items()):
                labels = f'method="{method}",path="{path}"'
                lines.extend(
                    self._histogram_lines(
                        "http_request_duration_ms",
                        labels,
                        self._duration_buckets[(method, path)],
                        total,
                        self._duration_count[(method, path)],
                    )
                )

            lines.extend(
                [
                    "# HELP external_api_requests_total External API requests",
                    "# TYPE external_api_requests_total counter",
                ]
            )
            for (provider, operation, status), count in sorted(self._external_counts.items()):
                lines.append(
                    "external_api_requests_total"
                    f'{{provider="{provider}",operation="{operation}",status="{status}"}} {count}'
                )

            lines.extend(
                [
                    "# HELP external_api_duration_ms External API duration in milliseconds",
                    "# TYPE external_api_duration_ms histogram",
                ]
            )
            for (provider, operation), total in sorted(self._external_duration_sum_ms.items()):
                labels = f'provider="{provider}",operation="{operation}"'
                lines.extend(
                    self._histogram_lines(
                        "external_api_duration_ms",
                        labels,
                        self._external_duration_buckets[(provider, operation)],
                        total,
                        self._external_duration_count[(provider, operation)],
                    )
                )
        return "\n".join(lines) + "\n"

    def _histogram_lines(
        self,
        name: str,
        labels: str,
        buckets: dict[str, int],
        total: float,
        count: int,
    ) -> list[str]:
        lines: list[str] = []
        cumulative = 0
        for bound in self._buckets_ms:
            cumulative += buckets.get(str(bound), 0)
            lines.append(f'{name}_bucket{{{labels},le="{bound}"}} {cumulative}')
        cumulative += buckets.get("+Inf", 0)
        lines.append(f'{name}_bucket{{{labels},le="+Inf"}} {cumulative}')
        lines.append(f"{name}_sum{{{labels}}} {total:.2f}")
        lines.append(f"{name}_count{{{labels}}} {count}")
        return lines

    def _bucket_for(self, duration_ms: float) -> str:
        for bound in self._buckets_ms:
            if duration_ms <= bound:
                return str(bound)
        return "+Inf"


class PrometheusMetrics:
    """Prometheus client-based metrics backend."""

    def __init__(self, buckets_ms: Iterable[int]) -> None:
        from prometheus_client import CollectorRegistry, Counter, Histogram

        self._registry = CollectorRegistry()
        self._buckets_ms = list(buckets_ms)

        self._http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "path", "status"],
            registry=self._registry,
        )
        self._http_request_duration_ms = Histogram(
            "http_request_duration_ms",
            "Request duration in milliseconds",
            ["method", "path"],
            buckets=self._buckets_ms,
            registry=self._registry,
        )
        self._external_api_requests_total = Counter(
            "external_api_requests_total",
            "External API requests",
            ["provider", "operation", "status"],
            registry=self._registry,
        )
        self._external_api_duration_ms = Histogram(
            "external_api_duration_ms",
            "External API duration in milliseconds",
            ["provider", "operation"],
            buckets=self._buckets_ms,
            registry=self._registry,
        )

    def observe_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
    ) -> None:
        self._http_requests_total.labels(method, path, str(status_code)).inc()
        self._http_request_duration_ms.labels(method, path).observe(duration_ms)

    def observe_external_api(
        self,
        provider: str,
        operation: str,
        status_code: int,
        duration_ms: float,
    ) -> None:
        self._external_api_requests_total.labels(
            provider, operation, str(status_code)
        ).inc()
        self._external_api_duration_ms.labels(provider, operation).observe(duration_ms)

    def external_call_count(self, provider: str, operation: str | None = None) -> int:
        total = 0.0
        for metric in self._external_api_requests_total.collect():
            for sample in metric.samples:
                if not sample.name.endswith("_total"):
                    continue
                labels = sample.labels
                if labels["provider"] == provider and (
                    operation is None or labels["operation"] == operation
                ):
                    total += sample.value
        return int(total)

    def render_prometheus(self) -> str:
        from prometheus_client import generate_latest

        return generate_latest(self._registry).decode("utf-8")


_metrics_backend: MetricsBackend | None = None


def get_metrics_backend() -> MetricsBackend:
    """Return a cached metrics backend instance."""
    global _metrics_backend
    if _metrics_backend is None:
        settings = get_settings()
        _metrics_backend = _build_metrics_backend(settings.metrics_backend)
    return _metrics_backend


def _build_metrics_backend(backend: str) -> MetricsBackend:
    if backend == "prometheus":
        return PrometheusMetrics(DEFAULT_BUCKETS_MS)
    return MetricsCollector(DEFAULT_BUCKETS_MS)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Attach request_id, log request/response, and emit metrics."""

    def __init__(
        self,
        app: ASGIApp,
        metrics: MetricsBackend | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(app)
        self.metrics = metrics or get_metrics_backend()
        self.logger = logger or logging.getLogger("companion.request")

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            status_code = response.status_code if response else 500

            if response is not None:
                response.headers["X-Request-ID"] = request_id

            route = request.scope.get("route")
            route_path = getattr(route, "path", None)
            # Normalize unmatched paths to avoid label cardinality explosion
            path = route_path or "/__unknown__"

            if self.metrics:
                self.metrics.observe_request(
                    request.method,
                    path,
                    status_code,
                    duration_ms,
                )

            log_payload = {
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "route": route_path,
                "status_code": status_code,
                "elapsed_ms": round(duration_ms, 2),
                "client": request.client.host if request.client else None,
            }
            self.logger.info(json.dumps(log_payload))
