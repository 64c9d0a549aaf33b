"""
Observability module for the raw client.

Provides:
- OpenTelemetry distributed tracing
- Request metrics (counts, errors, latency histograms) via prometheus_client
"""

import time
import logging
from typing import Any, Optional
from collections import defaultdict
from contextlib import asynccontextmanager

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

logger = logging.getLogger(__name__)


# ============================================================================
# OpenTelemetry Tracing
# ============================================================================

def create_tracer_provider(
    service_name: str = "rawkv-client",
    exporter: SpanExporter | None = None,
    batch: bool = True,
    set_global: bool = False,
) -> TracerProvider:
    """
    Build an SDK tracer provider for the raw client.

    Args:
        service_name: Value of the ``service.name`` resource attribute
        exporter: Span exporter (defaults to console output)
        batch: Export spans in batches instead of one by one
        set_global: Install the provider as the global OpenTelemetry provider

    Returns:
        Configured TracerProvider
    """
    provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))
    exporter = exporter or ConsoleSpanExporter()
    processor = BatchSpanProcessor(exporter) if batch else SimpleSpanProcessor(exporter)
    provider.add_span_processor(processor)

    if set_global:
        trace.set_tracer_provider(provider)
        logger.info(f"OpenTelemetry tracing initialized for {service_name}")

    return provider


class Tracer:
    """
    Thin tracing interface over OpenTelemetry.

    Uses the global tracer provider unless one is passed in. When disabled,
    ``span`` is a no-op that yields ``None``.
    """

    def __init__(
        self,
        service_name: str = "rawkv-client",
        enabled: bool = True,
        tracer_provider: TracerProvider | None = None,
    ):
        self.service_name = service_name
        self.enabled = enabled
        self._tracer = None

        if enabled:
            self._tracer = trace.get_tracer(__name__, tracer_provider=tracer_provider)

    @asynccontextmanager
    async def span(self, name: str, attributes: Optional[dict[str, Any]] = None):
        """
        Create a traced span for an operation.

        Args:
            name: Span name (e.g., "rawkv.raw_get")
            attributes: Span attributes

        Yields:
            The active span, or None when tracing is disabled
        """
        if not self.enabled or self._tracer is None:
            yield None
            return

        with self._tracer.start_as_current_span(
            name,
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            if attributes:
                for key, value in attributes.items():
                    # OpenTelemetry only accepts primitive attribute values
                    span.set_attribute(key, value if isinstance(value, (str, int, float, bool)) else str(value))

            try:
                yield span
                span.set_status(trace.Status(trace.StatusCode.OK))
            except Exception as e:
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                span.record_exception(e)
                raise


# ============================================================================
# Request Metrics
# ============================================================================

class RequestMetrics:
    """
    Per-operation request metrics.

    Tracks:
    - Request counts
    - Error counts by error type
    - Latency histograms

    Each instance owns a private prometheus registry so several clients can
    coexist in one process.
    """

    def __init__(
        self,
        namespace: str = "rawkv",
        buckets: list[float] | None = None,
        registry: CollectorRegistry | None = None,
    ):
        self.namespace = namespace
        self.registry = registry or CollectorRegistry()

        self._requests = Counter(
            "requests",
            "Raw requests dispatched to the execution layer",
            ["operation"],
            namespace=namespace,
            registry=self.registry,
        )
        self._errors = Counter(
            "request_errors",
            "Raw requests that failed",
            ["operation", "error_type"],
            namespace=namespace,
            registry=self.registry,
        )
        histogram_kwargs = {"buckets": buckets} if buckets else {}
        self._latency = Histogram(
            "request_duration_seconds",
            "Raw request latency in seconds",
            ["operation"],
            namespace=namespace,
            registry=self.registry,
            **histogram_kwargs,
        )

        self.operation_counts: dict[str, int] = defaultdict(int)
        self.error_counts: dict[str, int] = defaultdict(int)
        self.error_types: dict[str, int] = defaultdict(int)
        self._total_latency_ms: dict[str, float] = defaultdict(float)
        self.start_time = time.time()

    def record_request(
        self,
        operation: str,
        latency_ms: float,
        success: bool = True,
        error_type: str | None = None,
    ) -> None:
        """
        Record one dispatched request.

        Args:
            operation: Request operation name (e.g., 'raw_get', 'raw_scan')
            latency_ms: Latency in milliseconds
            success: Whether the request succeeded
            error_type: Exception class name if it failed
        """
        self._requests.labels(operation=operation).inc()
        self._latency.labels(operation=operation).observe(latency_ms / 1000)
        self.operation_counts[operation] += 1
        self._total_latency_ms[operation] += latency_ms

        if not success:
            error_type = error_type or "unknown"
            self._errors.labels(operation=operation, error_type=error_type).inc()
            self.error_counts[operation] += 1
            self.error_types[error_type] += 1

    def get_stats(self) -> dict[str, Any]:
        """
        Summarize recorded requests.

        Returns:
            Dictionary with totals, error rate and average latency per operation
        """
        total_requests = sum(self.operation_counts.values())
        total_errors = sum(self.error_counts.values())

        return {
            "uptime_seconds": time.time() - self.start_time,
            "total_requests": total_requests,
            "total_errors": total_errors,
            "error_rate": total_errors / total_requests if total_requests > 0 else 0.0,
            "operations": dict(self.operation_counts),
            "errors": dict(self.error_counts),
            "error_types": dict(self.error_types),
            "avg_latency_ms": {
                operation: self._total_latency_ms[operation] / count
                for operation, count in self.operation_counts.items()
            },
        }

    def export_prometheus(self) -> str:
        """Export metrics in the Prometheus text format."""
        return generate_latest(self.registry).decode("utf-8")
