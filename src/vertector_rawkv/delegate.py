"""
Execution delegate interface.

The raw client builds request descriptors and hands them to an execution
delegate together with a retry policy. The delegate resolves regions, sends
RPCs, retries and merges partial results. ``InstrumentedDelegate`` wraps any
delegate with tracing, metrics and logging without changing its results or
errors.
"""

import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol, runtime_checkable

from vertector_rawkv.logging_utils import PerformanceLogger
from vertector_rawkv.observability import RequestMetrics, Tracer
from vertector_rawkv.requests import RawRequest
from vertector_rawkv.retry import RetryOptions

if TYPE_CHECKING:
    from vertector_rawkv.config import RawClientConfig

logger = logging.getLogger(__name__)


@runtime_checkable
class ExecutionDelegate(Protocol):
    """
    Executes raw request descriptors against the cluster.

    Result payloads by request type:
        RawGetRequest: ``bytes | None``
        RawBatchGetRequest: sequence of KvPair, absent keys left out
        RawPutRequest, RawBatchPutRequest, deletes: ``None``
        RawScanRequest: sequence of KvPair in ascending key order
        RawBatchScanRequest: one sequence of KvPair per range, in range order

    Errors are raised as ``RawKVError`` subclasses.
    """

    async def execute(self, request: RawRequest, retry: RetryOptions) -> Any:
        ...


# Builds a connected delegate from endpoints; performs initial discovery.
DelegateFactory = Callable[[list[str], "RawClientConfig"], Awaitable[ExecutionDelegate]]


class InstrumentedDelegate:
    """
    Wraps a delegate with tracing, metrics and performance logging.

    Errors from the wrapped delegate are recorded and re-raised unchanged.
    """

    def __init__(
        self,
        inner: ExecutionDelegate,
        metrics: RequestMetrics | None = None,
        tracer: Tracer | None = None,
    ):
        self.inner = inner
        self.metrics = metrics
        self.tracer = tracer

    async def execute(self, request: RawRequest, retry: RetryOptions) -> Any:
        operation = request.operation
        cf = request.cf.value if request.cf is not None else "default"
        start_time = time.perf_counter()
        success = True
        error_type = None

        try:
            if self.tracer:
                async with self.tracer.span(f"rawkv.{operation}", attributes={"rawkv.cf": cf}):
                    async with PerformanceLogger(operation, logger, cf=cf):
                        return await self.inner.execute(request, retry)
            async with PerformanceLogger(operation, logger, cf=cf):
                return await self.inner.execute(request, retry)
        except Exception as e:
            success = False
            error_type = type(e).__name__
            raise
        finally:
            if self.metrics:
                latency_ms = (time.perf_counter() - start_time) * 1000
                self.metrics.record_request(operation, latency_ms, success=success, error_type=error_type)

    def __repr__(self) -> str:
        return f"InstrumentedDelegate({self.inner!r})"
