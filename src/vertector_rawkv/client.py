"""
Raw key-value client.

``RawClient`` issues raw requests that need no wrapping transaction: each
request is processed as soon as it is executed. Requests are built by
``vertector_rawkv.requests``, executed by an execution delegate with the
optimistic retry policy, and the results are shaped by
``vertector_rawkv.shaper``.
"""

import asyncio
import logging
from typing import Any, Iterable

from vertector_rawkv import requests, shaper
from vertector_rawkv.config import RawClientConfig
from vertector_rawkv.delegate import DelegateFactory, ExecutionDelegate, InstrumentedDelegate
from vertector_rawkv.errors import (
    RawKVConfigurationError,
    RawKVConnectionError,
    RawKVTimeoutError,
)
from vertector_rawkv.observability import RequestMetrics, Tracer
from vertector_rawkv.requests import RawRequest
from vertector_rawkv.retry import RetryOptions
from vertector_rawkv.types import (
    ColumnFamily,
    Key,
    KeyLike,
    KvPair,
    KvPairLike,
    RangeLike,
    Value,
)

logger = logging.getLogger(__name__)


class RawClient:
    """
    Handle for raw requests against the cluster.

    A handle holds a shared execution delegate and an optional column family.
    Both are fixed at construction, so a handle can be used from many tasks
    at once. ``with_scope`` and ``clone`` return new handles sharing the same
    delegate; the receiver stays valid and unchanged.

    Example:
        client = await RawClient.connect(["192.168.0.100:2379"], delegate_factory=factory)
        await client.put("TiKV", "Rust")
        value = await client.get("TiKV")
    """

    __slots__ = ("_rpc", "_cf")

    def __init__(self, rpc: ExecutionDelegate, cf: ColumnFamily | None = None):
        """
        Initialize a client handle.

        Most callers should use ``connect`` instead.

        Args:
            rpc: Execution delegate shared by this handle and its derivations
            cf: Column family for requests, or None for the default partition
        """
        object.__setattr__(self, "_rpc", rpc)
        object.__setattr__(self, "_cf", cf)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    async def connect(
        cls,
        pd_endpoints: list[str],
        config: RawClientConfig | None = None,
        *,
        delegate_factory: DelegateFactory | None = None,
    ) -> "RawClient":
        """
        Connect to the cluster and return an unscoped client.

        Include more than one endpoint (all of them, if possible) to avoid a
        single point of failure.

        Args:
            pd_endpoints: Endpoints used for initial cluster discovery
            config: Optional configuration; its endpoints are replaced by ``pd_endpoints``
            delegate_factory: Builds the execution delegate and performs discovery

        Returns:
            Ready client with no column family scope

        Raises:
            pydantic.ValidationError: If the endpoint list is empty or blank
            RawKVConfigurationError: If no delegate factory is given, or
                ``pd_endpoints`` is a single string instead of a list
            RawKVConnectionError: If no endpoint is reachable
            RawKVTimeoutError: If discovery exceeds ``connect_timeout``
        """
        if isinstance(pd_endpoints, str):
            raise RawKVConfigurationError(
                f"pd_endpoints must be a list of endpoints, got the string {pd_endpoints!r}"
            )

        if config is None:
            config = RawClientConfig(pd_endpoints=list(pd_endpoints))
        else:
            config = RawClientConfig.model_validate({**config.model_dump(), "pd_endpoints": list(pd_endpoints)})

        return await cls.from_config(config, delegate_factory=delegate_factory)

    @classmethod
    async def from_config(
        cls,
        config: RawClientConfig,
        *,
        delegate_factory: DelegateFactory | None = None,
    ) -> "RawClient":
        """Connect using the endpoints and settings in ``config``."""
        if delegate_factory is None:
            raise RawKVConfigurationError(
                "No execution delegate factory configured; pass delegate_factory to connect()"
            )

        logger.info(f"Connecting raw client to {config.pd_endpoints}")

        try:
            rpc = await asyncio.wait_for(
                delegate_factory(config.pd_endpoints, config),
                timeout=config.connect_timeout,
            )
        except TimeoutError as e:
            raise RawKVTimeoutError(
                "Initial cluster discovery timed out",
                original_error=e,
                timeout_seconds=config.connect_timeout,
                operation_type="connect",
            )
        except OSError as e:
            raise RawKVConnectionError(
                f"Failed to reach any of {config.pd_endpoints}",
                original_error=e,
            )

        if config.metrics.enabled or config.tracing.enabled:
            metrics = None
            if config.metrics.enabled:
                metrics = RequestMetrics(
                    namespace=config.metrics.namespace,
                    buckets=config.metrics.latency_buckets,
                )
            tracer = None
            if config.tracing.enabled:
                tracer = Tracer(service_name=config.tracing.service_name)
            rpc = InstrumentedDelegate(rpc, metrics=metrics, tracer=tracer)

        logger.info(f"Raw client connected to {config.pd_endpoints}")
        return cls(rpc)

    @property
    def cf(self) -> ColumnFamily | None:
        """Column family requests are scoped to; None means the default partition."""
        return self._cf

    def with_scope(self, cf: ColumnFamily) -> "RawClient":
        """
        Return a new client whose requests target ``cf``.

        The new client shares this client's delegate. This client keeps its
        own scope and remains usable. By default requests use the default
        column family; most users of the raw API never need another one.
        """
        return RawClient(self._rpc, cf)

    with_cf = with_scope

    def clone(self) -> "RawClient":
        """Return a handle sharing the same delegate and scope."""
        return RawClient(self._rpc, self._cf)

    def __copy__(self) -> "RawClient":
        return self.clone()

    def __deepcopy__(self, memo: dict) -> "RawClient":
        # the delegate holds cluster state and is always shared
        return self.clone()

    def __repr__(self) -> str:
        cf = self._cf.value if self._cf is not None else None
        return f"RawClient(cf={cf!r}, rpc={self._rpc!r})"

    async def _execute(self, request: RawRequest) -> Any:
        return await self._rpc.execute(request, RetryOptions.default_optimistic())

    async def get(self, key: KeyLike) -> Value | None:
        """
        Fetch the value stored under ``key``.

        Returns:
            The value, or None if the key does not exist
        """
        return await self._execute(requests.new_raw_get_request(key, self._cf))

    async def batch_get(self, keys: Iterable[KeyLike]) -> list[KvPair]:
        """
        Fetch the values for several keys.

        Keys that do not exist are left out of the result, and the result
        does not follow the order of ``keys``.
        """
        result = await self._execute(requests.new_raw_batch_get_request(keys, self._cf))
        return shaper.pass_through(result)

    async def put(self, key: KeyLike, value: Value | str) -> None:
        """Set the value of ``key``."""
        await self._execute(requests.new_raw_put_request(key, value, self._cf))

    async def batch_put(self, pairs: Iterable[KvPairLike]) -> None:
        """
        Set the values of several keys.

        Accepts KvPair objects or ``(key, value)`` tuples. When a key appears
        more than once the last pair wins.
        """
        await self._execute(requests.new_raw_batch_put_request(pairs, self._cf))

    async def update(self, key: KeyLike, value: Value | str) -> None:
        """Set the value of ``key``, marked as an update for the execution layer."""
        await self._execute(requests.new_raw_update_request(key, value, self._cf))

    async def batch_update(self, pairs: Iterable[KvPairLike]) -> None:
        """Set the values of several keys, marked as updates for the execution layer."""
        await self._execute(requests.new_raw_batch_update_request(pairs, self._cf))

    async def delete(self, key: KeyLike) -> None:
        """
        Delete ``key``.

        Deleting a key that does not exist is not an error.
        """
        await self._execute(requests.new_raw_delete_request(key, self._cf))

    async def batch_delete(self, keys: Iterable[KeyLike]) -> None:
        """Delete several keys; missing keys do not stop the others from being deleted."""
        await self._execute(requests.new_raw_batch_delete_request(keys, self._cf))

    async def delete_range(self, range: RangeLike) -> None:
        """Delete every key in ``range``."""
        await self._execute(requests.new_raw_delete_range_request(range, self._cf))

    async def scan(self, range: RangeLike, limit: int) -> list[KvPair]:
        """
        Return up to ``limit`` pairs from ``range``, ordered by key.

        Raises:
            MaxScanLimitExceeded: If limit is above MAX_RAW_KV_SCAN_LIMIT;
                nothing is sent to the cluster
        """
        return await self._scan_inner(range, limit, key_only=False)

    async def scan_keys(self, range: RangeLike, limit: int) -> list[Key]:
        """Like ``scan`` but return only the keys."""
        return await self._scan_inner(range, limit, key_only=True)

    async def batch_scan(self, ranges: Iterable[RangeLike], each_limit: int) -> list[KvPair]:
        """
        Scan several ranges and return all pairs, range by range.

        Warning: ``each_limit`` does not limit the pairs returned per range.
        It limits the pairs returned per region of each range, so a range can
        yield **more than** ``each_limit`` pairs. No entries are missed.
        """
        return await self._batch_scan_inner(ranges, each_limit, key_only=False)

    async def batch_scan_keys(self, ranges: Iterable[RangeLike], each_limit: int) -> list[Key]:
        """Like ``batch_scan`` but return only the keys. The same ``each_limit`` caveat applies."""
        return await self._batch_scan_inner(ranges, each_limit, key_only=True)

    async def _scan_inner(self, range: RangeLike, limit: int, key_only: bool) -> list:
        request = requests.new_raw_scan_request(range, limit, key_only, self._cf)
        pairs = await self._execute(request)
        return shaper.shape_scan(pairs, limit, key_only)

    async def _batch_scan_inner(self, ranges: Iterable[RangeLike], each_limit: int, key_only: bool) -> list:
        request = requests.new_raw_batch_scan_request(ranges, each_limit, key_only, self._cf)
        per_range = await self._execute(request)
        return shaper.shape_batch_scan(per_range, key_only)

    def get_metrics(self) -> dict[str, Any]:
        """Request metrics of the shared delegate; empty when metrics are disabled."""
        metrics = getattr(self._rpc, "metrics", None)
        if metrics is None:
            return {}
        return metrics.get_stats()

    def export_prometheus_metrics(self) -> str:
        """Request metrics in the Prometheus text format; empty when disabled."""
        metrics = getattr(self._rpc, "metrics", None)
        if metrics is None:
            return ""
        return metrics.export_prometheus()
