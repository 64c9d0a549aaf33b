"""
In-memory cluster implementing the execution delegate.

``MemoryCluster`` keeps data per column family and splits the key space into
regions the way a real cluster does, so it reproduces the execution-layer
behaviors the client has to cope with: batch results grouped by region
rather than caller order, scan limits applied per region, and transient
region errors retried according to ``RetryOptions``. Use it in tests, demos
and local development.

Example:
    cluster = MemoryCluster(nodes=["node1"], split_keys=[b"m"])
    client = await RawClient.connect(["node1"], delegate_factory=cluster.connect)
"""

import asyncio
import logging
from bisect import bisect_right
from collections import deque
from typing import Any, Iterable

from vertector_rawkv.config import RawClientConfig
from vertector_rawkv.errors import RawKVConnectionError, RawKVError
from vertector_rawkv.requests import (
    RawBatchDeleteRequest,
    RawBatchGetRequest,
    RawBatchPutRequest,
    RawBatchScanRequest,
    RawDeleteRangeRequest,
    RawDeleteRequest,
    RawGetRequest,
    RawPutRequest,
    RawRequest,
    RawScanRequest,
)
from vertector_rawkv.retry import RetryOptions
from vertector_rawkv.types import BoundRange, ColumnFamily, Key, KeyLike, KvPair

logger = logging.getLogger(__name__)


class Region:
    """Contiguous key interval ``[start, end)``; ``end`` None means unbounded."""

    __slots__ = ("id", "start", "end")

    def __init__(self, region_id: int, start: Key, end: Key | None):
        self.id = region_id
        self.start = start
        self.end = end

    def contains(self, key: Key) -> bool:
        return key >= self.start and (self.end is None or key < self.end)

    def overlaps(self, start: Key, end: Key | None) -> bool:
        if end is not None and end <= self.start:
            return False
        if self.end is not None and start >= self.end:
            return False
        return True

    def __repr__(self) -> str:
        return f"Region(id={self.id}, start={self.start!r}, end={self.end!r})"


class MemoryCluster:
    """
    Multi-region key-value cluster kept in process memory.

    Args:
        nodes: Endpoint names that accept connections
        split_keys: Keys at which the key space is split into regions
    """

    def __init__(self, nodes: Iterable[str] = ("127.0.0.1:2379",), split_keys: Iterable[KeyLike] = ()):
        self.nodes = set(nodes)
        self._down: set[str] = set()
        self._data: dict[ColumnFamily, dict[Key, bytes]] = {cf: {} for cf in ColumnFamily}
        self._faults: deque[RawKVError] = deque()

        boundaries = sorted({Key.of(k) for k in split_keys if not Key.of(k).is_empty()})
        starts = [Key()] + boundaries
        ends: list[Key | None] = boundaries + [None]
        self.regions = [Region(i + 1, s, e) for i, (s, e) in enumerate(zip(starts, ends))]
        self._region_starts = starts

    # ------------------------------------------------------------------
    # Topology
    # ------------------------------------------------------------------

    def take_down(self, node: str) -> None:
        self._down.add(node)

    def bring_up(self, node: str) -> None:
        self._down.discard(node)

    def live_nodes(self, endpoints: Iterable[str]) -> list[str]:
        return [e for e in endpoints if e in self.nodes and e not in self._down]

    def region_for_key(self, key: Key) -> Region:
        return self.regions[bisect_right(self._region_starts, key) - 1]

    def regions_for_range(self, key_range: BoundRange) -> list[Region]:
        start, end = key_range.into_keys()
        return [r for r in self.regions if r.overlaps(start, end)]

    async def connect(self, endpoints: list[str], config: RawClientConfig | None = None) -> "MemoryDelegate":
        """
        Delegate factory: discover the cluster through ``endpoints``.

        Raises:
            RawKVConnectionError: If none of the endpoints is a live node
        """
        await asyncio.sleep(0)
        reachable = self.live_nodes(endpoints)
        if not reachable:
            raise RawKVConnectionError(f"No endpoint reachable among {endpoints}")

        logger.info(f"Discovered {len(self.regions)} region(s) through {reachable[0]}")
        return MemoryDelegate(self)

    # ------------------------------------------------------------------
    # Fault injection
    # ------------------------------------------------------------------

    def fail_next(self, error: RawKVError, times: int = 1) -> None:
        """Make the next ``times`` region calls raise ``error``."""
        self._faults.extend([error] * times)

    def _check_fault(self) -> None:
        if self._faults:
            raise self._faults.popleft()

    # ------------------------------------------------------------------
    # Region-level operations
    # ------------------------------------------------------------------

    def _table(self, cf: ColumnFamily | None) -> dict[Key, bytes]:
        return self._data[cf or ColumnFamily.DEFAULT]

    def _group_by_region(self, keys: Iterable[Key]) -> list[tuple[Region, list[Key]]]:
        groups: dict[int, list[Key]] = {}
        for key in keys:
            groups.setdefault(self.region_for_key(key).id, []).append(key)
        return [(self.regions[rid - 1], groups[rid]) for rid in sorted(groups)]

    def _scan_region(self, region: Region, key_range: BoundRange, limit: int, key_only: bool, cf: ColumnFamily | None) -> list[KvPair]:
        table = self._table(cf)
        keys = sorted(k for k in table if region.contains(k) and key_range.contains(k))
        return [KvPair(k, b"" if key_only else table[k]) for k in keys[:limit]]

    async def dispatch(self, request: RawRequest) -> Any:
        """Run one attempt of ``request`` across the regions it touches."""
        await asyncio.sleep(0)
        self._check_fault()
        table = self._table(request.cf)

        if isinstance(request, RawGetRequest):
            return table.get(request.key)

        if isinstance(request, RawBatchGetRequest):
            result = []
            for _, keys in self._group_by_region(request.keys):
                for key in sorted(set(keys)):
                    if key in table:
                        result.append(KvPair(key, table[key]))
            return result

        if isinstance(request, RawPutRequest):
            table[request.key] = request.value
            return None

        if isinstance(request, RawBatchPutRequest):
            by_key = {pair.key: pair for pair in request.pairs}
            for _, keys in self._group_by_region(pair.key for pair in request.pairs):
                for key in keys:
                    table[key] = by_key[key].value
            return None

        if isinstance(request, RawDeleteRequest):
            table.pop(request.key, None)
            return None

        if isinstance(request, RawBatchDeleteRequest):
            for key in request.keys:
                table.pop(key, None)
            return None

        if isinstance(request, RawDeleteRangeRequest):
            for key in [k for k in table if request.range.contains(k)]:
                del table[key]
            return None

        if isinstance(request, RawScanRequest):
            result = []
            for region in self.regions_for_range(request.range):
                result.extend(self._scan_region(region, request.range, request.limit, request.key_only, request.cf))
            return result

        if isinstance(request, RawBatchScanRequest):
            per_range = []
            for key_range in request.ranges:
                pairs = []
                for region in self.regions_for_range(key_range):
                    pairs.extend(self._scan_region(region, key_range, request.each_limit, request.key_only, request.cf))
                per_range.append(pairs)
            return per_range

        raise TypeError(f"Unsupported request type: {type(request).__name__}")


class MemoryDelegate:
    """
    Execution delegate bound to a ``MemoryCluster``.

    Retries retryable errors with the region backoff from ``RetryOptions``
    and records the most recent ``history_size`` requests it receives in
    ``requests``, oldest first.
    """

    def __init__(self, cluster: MemoryCluster, history_size: int = 1000):
        self.cluster = cluster
        self.requests: deque[RawRequest] = deque(maxlen=history_size)

    async def execute(self, request: RawRequest, retry: RetryOptions) -> Any:
        self.requests.append(request)

        async for attempt in retry.region_backoff.retrying(_is_retryable):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.debug(f"Retrying {request.operation} (attempt {attempt.retry_state.attempt_number})")
                return await self.cluster.dispatch(request)

    def __repr__(self) -> str:
        return f"MemoryDelegate(regions={len(self.cluster.regions)})"


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, RawKVError) and error.retryable
