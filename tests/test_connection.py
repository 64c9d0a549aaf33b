"""
Unit tests for client connection and initialization.

Tests:
- Cluster discovery through the delegate factory
- Connection failures and timeouts
- Configuration handling
- Instrumentation wrapping
"""

import asyncio

import pytest
from pydantic import ValidationError

from vertector_rawkv import (
    InstrumentedDelegate,
    MemoryCluster,
    MemoryDelegate,
    MetricsConfig,
    RawClient,
    RawClientConfig,
    RawKVConfigurationError,
    RawKVConnectionError,
    RawKVTimeoutError,
    TracingConfig,
)


@pytest.mark.unit
class TestConnect:
    """Test RawClient.connect."""

    @pytest.mark.asyncio
    async def test_connect_returns_unscoped_client(self, memory_cluster):
        client = await RawClient.connect(["node1"], delegate_factory=memory_cluster.connect)

        assert client.cf is None
        assert isinstance(client._rpc, InstrumentedDelegate)
        assert isinstance(client._rpc.inner, MemoryDelegate)

    @pytest.mark.asyncio
    async def test_any_reachable_endpoint_suffices(self, memory_cluster):
        memory_cluster.take_down("node1")

        client = await RawClient.connect(["node1", "node2"], delegate_factory=memory_cluster.connect)

        await client.put("k", "v")
        assert await client.get("k") == b"v"

    @pytest.mark.asyncio
    async def test_no_reachable_endpoint_raises(self, memory_cluster):
        memory_cluster.take_down("node1")
        memory_cluster.take_down("node2")

        with pytest.raises(RawKVConnectionError) as exc_info:
            await RawClient.connect(["node1", "node2"], delegate_factory=memory_cluster.connect)
        assert "No endpoint reachable" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unknown_endpoint_raises(self, memory_cluster):
        with pytest.raises(RawKVConnectionError):
            await RawClient.connect(["10.0.0.1:2379"], delegate_factory=memory_cluster.connect)

    @pytest.mark.asyncio
    async def test_node_back_up(self, memory_cluster):
        memory_cluster.take_down("node1")
        memory_cluster.bring_up("node1")

        client = await RawClient.connect(["node1"], delegate_factory=memory_cluster.connect)
        assert client is not None

    @pytest.mark.asyncio
    async def test_empty_endpoints_raise(self, memory_cluster):
        with pytest.raises(ValidationError):
            await RawClient.connect([], delegate_factory=memory_cluster.connect)

    @pytest.mark.asyncio
    async def test_single_string_endpoint_raises(self, memory_cluster):
        with pytest.raises(RawKVConfigurationError) as exc_info:
            await RawClient.connect("node1", delegate_factory=memory_cluster.connect)
        assert "'node1'" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_factory_raises(self):
        with pytest.raises(RawKVConfigurationError):
            await RawClient.connect(["node1"])

    @pytest.mark.asyncio
    async def test_connect_replaces_config_endpoints(self, memory_cluster):
        seen = []

        async def factory(endpoints, config):
            seen.append((endpoints, config))
            return await memory_cluster.connect(endpoints, config)

        config = RawClientConfig(pd_endpoints=["elsewhere:2379"], timeout=7.0)
        await RawClient.connect(["node2"], config, delegate_factory=factory)

        endpoints, passed = seen[0]
        assert endpoints == ["node2"]
        assert passed.pd_endpoints == ["node2"]
        assert passed.timeout == 7.0

    @pytest.mark.asyncio
    async def test_discovery_timeout(self):
        async def slow_factory(endpoints, config):
            await asyncio.sleep(1)

        config = RawClientConfig(pd_endpoints=["node1"], connect_timeout=0.01)

        with pytest.raises(RawKVTimeoutError) as exc_info:
            await RawClient.from_config(config, delegate_factory=slow_factory)

        assert exc_info.value.operation_type == "connect"
        assert exc_info.value.timeout_seconds == 0.01

    @pytest.mark.asyncio
    async def test_os_error_becomes_connection_error(self):
        async def refusing_factory(endpoints, config):
            raise ConnectionRefusedError("connection refused")

        config = RawClientConfig(pd_endpoints=["node1"])

        with pytest.raises(RawKVConnectionError) as exc_info:
            await RawClient.from_config(config, delegate_factory=refusing_factory)

        assert isinstance(exc_info.value.original_error, ConnectionRefusedError)


@pytest.mark.unit
class TestInstrumentation:
    """Test metrics wiring set up at connect time."""

    @pytest.mark.asyncio
    async def test_no_instrumentation_when_disabled(self, bare_client):
        assert isinstance(bare_client._rpc, MemoryDelegate)
        assert bare_client.get_metrics() == {}
        assert bare_client.export_prometheus_metrics() == ""

    @pytest.mark.asyncio
    async def test_tracing_only_wraps_without_metrics(self, memory_cluster):
        config = RawClientConfig(
            pd_endpoints=["node1"],
            metrics=MetricsConfig(enabled=False),
            tracing=TracingConfig(enabled=True, service_name="test"),
        )

        client = await RawClient.from_config(config, delegate_factory=memory_cluster.connect)

        assert isinstance(client._rpc, InstrumentedDelegate)
        assert client._rpc.metrics is None
        assert client._rpc.tracer is not None
        await client.put("k", "v")
        assert client.get_metrics() == {}

    @pytest.mark.asyncio
    async def test_metrics_recorded_per_operation(self, client):
        await client.put("k", "v")
        await client.get("k")
        await client.get("missing")

        stats = client.get_metrics()
        assert stats["total_requests"] == 3
        assert stats["operations"] == {"raw_put": 1, "raw_get": 2}
        assert stats["total_errors"] == 0

    @pytest.mark.asyncio
    async def test_metrics_shared_by_derived_clients(self, client):
        from vertector_rawkv import ColumnFamily

        await client.with_scope(ColumnFamily.WRITE).put("k", "v")
        await client.clone().get("k")

        assert client.get_metrics()["total_requests"] == 2

    @pytest.mark.asyncio
    async def test_prometheus_export(self, client):
        await client.get("k")

        output = client.export_prometheus_metrics()

        assert 'rawkv_requests_total{operation="raw_get"} 1.0' in output
        assert "rawkv_request_duration_seconds" in output

    @pytest.mark.asyncio
    async def test_validation_errors_are_not_recorded(self, client):
        from vertector_rawkv import BoundRange, MaxScanLimitExceeded

        with pytest.raises(MaxScanLimitExceeded):
            await client.scan(BoundRange.full(), 20000)

        assert client.get_metrics()["total_requests"] == 0

    @pytest.mark.asyncio
    async def test_errors_recorded(self, client, memory_cluster):
        from vertector_rawkv import RawKVRequestError

        memory_cluster.fail_next(RawKVRequestError("rejected"), times=1)

        with pytest.raises(RawKVRequestError):
            await client.delete("k")

        stats = client.get_metrics()
        assert stats["errors"] == {"raw_delete": 1}
        assert stats["error_types"] == {"RawKVRequestError": 1}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_memory_delegate_keeps_bounded_history(memory_cluster):
    delegate = MemoryDelegate(memory_cluster, history_size=3)
    client = RawClient(delegate)

    for i in range(5):
        await client.put(f"k{i}", "v")

    assert len(delegate.requests) == 3
    assert [r.key.data for r in delegate.requests] == [b"k2", b"k3", b"k4"]


@pytest.mark.unit
def test_memory_cluster_regions():
    cluster = MemoryCluster(split_keys=[b"p", b"g", b"g", b""])

    assert [(r.start.data, r.end.data if r.end else None) for r in cluster.regions] == [
        (b"", b"g"),
        (b"g", b"p"),
        (b"p", None),
    ]
