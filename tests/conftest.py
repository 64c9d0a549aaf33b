"""
Pytest configuration and fixtures for raw client tests.

Provides:
- In-memory cluster and client fixtures
- A recording delegate double for unit tests
- Test data helpers
"""

import pytest
import pytest_asyncio
from typing import Any
from dotenv import load_dotenv

from vertector_rawkv import (
    MemoryCluster,
    MetricsConfig,
    RawClient,
    RawClientConfig,
    RetryOptions,
)

# Load environment variables for tests
load_dotenv()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no cluster)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (run against the in-memory cluster)"
    )


# ============================================================================
# Delegate Doubles
# ============================================================================

class RecordingDelegate:
    """Delegate double that records requests and returns canned results."""

    def __init__(self, result: Any = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[tuple[Any, RetryOptions]] = []

    async def execute(self, request, retry):
        self.calls.append((request, retry))
        if self.error is not None:
            raise self.error
        return self.result

    @property
    def requests(self) -> list:
        return [request for request, _ in self.calls]


@pytest.fixture
def recording_delegate():
    """Provide a delegate double returning None."""
    return RecordingDelegate()


@pytest.fixture
def unit_client(recording_delegate):
    """Provide an unscoped client over the recording delegate."""
    return RawClient(recording_delegate)


# ============================================================================
# Cluster Fixtures
# ============================================================================

@pytest.fixture
def memory_cluster():
    """
    Provide an in-memory cluster with three regions.

    Regions: ["", "g"), ["g", "p"), ["p", +inf)
    """
    return MemoryCluster(nodes=["node1", "node2"], split_keys=[b"g", b"p"])


@pytest.fixture
def no_metrics_config():
    return RawClientConfig(pd_endpoints=["node1"], metrics=MetricsConfig(enabled=False))


@pytest_asyncio.fixture
async def client(memory_cluster):
    """Provide a connected, unscoped client with metrics enabled."""
    return await RawClient.connect(["node1", "node2"], delegate_factory=memory_cluster.connect)


@pytest_asyncio.fixture
async def bare_client(memory_cluster, no_metrics_config):
    """Provide a connected client talking to the cluster delegate directly."""
    return await RawClient.from_config(no_metrics_config, delegate_factory=memory_cluster.connect)


@pytest.fixture
def delegate_of():
    """Return the MemoryDelegate behind a client, unwrapping instrumentation."""
    def _unwrap(raw_client: RawClient):
        rpc = raw_client._rpc
        return getattr(rpc, "inner", rpc)
    return _unwrap
