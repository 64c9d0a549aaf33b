"""
Vertector RawKV - raw key-value client for sharded, distributed key-value stores.

This package provides the raw (non-transactional) client façade: request
builders with pre-dispatch validation, result shaping, and a cheaply shared
client handle scoped to column families. Cluster discovery, region routing
and transport are provided by an execution delegate.
"""

from vertector_rawkv.client import RawClient

from vertector_rawkv.types import (
    Bound,
    BoundKind,
    BoundRange,
    ColumnFamily,
    Key,
    KvPair,
    Value,
)

from vertector_rawkv.errors import (
    ErrorCategory,
    RawKVError,
    RawKVValidationError,
    MaxScanLimitExceeded,
    RawKVRegionError,
    RawKVServerBusyError,
    RawKVRequestError,
    RawKVConnectionError,
    RawKVTimeoutError,
    RawKVConfigurationError,
)

from vertector_rawkv.requests import (
    MAX_RAW_KV_SCAN_LIMIT,
    RawRequest,
    WriteIntent,
)

from vertector_rawkv.retry import (
    Backoff,
    RetryOptions,
)

from vertector_rawkv.delegate import (
    DelegateFactory,
    ExecutionDelegate,
    InstrumentedDelegate,
)

from vertector_rawkv.config import (
    RawClientConfig,
    TLSConfig,
    MetricsConfig,
    TracingConfig,
    load_config_from_env,
)

from vertector_rawkv.observability import (
    Tracer,
    RequestMetrics,
    create_tracer_provider,
)

from vertector_rawkv.logging_utils import StructuredFormatter, setup_production_logging

from vertector_rawkv.mock import MemoryCluster, MemoryDelegate

__version__ = "1.0.0"

__all__ = [
    # Client
    "RawClient",
    # Primitives
    "Bound",
    "BoundKind",
    "BoundRange",
    "ColumnFamily",
    "Key",
    "KvPair",
    "Value",
    # Errors
    "ErrorCategory",
    "RawKVError",
    "RawKVValidationError",
    "MaxScanLimitExceeded",
    "RawKVRegionError",
    "RawKVServerBusyError",
    "RawKVRequestError",
    "RawKVConnectionError",
    "RawKVTimeoutError",
    "RawKVConfigurationError",
    # Requests and retry
    "MAX_RAW_KV_SCAN_LIMIT",
    "RawRequest",
    "WriteIntent",
    "Backoff",
    "RetryOptions",
    # Execution delegate
    "DelegateFactory",
    "ExecutionDelegate",
    "InstrumentedDelegate",
    "MemoryCluster",
    "MemoryDelegate",
    # Configuration
    "RawClientConfig",
    "TLSConfig",
    "MetricsConfig",
    "TracingConfig",
    "load_config_from_env",
    # Observability
    "Tracer",
    "RequestMetrics",
    "create_tracer_provider",
    # Logging
    "StructuredFormatter",
    "setup_production_logging",
]
