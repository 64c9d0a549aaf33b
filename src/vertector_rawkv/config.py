"""
Configuration management for the raw client.

This module provides:
- Pydantic-based configuration validation
- TLS configuration
- Metrics and tracing switches
- Loading configuration from environment variables
"""

import os
import logging
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Models
# ============================================================================

class TLSConfig(BaseModel):
    """TLS configuration for connections to placement drivers and stores."""

    ca_path: Optional[str] = Field(
        default=None,
        description="Path to CA certificate file"
    )

    cert_path: Optional[str] = Field(
        default=None,
        description="Path to client certificate file"
    )

    key_path: Optional[str] = Field(
        default=None,
        description="Path to client private key file"
    )

    @field_validator('ca_path', 'cert_path', 'key_path')
    @classmethod
    def validate_file_exists(cls, v):
        """Validate that certificate files exist."""
        if v is not None and not os.path.exists(v):
            raise ValueError(f"Certificate file not found: {v}")
        return v

    @model_validator(mode='after')
    def validate_tls_config(self):
        """All three files are needed to set up mutual TLS."""
        provided = [p is not None for p in (self.ca_path, self.cert_path, self.key_path)]
        if any(provided) and not all(provided):
            raise ValueError(
                "TLS requires 'ca_path', 'cert_path' and 'key_path' together"
            )
        return self

    @property
    def enabled(self) -> bool:
        return self.ca_path is not None


class MetricsConfig(BaseModel):
    """Request metrics configuration."""

    enabled: bool = Field(
        default=True,
        description="Enable request metrics collection"
    )

    namespace: str = Field(
        default="rawkv",
        min_length=1,
        description="Prefix for exported metric names"
    )

    latency_buckets: list[float] = Field(
        default=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
        description="Histogram buckets for request latency in seconds"
    )

    @field_validator('latency_buckets')
    @classmethod
    def validate_buckets(cls, v):
        """Validate histogram buckets."""
        if not v:
            raise ValueError("At least one latency bucket required")
        for b in v:
            if b <= 0:
                raise ValueError(f"Latency bucket must be positive, got {b}")
        return sorted(v)

    @field_validator('namespace')
    @classmethod
    def validate_namespace(cls, v):
        if not v.replace('_', '').isalnum():
            raise ValueError("Metrics namespace must be alphanumeric with optional underscores")
        return v


class TracingConfig(BaseModel):
    """OpenTelemetry tracing configuration."""

    enabled: bool = Field(
        default=False,
        description="Emit a span per raw request"
    )

    service_name: str = Field(
        default="rawkv-client",
        description="Service name attached to spans"
    )


class RawClientConfig(BaseModel):
    """
    Complete configuration for a raw client.

    Example usage:
        config = RawClientConfig(
            pd_endpoints=["pd1.example.com:2379", "pd2.example.com:2379"],
            timeout=5.0,
        ).with_security("/etc/ssl/ca.pem", "/etc/ssl/client.pem", "/etc/ssl/client.key")

        client = await RawClient.from_config(config, delegate_factory=factory)
    """

    pd_endpoints: list[str] = Field(
        description="Placement driver endpoints used for cluster discovery"
    )

    timeout: float = Field(
        default=2.0,
        gt=0.0,
        le=300.0,
        description="Per-request timeout in seconds; read only by external execution delegates, the in-memory cluster ignores it"
    )

    connect_timeout: float = Field(
        default=5.0,
        gt=0.0,
        le=300.0,
        description="Timeout for initial cluster discovery in seconds"
    )

    tls: TLSConfig = Field(
        default_factory=TLSConfig,
        description="TLS configuration; read only by external execution delegates, the in-memory cluster ignores it"
    )

    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Metrics configuration"
    )

    tracing: TracingConfig = Field(
        default_factory=TracingConfig,
        description="Tracing configuration"
    )

    model_config = ConfigDict(
        validate_assignment=True
    )

    @field_validator('pd_endpoints')
    @classmethod
    def validate_pd_endpoints(cls, v):
        """Validate endpoints."""
        endpoints = [e.strip() for e in v]
        if not endpoints:
            raise ValueError("At least one endpoint required")
        if any(not e for e in endpoints):
            raise ValueError("Endpoints must not be blank")
        if len(endpoints) == 1:
            logger.debug("Only one endpoint configured; include more to avoid a single point of failure")
        return endpoints

    def with_security(self, ca_path: str, cert_path: str, key_path: str) -> "RawClientConfig":
        """Return a copy of this config using TLS with the given files."""
        tls = TLSConfig(ca_path=ca_path, cert_path=cert_path, key_path=key_path)
        return self.model_copy(update={"tls": tls})

    def with_timeout(self, timeout: float) -> "RawClientConfig":
        """Return a copy of this config with a different request timeout."""
        return RawClientConfig.model_validate({**self.model_dump(), "timeout": timeout})


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def load_config_from_env() -> RawClientConfig:
    """
    Load configuration from environment variables.

    Environment variables:
        RAWKV_PD_ENDPOINTS: Comma-separated list of endpoints
        RAWKV_TIMEOUT: Request timeout in seconds (default: 2.0)
        RAWKV_CONNECT_TIMEOUT: Discovery timeout in seconds (default: 5.0)
        RAWKV_TLS_CA: Path to CA certificate
        RAWKV_TLS_CERT: Path to client certificate
        RAWKV_TLS_KEY: Path to client key
        RAWKV_METRICS_ENABLED: Enable metrics (true/false, default: true)
        RAWKV_TRACING_ENABLED: Enable tracing (true/false, default: false)
        RAWKV_SERVICE_NAME: Service name for spans

    Returns:
        Validated configuration
    """
    endpoints_str = os.getenv("RAWKV_PD_ENDPOINTS", "127.0.0.1:2379")
    endpoints = [e.strip() for e in endpoints_str.split(",") if e.strip()]

    return RawClientConfig(
        pd_endpoints=endpoints,
        timeout=float(os.getenv("RAWKV_TIMEOUT", "2.0")),
        connect_timeout=float(os.getenv("RAWKV_CONNECT_TIMEOUT", "5.0")),
        tls=TLSConfig(
            ca_path=os.getenv("RAWKV_TLS_CA"),
            cert_path=os.getenv("RAWKV_TLS_CERT"),
            key_path=os.getenv("RAWKV_TLS_KEY"),
        ),
        metrics=MetricsConfig(
            enabled=_env_flag("RAWKV_METRICS_ENABLED", "true"),
        ),
        tracing=TracingConfig(
            enabled=_env_flag("RAWKV_TRACING_ENABLED", "false"),
            service_name=os.getenv("RAWKV_SERVICE_NAME", "rawkv-client"),
        ),
    )
