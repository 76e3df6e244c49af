"""Public package entrypoints for afsdk.

The failover executor is the core; gateway and GraphQL clients are thin callers of it.
"""

from __future__ import annotations

from afsdk.clients import ArweaveGatewayClient, GatewayClient, GraphQLResponseError, GraphQLTransport
from afsdk.endpoints import DEFAULT_ARWEAVE_GATEWAYS, DEFAULT_GRAPHQL_ENDPOINTS, DEFAULT_IPFS_GATEWAYS
from afsdk.failover import (
    AggregateFailureError,
    AttemptError,
    AttemptTimeoutError,
    ConfigurationError,
    Endpoint,
    FailoverCancelledError,
    FailoverConfig,
    FailoverError,
    FailoverResult,
    execute_with_failover,
    log_failover,
    run_with_failover,
)

__all__ = [
    "AggregateFailureError",
    "ArweaveGatewayClient",
    "AttemptError",
    "AttemptTimeoutError",
    "ConfigurationError",
    "DEFAULT_ARWEAVE_GATEWAYS",
    "DEFAULT_GRAPHQL_ENDPOINTS",
    "DEFAULT_IPFS_GATEWAYS",
    "Endpoint",
    "FailoverCancelledError",
    "FailoverConfig",
    "FailoverError",
    "FailoverResult",
    "GatewayClient",
    "GraphQLResponseError",
    "GraphQLTransport",
    "execute_with_failover",
    "log_failover",
    "run_with_failover",
]
__version__ = "0.1.0"
