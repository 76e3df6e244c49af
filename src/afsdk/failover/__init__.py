from afsdk.failover.errors import (
    AggregateFailureError,
    AttemptError,
    AttemptTimeoutError,
    ConfigurationError,
    FailoverCancelledError,
    FailoverError,
)
from afsdk.failover.executor import execute_with_failover, log_failover, run_with_failover, validate_failover_config
from afsdk.failover.types import AttemptRecord, Endpoint, FailoverConfig, FailoverResult, sort_endpoints

__all__ = [
    "AggregateFailureError",
    "AttemptError",
    "AttemptRecord",
    "AttemptTimeoutError",
    "ConfigurationError",
    "Endpoint",
    "FailoverCancelledError",
    "FailoverConfig",
    "FailoverError",
    "FailoverResult",
    "execute_with_failover",
    "log_failover",
    "run_with_failover",
    "sort_endpoints",
    "validate_failover_config",
]
