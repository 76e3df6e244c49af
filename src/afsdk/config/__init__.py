from afsdk.config.defaults import DEFAULT_CONFIG, ENDPOINT_SECTIONS
from afsdk.config.loader import (
    build_failover_config,
    load_config,
    resolve_log_level,
    resolve_request_timeout,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ENDPOINT_SECTIONS",
    "load_config",
    "build_failover_config",
    "resolve_log_level",
    "resolve_request_timeout",
]
