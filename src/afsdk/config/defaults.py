"""Default configuration schema for afsdk.

"""

from __future__ import annotations

from typing import Any, Dict

from afsdk.endpoints import DEFAULT_ARWEAVE_GATEWAYS, DEFAULT_GRAPHQL_ENDPOINTS, DEFAULT_IPFS_GATEWAYS

DEFAULT_CONFIG: Dict[str, Any] = {
    "failover": {
        "max_retries": 1,
        "retry_delay_s": 1.0,
    },
    "ipfs": {
        "endpoints": [endpoint.to_dict() for endpoint in DEFAULT_IPFS_GATEWAYS],
        "request_timeout_s": 30.0,
    },
    "arweave": {
        "endpoints": [endpoint.to_dict() for endpoint in DEFAULT_ARWEAVE_GATEWAYS],
        "request_timeout_s": 30.0,
    },
    "graphql": {
        "endpoints": [endpoint.to_dict() for endpoint in DEFAULT_GRAPHQL_ENDPOINTS],
        "request_timeout_s": 30.0,
    },
    "logging": {
        "dir": "",
        "level": "INFO",
    },
}

ENDPOINT_SECTIONS = ("ipfs", "arweave", "graphql")
