"""Default endpoint rankings for platform gateways and APIs.

"""

from __future__ import annotations

from typing import Any, List, Sequence, Tuple

from afsdk.failover.types import Endpoint

DEFAULT_IPFS_GATEWAYS: Tuple[Endpoint, ...] = (
    Endpoint("https://ipfs.alternatefutures.ai", priority=1, timeout_s=10.0),
    Endpoint("https://ipfs.io", priority=2, timeout_s=15.0),
    Endpoint("https://dweb.link", priority=3, timeout_s=15.0),
    Endpoint("https://cloudflare-ipfs.com", priority=4, timeout_s=15.0),
)

# Backup GraphQL endpoints go here once they are deployed.
DEFAULT_GRAPHQL_ENDPOINTS: Tuple[Endpoint, ...] = (
    Endpoint("https://graphql.service.alternatefutures.ai/graphql", priority=1, timeout_s=10.0),
)

DEFAULT_ARWEAVE_GATEWAYS: Tuple[Endpoint, ...] = (
    Endpoint("https://arweave.net", priority=1, timeout_s=15.0),
    Endpoint("https://ar-io.net", priority=2, timeout_s=15.0),
)

DEFAULT_ENDPOINTS = {
    "ipfs": DEFAULT_IPFS_GATEWAYS,
    "graphql": DEFAULT_GRAPHQL_ENDPOINTS,
    "arweave": DEFAULT_ARWEAVE_GATEWAYS,
}


def parse_endpoints(raw: Sequence[Any]) -> List[Endpoint]:
    """Parse endpoints from config values.

    Each item is an :class:`Endpoint`, a mapping accepted by :meth:`Endpoint.from_dict`,
    or a bare URL string. Items without a priority are ranked by list position (1-based).

    Raises:
        ValueError: Raised when an item has an unsupported type or non-numeric fields.

    """
    endpoints: List[Endpoint] = []
    for index, item in enumerate(raw or [], start=1):
        if isinstance(item, Endpoint):
            endpoints.append(item)
        elif isinstance(item, str):
            endpoints.append(Endpoint(item.strip(), priority=index))
        elif isinstance(item, dict):
            endpoints.append(Endpoint.from_dict(item, default_priority=index))
        else:
            raise ValueError(f"Unsupported endpoint entry: {item!r}")
    return endpoints
