from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, Dict, Optional, Sequence

import requests

from afsdk.config.loader import build_failover_config, resolve_request_timeout
from afsdk.endpoints import DEFAULT_ARWEAVE_GATEWAYS, DEFAULT_IPFS_GATEWAYS
from afsdk.failover import (
    Endpoint,
    FailoverConfig,
    FailoverResult,
    execute_with_failover,
    log_failover,
    run_with_failover,
)

LOGGER = logging.getLogger("afsdk.gateway")


class GatewayClient:
    """Fetches content-addressed data from the first reachable IPFS gateway."""

    section = "ipfs"
    path_prefix = "ipfs"
    default_gateways: Sequence[Endpoint] = DEFAULT_IPFS_GATEWAYS

    def __init__(
        self,
        failover_config: Optional[FailoverConfig] = None,
        request_timeout_s: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.failover_config = failover_config or FailoverConfig(
            endpoints=list(self.default_gateways),
            on_failure=log_failover,
        )
        self.request_timeout_s = request_timeout_s
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], session: Optional[requests.Session] = None) -> "GatewayClient":
        return cls(
            failover_config=build_failover_config(cfg, cls.section, on_failure=log_failover),
            request_timeout_s=resolve_request_timeout(cfg, cls.section),
            session=session,
        )

    def content_url(self, gateway: str, content_id: str, path: str = "") -> str:
        parts = [gateway.rstrip("/")]
        if self.path_prefix:
            parts.append(self.path_prefix)
        parts.append(content_id.strip().strip("/"))
        if path.strip("/"):
            parts.append(path.strip("/"))
        return "/".join(parts)

    def fetch(
        self,
        content_id: str,
        path: str = "",
        cancel_event: Optional[threading.Event] = None,
    ) -> FailoverResult[bytes]:
        self._require_content_id(content_id)
        start = time.perf_counter()
        LOGGER.info(f"[gateway] fetch id={content_id} gateways={len(self.failover_config.endpoints)}")
        result = run_with_failover(
            lambda gateway: self._get(gateway, content_id, path),
            self.failover_config,
            cancel_event=cancel_event,
        )
        self._log_result(content_id, result, start)
        return result

    async def afetch(
        self,
        content_id: str,
        path: str = "",
        cancel_event: Optional[asyncio.Event] = None,
    ) -> FailoverResult[bytes]:
        self._require_content_id(content_id)
        start = time.perf_counter()
        LOGGER.info(f"[gateway] fetch id={content_id} gateways={len(self.failover_config.endpoints)}")
        result = await execute_with_failover(
            lambda gateway: asyncio.to_thread(self._get, gateway, content_id, path),
            self.failover_config,
            cancel_event=cancel_event,
        )
        self._log_result(content_id, result, start)
        return result

    def _get(self, gateway: str, content_id: str, path: str) -> bytes:
        response = self.session.get(self.content_url(gateway, content_id, path), timeout=self.request_timeout_s)
        response.raise_for_status()
        return response.content

    def _require_content_id(self, content_id: str) -> None:
        if not str(content_id or "").strip().strip("/"):
            raise ValueError("A content identifier is required.")

    def _log_result(self, content_id: str, result: FailoverResult[bytes], start: float) -> None:
        LOGGER.info(
            f"[gateway] fetched id={content_id} gateway={result.endpoint} bytes={len(result.data)} "
            f"attempts={result.attempts} elapsed={time.perf_counter() - start:.2f}s"
        )


class ArweaveGatewayClient(GatewayClient):
    """Same failover fetch over Arweave gateways, addressed as ``{gateway}/{tx_id}``."""

    section = "arweave"
    path_prefix = ""
    default_gateways = DEFAULT_ARWEAVE_GATEWAYS
