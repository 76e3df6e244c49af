from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, Dict, List, Optional

import requests

from afsdk.config.loader import build_failover_config, resolve_request_timeout
from afsdk.endpoints import DEFAULT_GRAPHQL_ENDPOINTS
from afsdk.failover import (
    FailoverConfig,
    FailoverResult,
    execute_with_failover,
    log_failover,
    run_with_failover,
)

LOGGER = logging.getLogger("afsdk.graphql")


class GraphQLResponseError(RuntimeError):
    def __init__(self, errors: List[Any]) -> None:
        messages = [
            str(item.get("message") or item) if isinstance(item, dict) else str(item)
            for item in errors
        ]
        super().__init__("GraphQL request returned errors: " + "; ".join(messages))
        self.errors = errors


class GraphQLTransport:
    """Posts caller-built GraphQL documents to the first healthy API endpoint.

    Query construction and authentication stay with the caller; ``headers`` are
    sent verbatim with every request.
    """

    def __init__(
        self,
        failover_config: Optional[FailoverConfig] = None,
        headers: Optional[Dict[str, str]] = None,
        request_timeout_s: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.failover_config = failover_config or FailoverConfig(
            endpoints=list(DEFAULT_GRAPHQL_ENDPOINTS),
            on_failure=log_failover,
        )
        self.headers = dict(headers or {})
        self.request_timeout_s = request_timeout_s
        self.session = session or requests.Session()

    @classmethod
    def from_config(
        cls,
        cfg: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> "GraphQLTransport":
        return cls(
            failover_config=build_failover_config(cfg, "graphql", on_failure=log_failover),
            headers=headers,
            request_timeout_s=resolve_request_timeout(cfg, "graphql"),
            session=session,
        )

    def execute(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        operation_name: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> FailoverResult[Dict[str, Any]]:
        payload = self._build_payload(query, variables, operation_name)
        start = time.perf_counter()
        result = run_with_failover(
            lambda endpoint: self._post(endpoint, payload),
            self.failover_config,
            cancel_event=cancel_event,
        )
        self._log_result(operation_name, result, start)
        return result

    async def aexecute(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        operation_name: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> FailoverResult[Dict[str, Any]]:
        payload = self._build_payload(query, variables, operation_name)
        start = time.perf_counter()
        result = await execute_with_failover(
            lambda endpoint: asyncio.to_thread(self._post, endpoint, payload),
            self.failover_config,
            cancel_event=cancel_event,
        )
        self._log_result(operation_name, result, start)
        return result

    def _build_payload(
        self,
        query: str,
        variables: Optional[Dict[str, Any]],
        operation_name: Optional[str],
    ) -> Dict[str, Any]:
        if not (query or "").strip():
            raise ValueError("GraphQL query document is required.")
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables
        if operation_name:
            payload["operationName"] = operation_name
        LOGGER.info(
            f"[graphql] request operation={operation_name or '-'} "
            f"variables={len(variables) if variables else 0}"
        )
        return payload

    def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json", **self.headers}
        response = self.session.post(endpoint, json=payload, headers=headers, timeout=self.request_timeout_s)
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise GraphQLResponseError([f"unexpected response body of type {type(body).__name__}"])
        errors = body.get("errors")
        if errors:
            raise GraphQLResponseError(errors if isinstance(errors, list) else [errors])
        data = body.get("data")
        return data if isinstance(data, dict) else {}

    def _log_result(self, operation_name: Optional[str], result: FailoverResult[Dict[str, Any]], start: float) -> None:
        LOGGER.info(
            f"[graphql] response operation={operation_name or '-'} endpoint={result.endpoint} "
            f"attempts={result.attempts} elapsed={time.perf_counter() - start:.2f}s"
        )
