"""Failover data types.

"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")

FailureHook = Callable[[str, BaseException], Any]


@dataclass(frozen=True)
class Endpoint:
    """Candidate destination for a unit of work.

    Args:
        identifier (str): URL or name passed verbatim to the unit of work.
        priority (int): Lower values are tried first; ties keep input order.
        timeout_s (float | None): Per-attempt deadline in seconds, or ``None`` for no deadline.

    Examples:
        >>> from afsdk.failover.types import Endpoint
        >>> Endpoint("https://ipfs.io", priority=2, timeout_s=15.0)
        Endpoint(identifier='https://ipfs.io', priority=2, timeout_s=15.0)

    """
    identifier: str
    priority: int = 0
    timeout_s: float | None = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], default_priority: int = 0) -> "Endpoint":
        """Build an endpoint from a config mapping.

        Accepts ``url``, ``identifier`` or ``name`` for the identifier and either
        ``timeout`` (seconds) or ``timeout_ms`` (milliseconds).

        Args:
            raw (Dict[str, Any]): Endpoint mapping from YAML, JSON or env.
            default_priority (int): Priority used when the mapping has none.

        Returns:
            Endpoint: Parsed endpoint.

        Raises:
            ValueError: Raised when the priority or timeout is not numeric.

        """
        identifier = str(raw.get("url") or raw.get("identifier") or raw.get("name") or "").strip()
        priority = raw.get("priority")
        timeout: Optional[float] = None
        if raw.get("timeout") not in {None, ""}:
            timeout = float(raw["timeout"])
        elif raw.get("timeout_ms") not in {None, ""}:
            timeout = float(raw["timeout_ms"]) / 1000.0
        return cls(
            identifier=identifier,
            priority=int(priority) if priority not in {None, ""} else default_priority,
            timeout_s=timeout,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"url": self.identifier, "priority": self.priority}
        if self.timeout_s is not None:
            payload["timeout"] = self.timeout_s
        return payload


@dataclass
class FailoverConfig:
    """Per-invocation failover configuration.

    Args:
        endpoints (Sequence[Endpoint]): Candidate endpoints, in any order.
        max_retries (int): Attempts per endpoint before failing over (1 = no retry).
        retry_delay_s (float): Wait between retries on the same endpoint, never between endpoints.
        on_failure (FailureHook | None): Hook called once per failed attempt with the endpoint
            identifier and the :class:`~afsdk.failover.errors.AttemptError`. Errors it raises are swallowed.
            The hook must be synchronous; a coroutine it returns is closed without being awaited.

    Preconditions / Invariants:
        - ``endpoints`` non-empty, ``max_retries >= 1`` and ``retry_delay_s >= 0``; checked by the executor.
        - The unit of work must be safe to retry; the executor does not enforce idempotency.

    """
    endpoints: Sequence[Endpoint]
    max_retries: int = 1
    retry_delay_s: float = 1.0
    on_failure: Optional[FailureHook] = None


@dataclass(frozen=True)
class AttemptRecord:
    endpoint: str
    attempt: int
    ok: bool
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class FailoverResult(Generic[T]):
    """Successful failover outcome.

    Attributes:
        data: Value returned by the unit of work.
        endpoint (str): Identifier of the endpoint that produced ``data``.
        attempts (int): Attempts consumed across all endpoints, including the successful one.
        records (List[AttemptRecord]): Per-attempt records, excluded from equality.

    """
    data: T
    endpoint: str
    attempts: int
    records: List[AttemptRecord] = field(default_factory=list, compare=False, repr=False)


def sort_endpoints(endpoints: Sequence[Endpoint]) -> List[Endpoint]:
    # sorted() is stable, so equal priorities keep input order.
    return sorted(endpoints, key=lambda endpoint: endpoint.priority)
