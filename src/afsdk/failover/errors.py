"""Failover error hierarchy.

"""

from __future__ import annotations

from typing import List, Optional, Sequence

from afsdk.failover.types import AttemptRecord


class FailoverError(Exception):
    """Base class for every error raised by the failover executor."""


class ConfigurationError(FailoverError, ValueError):
    """Raised before any attempt when the failover configuration is invalid."""


class AttemptError(FailoverError):
    """Failure of one unit-of-work invocation against one endpoint.

    Args:
        endpoint (str): Identifier of the endpoint that failed.
        attempt (int): 1-based attempt number across the whole invocation.
        cause (BaseException): Underlying error raised by the unit of work.
    """

    def __init__(self, endpoint: str, attempt: int, cause: BaseException, message: str = "") -> None:
        super().__init__(message or f"Attempt {attempt} against {endpoint} failed: {cause}")
        self.endpoint = endpoint
        self.attempt = attempt
        self.cause = cause


class AttemptTimeoutError(AttemptError):
    def __init__(self, endpoint: str, attempt: int, timeout_s: float) -> None:
        cause = TimeoutError(f"Request timeout after {timeout_s:g}s")
        super().__init__(endpoint, attempt, cause, message=f"Request timeout after {timeout_s:g}s ({endpoint})")
        self.timeout_s = timeout_s


class AggregateFailureError(FailoverError):
    """Raised once every endpoint and retry combination has failed.

    Attributes:
        endpoints (List[str]): Identifiers of the endpoints tried, in try order, once per endpoint.
        last_error (Optional[AttemptError]): The most recent attempt failure.
        cause (Optional[BaseException]): Underlying error of ``last_error``.
        attempts (int): Total number of attempts consumed.
        records (List[AttemptRecord]): Ephemeral per-attempt records.
    """

    def __init__(
        self,
        endpoints: Sequence[str],
        last_error: Optional[AttemptError],
        attempts: int,
        records: Sequence[AttemptRecord] = (),
    ) -> None:
        super().__init__(f"All endpoints failed after {attempts} attempts")
        self.endpoints: List[str] = list(endpoints)
        self.last_error = last_error
        self.cause = last_error.cause if last_error is not None else None
        self.attempts = attempts
        self.records: List[AttemptRecord] = list(records)


class FailoverCancelledError(FailoverError):
    """Raised when the caller's cancellation signal interrupts the failover loop."""

    def __init__(self, endpoint: str = "", attempts: int = 0) -> None:
        where = f" at {endpoint}" if endpoint else ""
        super().__init__(f"Failover cancelled{where} after {attempts} attempts")
        self.endpoint = endpoint
        self.attempts = attempts
