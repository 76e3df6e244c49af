"""Failover executor.

Runs a caller-supplied unit of work against a ranked list of endpoints, one
attempt in flight at a time, retrying within an endpoint and failing over to the
next one until an attempt succeeds or every endpoint is exhausted.

Two entry points share the same semantics:

- :func:`execute_with_failover` for asyncio callers.
- :func:`run_with_failover` for blocking callers; timeouts are raced on a worker thread.

A timed-out attempt is discarded, never awaited. Under asyncio the stalled task
is asked to cancel; a stalled worker thread keeps running in the background until
the unit of work returns. Cancelling work inside the unit of work is the caller's job.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Awaitable, Callable, List, Optional, TypeVar, Union

from afsdk.failover.errors import (
    AggregateFailureError,
    AttemptError,
    AttemptTimeoutError,
    ConfigurationError,
    FailoverCancelledError,
)
from afsdk.failover.types import (
    AttemptRecord,
    Endpoint,
    FailoverConfig,
    FailoverResult,
    FailureHook,
    sort_endpoints,
)

T = TypeVar("T")

LOGGER = logging.getLogger("afsdk.failover")

_CANCEL_POLL_INTERVAL_S = 0.05


async def execute_with_failover(
    unit_of_work: Callable[[str], Union[Awaitable[T], T]],
    config: FailoverConfig,
    *,
    cancel_event: Optional[asyncio.Event] = None,
) -> FailoverResult[T]:
    """Execute ``unit_of_work`` with endpoint failover.

    Args:
        unit_of_work: Callable taking an endpoint identifier and returning an awaitable (or a plain value).
            Only awaitables are bounded by the endpoint timeout.
        config (FailoverConfig): Endpoints, retry policy and failure hook.
        cancel_event (asyncio.Event | None): When set, aborts the current wait and the loop.

    Returns:
        FailoverResult[T]: Value, serving endpoint and total attempts.

    Raises:
        ConfigurationError: Raised before any attempt when ``config`` is invalid.
        AggregateFailureError: Raised after every endpoint and retry has failed.
        FailoverCancelledError: Raised when ``cancel_event`` fires.

    Examples:
        >>> result = await execute_with_failover(fetch_cid, FailoverConfig(list(DEFAULT_IPFS_GATEWAYS)))
        >>> result.endpoint
        'https://ipfs.alternatefutures.ai'

    """
    endpoints = validate_failover_config(config)
    records: List[AttemptRecord] = []
    last_error: Optional[AttemptError] = None
    total_attempts = 0

    for endpoint in endpoints:
        for retry in range(config.max_retries):
            if cancel_event is not None and cancel_event.is_set():
                raise FailoverCancelledError(endpoint.identifier, total_attempts)
            total_attempts += 1
            LOGGER.debug(f"[failover] attempt={total_attempts} endpoint={endpoint.identifier} retry={retry}")
            try:
                data = await _attempt_async(unit_of_work, endpoint, total_attempts, cancel_event)
            except AttemptError as err:
                last_error = err
                records.append(AttemptRecord(endpoint.identifier, total_attempts, False, err.cause))
                LOGGER.info(f"[failover] attempt failed endpoint={endpoint.identifier} attempt={total_attempts}: {err}")
                _notify_failure(config.on_failure, endpoint.identifier, err)
                if retry < config.max_retries - 1:
                    await _sleep_async(config.retry_delay_s, cancel_event, endpoint.identifier, total_attempts)
                continue

            records.append(AttemptRecord(endpoint.identifier, total_attempts, True))
            LOGGER.info(f"[failover] success endpoint={endpoint.identifier} attempts={total_attempts}")
            return FailoverResult(data=data, endpoint=endpoint.identifier, attempts=total_attempts, records=records)

    failure = _aggregate_failure(endpoints, last_error, total_attempts, records)
    raise failure from failure.cause


def run_with_failover(
    unit_of_work: Callable[[str], T],
    config: FailoverConfig,
    *,
    cancel_event: Optional[threading.Event] = None,
) -> FailoverResult[T]:
    """Blocking twin of :func:`execute_with_failover`.

    Attempts against an endpoint with a timeout, or any attempt when ``cancel_event``
    is given, run on a single-use worker thread that is abandoned rather than joined
    once the deadline passes or cancellation fires.
    """
    endpoints = validate_failover_config(config)
    records: List[AttemptRecord] = []
    last_error: Optional[AttemptError] = None
    total_attempts = 0

    for endpoint in endpoints:
        for retry in range(config.max_retries):
            if cancel_event is not None and cancel_event.is_set():
                raise FailoverCancelledError(endpoint.identifier, total_attempts)
            total_attempts += 1
            LOGGER.debug(f"[failover] attempt={total_attempts} endpoint={endpoint.identifier} retry={retry}")
            try:
                data = _attempt_sync(unit_of_work, endpoint, total_attempts, cancel_event)
            except AttemptError as err:
                last_error = err
                records.append(AttemptRecord(endpoint.identifier, total_attempts, False, err.cause))
                LOGGER.info(f"[failover] attempt failed endpoint={endpoint.identifier} attempt={total_attempts}: {err}")
                _notify_failure(config.on_failure, endpoint.identifier, err)
                if retry < config.max_retries - 1:
                    _sleep_sync(config.retry_delay_s, cancel_event, endpoint.identifier, total_attempts)
                continue

            records.append(AttemptRecord(endpoint.identifier, total_attempts, True))
            LOGGER.info(f"[failover] success endpoint={endpoint.identifier} attempts={total_attempts}")
            return FailoverResult(data=data, endpoint=endpoint.identifier, attempts=total_attempts, records=records)

    failure = _aggregate_failure(endpoints, last_error, total_attempts, records)
    raise failure from failure.cause


def validate_failover_config(config: FailoverConfig) -> List[Endpoint]:
    """Validate ``config`` and return its endpoints in try order.

    Raises:
        ConfigurationError: Raised on an empty endpoint list, ``max_retries < 1``,
            a negative ``retry_delay_s``, a blank identifier, a non-integer priority
            or a non-positive timeout.

    """
    endpoints = list(config.endpoints or [])
    if not endpoints:
        raise ConfigurationError("Failover requires at least one endpoint.")

    max_retries = config.max_retries
    if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 1:
        raise ConfigurationError(f"max_retries must be an integer >= 1, got {max_retries!r}.")

    delay = config.retry_delay_s
    if isinstance(delay, bool) or not isinstance(delay, (int, float)) or math.isnan(delay) or delay < 0:
        raise ConfigurationError(f"retry_delay_s must be >= 0, got {delay!r}.")

    for endpoint in endpoints:
        if not isinstance(endpoint, Endpoint):
            raise ConfigurationError(f"Expected Endpoint, got {type(endpoint).__name__}.")
        if not isinstance(endpoint.identifier, str) or not endpoint.identifier.strip():
            raise ConfigurationError("Endpoint identifier must be a non-empty string.")
        if isinstance(endpoint.priority, bool) or not isinstance(endpoint.priority, int):
            raise ConfigurationError(
                f"Endpoint `{endpoint.identifier}` priority must be an integer, got {endpoint.priority!r}."
            )
        timeout = endpoint.timeout_s
        if timeout is not None and (isinstance(timeout, bool) or not timeout > 0):
            raise ConfigurationError(f"Endpoint `{endpoint.identifier}` timeout must be > 0, got {timeout!r}.")

    return sort_endpoints(endpoints)


def log_failover(endpoint: str, error: BaseException) -> None:
    """Failure hook that logs a warning for every failed attempt."""
    LOGGER.warning(f"[failover] endpoint {endpoint} failed, trying next: {error}")


async def _attempt_async(
    unit_of_work: Callable[[str], Any],
    endpoint: Endpoint,
    attempt: int,
    cancel_event: Optional[asyncio.Event],
) -> Any:
    try:
        outcome = unit_of_work(endpoint.identifier)
    except Exception as err:
        raise AttemptError(endpoint.identifier, attempt, err) from err
    if not inspect.isawaitable(outcome):
        return outcome

    if endpoint.timeout_s is None and cancel_event is None:
        try:
            return await outcome
        except Exception as err:
            raise AttemptError(endpoint.identifier, attempt, err) from err

    task = asyncio.ensure_future(outcome)
    waiters = {task}
    cancel_waiter: Optional[asyncio.Future[Any]] = None
    if cancel_event is not None:
        cancel_waiter = asyncio.ensure_future(cancel_event.wait())
        waiters.add(cancel_waiter)

    try:
        done, _ = await asyncio.wait(waiters, timeout=endpoint.timeout_s, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        _abandon(task)
        raise
    finally:
        if cancel_waiter is not None and not cancel_waiter.done():
            cancel_waiter.cancel()

    if task in done:
        try:
            return task.result()
        except (Exception, asyncio.CancelledError) as err:
            raise AttemptError(endpoint.identifier, attempt, err) from err

    _abandon(task)
    if cancel_waiter is not None and cancel_waiter in done:
        raise FailoverCancelledError(endpoint.identifier, attempt)
    raise AttemptTimeoutError(endpoint.identifier, attempt, float(endpoint.timeout_s or 0))


def _attempt_sync(
    unit_of_work: Callable[[str], Any],
    endpoint: Endpoint,
    attempt: int,
    cancel_event: Optional[threading.Event],
) -> Any:
    if endpoint.timeout_s is None and cancel_event is None:
        try:
            return unit_of_work(endpoint.identifier)
        except Exception as err:
            raise AttemptError(endpoint.identifier, attempt, err) from err

    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="afsdk-failover")
    try:
        future = pool.submit(unit_of_work, endpoint.identifier)
        deadline = None if endpoint.timeout_s is None else time.monotonic() + endpoint.timeout_s
        while True:
            wait_s = _CANCEL_POLL_INTERVAL_S if cancel_event is not None else None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                wait_s = remaining if wait_s is None else min(wait_s, remaining)
            done, _ = wait([future], timeout=wait_s)
            if done:
                try:
                    return future.result()
                except Exception as err:
                    raise AttemptError(endpoint.identifier, attempt, err) from err
            if cancel_event is not None and cancel_event.is_set():
                future.cancel()
                raise FailoverCancelledError(endpoint.identifier, attempt)
        future.cancel()
        raise AttemptTimeoutError(endpoint.identifier, attempt, float(endpoint.timeout_s or 0))
    finally:
        pool.shutdown(wait=False)


async def _sleep_async(delay_s: float, cancel_event: Optional[asyncio.Event], endpoint: str, attempts: int) -> None:
    if cancel_event is None:
        if delay_s > 0:
            await asyncio.sleep(delay_s)
        return
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay_s)
    except asyncio.TimeoutError:
        return
    raise FailoverCancelledError(endpoint, attempts)


def _sleep_sync(delay_s: float, cancel_event: Optional[threading.Event], endpoint: str, attempts: int) -> None:
    if cancel_event is None:
        if delay_s > 0:
            time.sleep(delay_s)
        return
    if cancel_event.wait(delay_s):
        raise FailoverCancelledError(endpoint, attempts)


def _notify_failure(hook: Optional[FailureHook], endpoint: str, error: AttemptError) -> None:
    if hook is None:
        return
    try:
        outcome = hook(endpoint, error)
    except Exception as hook_err:
        LOGGER.warning(f"[failover] on_failure hook raised for endpoint={endpoint}: {hook_err}")
        return
    if inspect.iscoroutine(outcome):
        # Hooks are synchronous; a returned coroutine is closed, never scheduled.
        outcome.close()
        LOGGER.warning(
            f"[failover] on_failure hook returned a coroutine for endpoint={endpoint}; hooks must be synchronous"
        )


def _abandon(task: "asyncio.Future[Any]") -> None:
    # Best-effort cancel; the result is consumed so the loop does not warn about it.
    task.cancel()
    task.add_done_callback(_consume_outcome)


def _consume_outcome(task: "asyncio.Future[Any]") -> None:
    if not task.cancelled():
        task.exception()


def _aggregate_failure(
    endpoints: List[Endpoint],
    last_error: Optional[AttemptError],
    total_attempts: int,
    records: List[AttemptRecord],
) -> AggregateFailureError:
    tried = [endpoint.identifier for endpoint in endpoints]
    LOGGER.error(f"[failover] all endpoints failed endpoints={len(tried)} attempts={total_attempts}: {last_error}")
    return AggregateFailureError(tried, last_error, total_attempts, records)
