"""Tests for the blocking failover executor."""

from __future__ import annotations

import inspect
import threading
import time
from typing import Any, Dict, List
from unittest.mock import patch

import pytest

from afsdk.failover import (
    AggregateFailureError,
    AttemptError,
    AttemptTimeoutError,
    ConfigurationError,
    Endpoint,
    FailoverCancelledError,
    FailoverConfig,
    log_failover,
    run_with_failover,
)


def _failing_except(good: set[str], calls: List[str]) -> Any:
    def _unit(endpoint: str) -> str:
        calls.append(endpoint)
        if endpoint in good:
            return f"ok:{endpoint}"
        raise ConnectionError(f"unreachable:{endpoint}")

    return _unit


def test_sync_fails_over_in_priority_order() -> None:
    calls: List[str] = []
    config = FailoverConfig(
        endpoints=[Endpoint("E2", priority=2), Endpoint("E1", priority=1)],
        max_retries=2,
        retry_delay_s=0,
    )

    result = run_with_failover(_failing_except({"E2"}, calls), config)

    assert result.endpoint == "E2"
    assert result.attempts == 3
    assert calls == ["E1", "E1", "E2"]


def test_sync_aggregate_failure_lists_sorted_endpoints() -> None:
    config = FailoverConfig(
        endpoints=[Endpoint("B", priority=2), Endpoint("A", priority=1)],
        max_retries=2,
        retry_delay_s=0,
    )

    with pytest.raises(AggregateFailureError) as excinfo:
        run_with_failover(_failing_except(set(), []), config)

    assert excinfo.value.endpoints == ["A", "B"]
    assert excinfo.value.attempts == 4
    assert isinstance(excinfo.value.cause, ConnectionError)


def test_sync_retry_delay_waits_between_retries_only() -> None:
    attempts: Dict[str, int] = {"A": 0}

    def _unit(endpoint: str) -> str:
        attempts[endpoint] += 1
        if attempts[endpoint] < 3:
            raise RuntimeError("flaky")
        return "ok"

    config = FailoverConfig(endpoints=[Endpoint("A")], max_retries=3, retry_delay_s=0.1)
    with patch("afsdk.failover.executor.time.sleep") as mocked_sleep:
        result = run_with_failover(_unit, config)

    assert result.attempts == 3
    assert [call.args[0] for call in mocked_sleep.call_args_list] == [0.1, 0.1]


def test_sync_timeout_abandons_stalled_call() -> None:
    release = threading.Event()

    def _unit(endpoint: str) -> str:
        if endpoint == "stalled":
            release.wait(10)
        return endpoint

    failures: List[BaseException] = []
    config = FailoverConfig(
        endpoints=[Endpoint("stalled", priority=1, timeout_s=0.05), Endpoint("backup", priority=2)],
        retry_delay_s=0,
        on_failure=lambda endpoint, error: failures.append(error),
    )

    start = time.perf_counter()
    try:
        result = run_with_failover(_unit, config)
    finally:
        release.set()

    assert time.perf_counter() - start < 2.0
    assert result.endpoint == "backup"
    assert result.attempts == 2
    assert isinstance(failures[0], AttemptTimeoutError)
    assert failures[0].timeout_s == 0.05


def test_sync_empty_endpoints_raise_configuration_error() -> None:
    calls: List[str] = []
    with pytest.raises(ConfigurationError):
        run_with_failover(_failing_except(set(), calls), FailoverConfig(endpoints=[]))
    assert calls == []


def test_sync_cancel_event_interrupts_delay() -> None:
    cancel = threading.Event()
    calls: List[str] = []
    config = FailoverConfig(
        endpoints=[Endpoint("A", priority=1), Endpoint("B", priority=2)],
        max_retries=2,
        retry_delay_s=30.0,
        on_failure=lambda endpoint, error: cancel.set(),
    )

    start = time.perf_counter()
    with pytest.raises(FailoverCancelledError):
        run_with_failover(_failing_except({"B"}, calls), config, cancel_event=cancel)

    assert time.perf_counter() - start < 5.0
    assert calls == ["A"]


def test_sync_cancel_event_interrupts_in_flight_call() -> None:
    cancel = threading.Event()
    release = threading.Event()

    def _unit(endpoint: str) -> str:
        release.wait(10)
        return endpoint

    timer = threading.Timer(0.05, cancel.set)
    timer.start()
    try:
        with pytest.raises(FailoverCancelledError) as excinfo:
            run_with_failover(_unit, FailoverConfig(endpoints=[Endpoint("A")]), cancel_event=cancel)
    finally:
        release.set()
        timer.cancel()

    assert excinfo.value.endpoint == "A"


def test_sync_cancel_event_passes_through_successful_calls() -> None:
    cancel = threading.Event()
    config = FailoverConfig(endpoints=[Endpoint("A")])

    result = run_with_failover(lambda endpoint: endpoint * 2, config, cancel_event=cancel)

    assert result.data == "AA"


def test_log_failover_hook_logs_warning() -> None:
    config = FailoverConfig(
        endpoints=[Endpoint("https://a.example", priority=1), Endpoint("https://b.example", priority=2)],
        on_failure=log_failover,
    )

    with patch("afsdk.failover.executor.LOGGER") as mocked_logger:
        run_with_failover(_failing_except({"https://b.example"}, []), config)

    messages = [call.args[0] for call in mocked_logger.warning.call_args_list]
    assert len(messages) == 1
    assert "https://a.example" in messages[0]


def test_sync_equal_priorities_keep_input_order() -> None:
    calls: List[str] = []
    config = FailoverConfig(
        endpoints=[Endpoint("A", priority=1), Endpoint("B", priority=1), Endpoint("C", priority=1)],
        retry_delay_s=0,
    )

    with pytest.raises(AggregateFailureError) as excinfo:
        run_with_failover(_failing_except(set(), calls), config)

    assert calls == ["A", "B", "C"]
    assert excinfo.value.endpoints == ["A", "B", "C"]


def test_sync_duplicate_identifiers_are_tried_as_distinct_endpoints() -> None:
    calls: List[str] = []
    config = FailoverConfig(
        endpoints=[Endpoint("X", priority=1), Endpoint("Y", priority=2), Endpoint("X", priority=3)],
        retry_delay_s=0,
    )

    with pytest.raises(AggregateFailureError) as excinfo:
        run_with_failover(_failing_except(set(), calls), config)

    assert calls == ["X", "Y", "X"]
    assert excinfo.value.endpoints == ["X", "Y", "X"]
    assert excinfo.value.attempts == 3


def test_sync_no_delay_between_endpoints_or_after_last_retry() -> None:
    config = FailoverConfig(
        endpoints=[Endpoint("A", priority=1), Endpoint("B", priority=2)],
        max_retries=2,
        retry_delay_s=0.25,
    )
    with patch("afsdk.failover.executor.time.sleep") as mocked_sleep:
        with pytest.raises(AggregateFailureError):
            run_with_failover(_failing_except(set(), []), config)

    assert [call.args[0] for call in mocked_sleep.call_args_list] == [0.25, 0.25]


def test_sync_failure_hook_errors_do_not_change_outcome() -> None:
    def _raising_hook(endpoint: str, error: BaseException) -> None:
        raise RuntimeError("hook exploded")

    def _config(hook: Any) -> FailoverConfig:
        return FailoverConfig(
            endpoints=[Endpoint("A", priority=1), Endpoint("B", priority=2)],
            max_retries=2,
            retry_delay_s=0,
            on_failure=hook,
        )

    quiet = run_with_failover(_failing_except({"B"}, []), _config(None))
    noisy = run_with_failover(_failing_except({"B"}, []), _config(_raising_hook))
    assert quiet == noisy

    with pytest.raises(AggregateFailureError) as excinfo:
        run_with_failover(_failing_except(set(), []), _config(_raising_hook))
    assert isinstance(excinfo.value.cause, ConnectionError)
    assert str(excinfo.value.cause) == "unreachable:B"
    assert "hook exploded" not in str(excinfo.value)


def test_sync_failure_hook_runs_once_per_failed_attempt_in_order() -> None:
    seen: List[tuple[str, int]] = []

    def _hook(endpoint: str, error: BaseException) -> None:
        assert isinstance(error, AttemptError)
        seen.append((endpoint, error.attempt))

    config = FailoverConfig(
        endpoints=[Endpoint("A", priority=1), Endpoint("B", priority=2), Endpoint("C", priority=3)],
        max_retries=2,
        retry_delay_s=0,
        on_failure=_hook,
    )
    result = run_with_failover(_failing_except({"C"}, []), config)

    assert result.attempts == 5
    assert seen == [("A", 1), ("A", 2), ("B", 3), ("B", 4)]


def test_sync_repeated_invocations_produce_identical_shapes() -> None:
    config = FailoverConfig(
        endpoints=[Endpoint("A", priority=1), Endpoint("B", priority=2)],
        max_retries=2,
        retry_delay_s=0,
    )
    first = run_with_failover(_failing_except({"B"}, []), config)
    second = run_with_failover(_failing_except({"B"}, []), config)
    assert first == second

    errors = []
    for _ in range(2):
        with pytest.raises(AggregateFailureError) as excinfo:
            run_with_failover(_failing_except(set(), []), config)
        errors.append((excinfo.value.endpoints, excinfo.value.attempts, str(excinfo.value.cause)))
    assert errors[0] == errors[1]


def test_sync_non_integer_priority_is_rejected_before_any_attempt() -> None:
    calls: List[str] = []
    config = FailoverConfig(endpoints=[Endpoint("A", priority=1), Endpoint("B", priority=None)])

    with pytest.raises(ConfigurationError, match="priority"):
        run_with_failover(_failing_except({"A"}, calls), config)

    assert calls == []


def test_sync_coroutine_hook_is_closed_without_running() -> None:
    returned: List[Any] = []
    ran: List[str] = []

    async def _async_hook(endpoint: str, error: BaseException) -> None:
        ran.append(endpoint)

    def _hook(endpoint: str, error: BaseException) -> Any:
        coro = _async_hook(endpoint, error)
        returned.append(coro)
        return coro

    config = FailoverConfig(
        endpoints=[Endpoint("A", priority=1), Endpoint("B", priority=2)],
        retry_delay_s=0,
        on_failure=_hook,
    )
    with patch("afsdk.failover.executor.LOGGER") as mocked_logger:
        result = run_with_failover(_failing_except({"B"}, []), config)

    assert result.endpoint == "B"
    assert result.attempts == 2
    assert ran == []
    assert [inspect.getcoroutinestate(coro) for coro in returned] == [inspect.CORO_CLOSED]
    messages = [call.args[0] for call in mocked_logger.warning.call_args_list]
    assert any("synchronous" in message for message in messages)
