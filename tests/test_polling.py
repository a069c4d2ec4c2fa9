"""Tests for bounded predicate polling."""

from __future__ import annotations

import pytest

from ccm_harness.errors import ConditionTimeoutError, ReadinessTimeoutError
from ccm_harness.polling import CQL_LISTENING, LogPatternPredicate, PollSpec, wait_until


class Counter:
    """Predicate that becomes true on a given evaluation (never when None)."""

    def __init__(self, true_on: int | None = None) -> None:
        self.true_on = true_on
        self.calls = 0

    def __call__(self) -> bool:
        self.calls += 1
        return self.true_on is not None and self.calls >= self.true_on


def test_false_predicate_is_evaluated_exactly_max_attempts(sleeps: list[float]) -> None:
    """A never-true predicate gets N evaluations and N-1 sleeps, then times out."""
    predicate = Counter()

    with pytest.raises(ConditionTimeoutError) as excinfo:
        wait_until(predicate, delay=0.5, max_attempts=5, description="never", sleep=sleeps.append)

    assert predicate.calls == 5
    assert sleeps == [0.5] * 4
    assert excinfo.value.max_attempts == 5
    assert "never" in str(excinfo.value)


def test_true_on_first_evaluation_does_not_sleep(sleeps: list[float]) -> None:
    """An immediately true predicate returns without any sleep."""
    predicate = Counter(true_on=1)

    wait_until(predicate, delay=1.0, max_attempts=3, sleep=sleeps.append)

    assert predicate.calls == 1
    assert sleeps == []


def test_stops_at_first_true(sleeps: list[float]) -> None:
    """Polling stops on the evaluation that turns true."""
    predicate = Counter(true_on=3)

    wait_until(predicate, delay=2.0, max_attempts=10, sleep=sleeps.append)

    assert predicate.calls == 3
    assert sleeps == [2.0, 2.0]


def test_predicate_exception_propagates_without_retry(sleeps: list[float]) -> None:
    """Errors from the predicate surface immediately."""
    calls = []

    def broken() -> bool:
        calls.append(1)
        raise LookupError("showlog failed")

    with pytest.raises(LookupError):
        wait_until(broken, delay=1.0, max_attempts=5, sleep=sleeps.append)

    assert len(calls) == 1
    assert sleeps == []


def test_each_run_starts_a_fresh_counter(sleeps: list[float]) -> None:
    """Running the same poll twice evaluates every attempt both times."""
    predicate = Counter()
    poll = PollSpec(predicate, delay=0.1, max_attempts=3)

    for _ in range(2):
        with pytest.raises(ConditionTimeoutError):
            poll.run(sleep=sleeps.append)

    assert predicate.calls == 6


def test_custom_error_class(sleeps: list[float]) -> None:
    """The timeout error class is selectable."""
    with pytest.raises(ReadinessTimeoutError):
        PollSpec(Counter(), delay=0, max_attempts=2).run(sleep=sleeps.append, error=ReadinessTimeoutError)


def test_timeout_message_defaults_to_predicate_repr(sleeps: list[float]) -> None:
    """Without a description the predicate repr names the condition."""
    predicate = Counter()

    with pytest.raises(ConditionTimeoutError) as excinfo:
        PollSpec(predicate, delay=0, max_attempts=1).run(sleep=sleeps.append)

    assert repr(predicate) in str(excinfo.value)


@pytest.mark.parametrize(("delay", "max_attempts"), [(1.0, 0), (1.0, -3), (-0.5, 3)])
def test_invalid_bounds_are_rejected(delay: float, max_attempts: int) -> None:
    """Attempts below one or negative delays are refused."""
    with pytest.raises(ValueError):
        PollSpec(Counter(), delay=delay, max_attempts=max_attempts)


def test_cql_listening_matches_case_insensitively() -> None:
    """The CQL marker is found anywhere in the log regardless of case."""
    log = "INFO stuff\nINFO  [main] starting LISTENING for cql clients on /127.0.0.1:9042\n"

    assert CQL_LISTENING(log)
    assert not CQL_LISTENING("INFO  [main] Starting listening for Thrift clients\n")


def test_log_pattern_predicate_repr() -> None:
    """The pattern shows up in the predicate repr."""
    assert "Listening" in repr(LogPatternPredicate("Listening"))
