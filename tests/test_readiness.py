"""Tests for the log-scraping readiness detector."""

from __future__ import annotations

import pytest

from ccm_harness.ccm import CcmTool
from ccm_harness.errors import ProcessFailure, ReadinessTimeoutError
from ccm_harness.polling import LogPatternPredicate
from ccm_harness.readiness import ReadinessDetector

from .conftest import READY_LOG, FakeRunner, failure


def test_is_ready_reads_the_node_log(fake_runner: FakeRunner) -> None:
    """One check runs showlog on the requested node."""
    fake_runner.script(("ccm", "node2", "showlog"), READY_LOG)
    detector = ReadinessDetector(CcmTool(fake_runner))

    assert detector.is_ready(2)
    assert fake_runner.commands() == [("node2", "showlog")]


def test_not_ready_without_marker(fake_runner: FakeRunner) -> None:
    """A log without the marker is not ready."""
    fake_runner.script(("ccm", "node1", "showlog"), "INFO  [main] Loading settings\n")

    assert not ReadinessDetector(CcmTool(fake_runner)).is_ready()


def test_wait_polls_until_marker(fake_runner: FakeRunner, sleeps: list[float]) -> None:
    """Waiting stops on the first log containing the marker."""
    fake_runner.script(("ccm", "node1", "showlog"), "", "", READY_LOG)
    detector = ReadinessDetector(CcmTool(fake_runner), max_attempts=10, delay=0.25, sleep=sleeps.append)

    detector.wait_for_binary_protocol()

    assert len(fake_runner.calls) == 3
    assert sleeps == [0.25, 0.25]


def test_wait_times_out(fake_runner: FakeRunner, sleeps: list[float]) -> None:
    """The detector raises after its last attempt."""
    detector = ReadinessDetector(CcmTool(fake_runner), max_attempts=4, delay=1.0, sleep=sleeps.append)

    with pytest.raises(ReadinessTimeoutError) as excinfo:
        detector.wait_for_binary_protocol()

    assert len(fake_runner.calls) == 4
    assert excinfo.value.max_attempts == 4
    assert "node1" in str(excinfo.value)


def test_showlog_failure_is_not_retried(fake_runner: FakeRunner, sleeps: list[float]) -> None:
    """A failing showlog aborts the wait on the first check."""
    showlog = ("ccm", "node1", "showlog")
    fake_runner.script(showlog, failure(showlog, "No such node\n"))
    detector = ReadinessDetector(CcmTool(fake_runner), max_attempts=5, sleep=sleeps.append)

    with pytest.raises(ProcessFailure):
        detector.wait_for_binary_protocol()

    assert len(fake_runner.calls) == 1


def test_custom_predicate(fake_runner: FakeRunner, sleeps: list[float]) -> None:
    """Other readiness markers can be plugged in."""
    fake_runner.script(("ccm", "node1", "showlog"), "Starting listening for Thrift clients\n")
    detector = ReadinessDetector(
        CcmTool(fake_runner), predicate=LogPatternPredicate("thrift clients"), sleep=sleeps.append
    )

    detector.wait_for_binary_protocol()

    assert sleeps == []
