"""Shared fixtures: a scripted process runner and a clean environment."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import pytest

from ccm_harness.errors import ProcessFailure
from ccm_harness.process import ProcessInvocation, ProcessResult

READY_LOG = "INFO  [main] Starting listening for CQL clients on localhost/127.0.0.1:9042 (unencrypted)...\n"


@dataclass
class Call:
    """One command the fake runner was asked to run."""

    executable: str
    args: tuple[str, ...]
    env: dict[str, str] = field(default_factory=dict)
    timeout: float | None = None

    @property
    def command(self) -> tuple[str, ...]:
        return (self.executable, *self.args)


class FakeRunner:
    """Records ``check`` calls and answers them from scripted outcomes.

    Outcomes are keyed by the full command. Each outcome is either stdout
    text or an exception to raise; the last outcome of a key repeats.
    """

    def __init__(self) -> None:
        self.calls: list[Call] = []
        self._outcomes: dict[tuple[str, ...], list[str | BaseException]] = {}

    def script(self, command: Sequence[str], *outcomes: str | BaseException) -> None:
        self._outcomes[tuple(command)] = list(outcomes)

    def check(
        self,
        executable: str,
        args: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ProcessResult:
        call = Call(executable, tuple(args), dict(env or {}), timeout)
        self.calls.append(call)
        queue = self._outcomes.get(call.command, [])
        outcome = queue.pop(0) if len(queue) > 1 else (queue[0] if queue else "")
        if isinstance(outcome, BaseException):
            raise outcome
        invocation = ProcessInvocation(executable, call.args, call.env)
        return ProcessResult(invocation, 0, (outcome,) if outcome else ())

    def commands(self, executable: str = "ccm") -> list[tuple[str, ...]]:
        """Argument tuples of every recorded call to *executable*."""
        return [call.args for call in self.calls if call.executable == executable]


def failure(command: Sequence[str], stderr: str, exit_code: int = 1) -> ProcessFailure:
    """A ProcessFailure as ProcessRunner.check raises it."""
    return ProcessFailure(tuple(command), exit_code, (), (stderr,))


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Fresh scripted runner."""
    return FakeRunner()


@pytest.fixture
def sleeps() -> list[float]:
    """Collects the durations passed to an injected sleep function."""
    return []


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CCM_*, ADS_* and TEST_TRACE from the host out of every test."""
    for name in list(os.environ):
        if name.startswith(("CCM_", "ADS_")) or name == "TEST_TRACE":
            monkeypatch.delenv(name, raising=False)
