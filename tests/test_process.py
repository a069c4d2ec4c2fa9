"""Tests for the process runner and its exactly-once result delivery."""

from __future__ import annotations

import sys
import threading

import pytest

from ccm_harness.errors import PreconditionError, ProcessFailure, ProcessTimeoutError
from ccm_harness.process import ProcessInvocation, ProcessResult, ProcessRunner, RunningProcess


def _python(code: str) -> ProcessInvocation:
    return ProcessInvocation(sys.executable, ("-c", code))


def test_check_returns_stdout() -> None:
    """A zero exit delivers a result with the captured stdout."""
    result = ProcessRunner().check(sys.executable, ["-c", "print('hello')"])

    assert result.ok
    assert result.exit_code == 0
    assert result.stdout_text == "hello\n"
    assert result.stderr_text == ""


def test_non_zero_exit_carries_stderr_verbatim() -> None:
    """A failing command raises ProcessFailure holding its stderr unchanged."""
    code = "import sys; sys.stderr.write('populate exploded\\n'); sys.exit(3)"

    with pytest.raises(ProcessFailure) as excinfo:
        ProcessRunner().check(sys.executable, ["-c", code])

    err = excinfo.value
    assert err.exit_code == 3
    assert err.stderr_text == "populate exploded\n"
    assert err.command == (sys.executable, "-c", code)
    assert str(err).startswith(f"Error executing {sys.executable}:\n")
    assert "populate exploded" in str(err)
    assert err.result is not None
    assert err.result.exit_code == 3


def test_env_overrides_are_layered_on_the_current_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Overrides are visible to the child next to inherited variables."""
    monkeypatch.setenv("CCM_HARNESS_INHERITED", "kept")
    code = "import os; print(os.environ['CCM_HARNESS_PROBE'], os.environ['CCM_HARNESS_INHERITED'])"

    result = ProcessRunner().check(sys.executable, ["-c", code], env={"CCM_HARNESS_PROBE": "set"})

    assert result.stdout_text == "set kept\n"


def test_listeners_receive_chunks_in_order() -> None:
    """Every stdout chunk reaches the listener and the buffer in order."""
    seen: list[str] = []
    runner = ProcessRunner()

    running = runner.start(_python("print('a'); print('b')"), on_stdout=seen.append)
    result = running.wait(10)

    assert "".join(seen) == "a\nb\n"
    assert result.stdout == tuple(seen)


def test_failing_listener_does_not_break_capture() -> None:
    """A listener raising does not stop the output from being captured."""
    def explode(chunk: str) -> None:
        raise RuntimeError("listener bug")

    running = ProcessRunner().start(_python("print('x')"), on_stdout=explode)

    assert running.wait(10).stdout_text == "x\n"


def test_timeout_fails_the_run_without_killing_the_process() -> None:
    """The timeout delivers ProcessTimeoutError and leaves the process running."""
    running = ProcessRunner().start(_python("import time; time.sleep(30)"), timeout=0.2)
    try:
        with pytest.raises(ProcessTimeoutError) as excinfo:
            running.wait(10)
        assert "Timed out while waiting for" in str(excinfo.value)
        assert running.is_alive()
    finally:
        running.popen.kill()
        running.popen.wait()


def test_close_before_timeout_cancels_the_timer() -> None:
    """A run finishing inside its timeout delivers its normal result."""
    result = ProcessRunner().check(sys.executable, ["-c", "print('quick')"], timeout=30)

    assert result.stdout_text == "quick\n"


def test_spawn_failure_is_delivered_as_process_failure() -> None:
    """A missing executable fails through the future, not from start()."""
    running = ProcessRunner().start(ProcessInvocation("/nonexistent/ccm-harness-missing", ("list",)))

    with pytest.raises(ProcessFailure) as excinfo:
        running.wait(10)

    assert excinfo.value.exit_code is None
    assert isinstance(excinfo.value.__cause__, OSError)
    assert running.delivered


def test_error_then_close_delivers_once() -> None:
    """Only the first notification resolves the future."""
    running = RunningProcess(ProcessInvocation("ccm", ("list",)))

    assert running.notify_error(OSError("spawn ccm ENOENT"))
    assert not running.notify_close(0)
    assert not running.notify_timeout(1.0)

    err = running.future.exception()
    assert isinstance(err, ProcessFailure)
    assert err.stderr == ("spawn ccm ENOENT",)


def test_second_close_is_ignored() -> None:
    """A duplicate close keeps the first exit code."""
    running = RunningProcess(ProcessInvocation("ccm", ("list",)))
    running.stdout.append("*c1\n")

    assert running.notify_close(0)
    assert not running.notify_close(1)

    result = running.future.result()
    assert result.exit_code == 0
    assert result.stdout_text == "*c1\n"


def test_send_signal_before_spawn_is_rejected() -> None:
    """Signalling a process that never started is a precondition error."""
    running = RunningProcess(ProcessInvocation("java"))

    with pytest.raises(PreconditionError):
        running.send_signal(2)


def test_windows_argv_is_wrapped_in_cmd() -> None:
    """On Windows the command runs through cmd.exe /c."""
    invocation = ProcessInvocation("ccm", ("node1", "showlog"))

    assert invocation.argv("win32") == ["cmd.exe", "/c", "ccm", "node1", "showlog"]
    assert invocation.argv("linux") == ["ccm", "node1", "showlog"]
    assert invocation.command == ("ccm", "node1", "showlog")


def test_invocation_normalizes_args_and_env() -> None:
    """Arguments become strings and an empty env inherits the parent's."""
    invocation = ProcessInvocation("ccm", ["add", 4])

    assert invocation.args == ("add", "4")
    assert invocation.environment() is None
    assert invocation.describe() == "ccm add 4"


def test_result_output_puts_stderr_first() -> None:
    """The combined output lists stderr before stdout."""
    result = ProcessResult(ProcessInvocation("ccm"), 0, ("out\n",), ("err\n",))

    assert result.output == "err\nout\n"


def test_partial_line_reaches_listener_while_running() -> None:
    """Output without a trailing newline is delivered before the process exits."""
    seen: list[str] = []
    arrived = threading.Event()

    def on_stdout(chunk: str) -> None:
        seen.append(chunk)
        if "waiting for input" in "".join(seen):
            arrived.set()

    code = "import sys, time; sys.stdout.write('waiting for input'); sys.stdout.flush(); time.sleep(30)"
    running = ProcessRunner().start(_python(code), on_stdout=on_stdout)
    try:
        assert arrived.wait(10)
        assert running.is_alive()
    finally:
        running.popen.kill()
        running.popen.wait()


def test_multibyte_character_split_across_reads() -> None:
    """A UTF-8 character written in two pieces is decoded once, intact."""
    code = (
        "import sys, time; out = sys.stdout.buffer; data = 'caf\\u00e9\\n'.encode('utf-8'); "
        "out.write(data[:4]); out.flush(); time.sleep(0.3); out.write(data[4:]); out.flush()"
    )

    result = ProcessRunner().check(sys.executable, ["-c", code])

    assert result.stdout_text == "café\n"


def test_failure_message_keeps_output_verbatim() -> None:
    """The error message appends stderr then stdout without extra separators."""
    err = ProcessFailure(("ccm", "start"), 1, ("started node1\n",), ("node2 failed\n",))

    assert str(err) == "Error executing ccm:\nnode2 failed\nstarted node1\n"
