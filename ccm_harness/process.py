# /*
# Copyright 2026 The ccm-harness Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Spawning external commands and delivering exactly one result per run.

A run is observed through three kinds of notification: the process closing
(after both pipes drained), an error (spawn failure), and an optional
timeout. They can arrive in any order and more than once, so every one of
them goes through :meth:`RunningProcess._claim`, which moves the run from
``PENDING`` to ``DELIVERED`` under a lock. Only the notification that wins
the transition resolves the future; the others are logged and dropped.
"""

from __future__ import annotations

import codecs
import enum
import logging
import os
import shlex
import subprocess
import sys
import threading
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import Future
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import IO

from ccm_harness.constants import OUTPUT_ENCODING, READ_CHUNK_SIZE, WINDOWS_SHELL, WINDOWS_SHELL_FLAG
from ccm_harness.errors import PreconditionError, ProcessFailure, ProcessTimeoutError

logger = logging.getLogger(__name__)

ChunkListener = Callable[[str], None]


# ============================================================================
# Invocation and result
# ============================================================================

@dataclass(frozen=True)
class ProcessInvocation:
    """An executable, its arguments, and environment overrides.

    Attributes:
        executable: Program name or path.
        args: Arguments passed after the executable.
        env: Variables layered on top of the current environment.
    """

    executable: str
    args: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(str(arg) for arg in self.args))
        object.__setattr__(self, "env", MappingProxyType(dict(self.env or {})))

    @property
    def command(self) -> tuple[str, ...]:
        """The command as requested, before any shell wrapping."""
        return (self.executable, *self.args)

    def argv(self, platform: str | None = None) -> list[str]:
        """Build the argv to spawn, wrapping through ``cmd.exe /c`` on Windows.

        Args:
            platform: Platform identifier, or None for ``sys.platform``.

        Returns:
            The argument vector handed to ``subprocess.Popen``.
        """
        platform = sys.platform if platform is None else platform
        if platform.startswith("win"):
            return [WINDOWS_SHELL, WINDOWS_SHELL_FLAG, *self.command]
        return list(self.command)

    def environment(self) -> dict[str, str] | None:
        if not self.env:
            return None
        return {**os.environ, **self.env}

    def describe(self) -> str:
        return shlex.join(self.command)


@dataclass(frozen=True)
class ProcessResult:
    """Exit code and captured output of a completed run."""

    invocation: ProcessInvocation
    exit_code: int
    stdout: tuple[str, ...] = ()
    stderr: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def stdout_text(self) -> str:
        return "".join(self.stdout)

    @property
    def stderr_text(self) -> str:
        return "".join(self.stderr)

    @property
    def output(self) -> str:
        return self.stderr_text + self.stdout_text


# ============================================================================
# Running process
# ============================================================================

class _Delivery(enum.Enum):
    PENDING = "pending"
    DELIVERED = "delivered"


class RunningProcess:
    """A spawned command whose result is delivered once through :attr:`future`."""

    def __init__(
        self,
        invocation: ProcessInvocation,
        *,
        on_stdout: ChunkListener | None = None,
        on_stderr: ChunkListener | None = None,
    ) -> None:
        self.invocation = invocation
        self.stdout: list[str] = []
        self.stderr: list[str] = []
        self.future: Future[ProcessResult] = Future()
        self.popen: subprocess.Popen[bytes] | None = None
        self._listeners: dict[str, ChunkListener | None] = {"out": on_stdout, "err": on_stderr}
        self._state = _Delivery.PENDING
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self.future.set_running_or_notify_cancel()

    @property
    def name(self) -> str:
        return self.invocation.executable

    @property
    def pid(self) -> int | None:
        return self.popen.pid if self.popen is not None else None

    @property
    def exit_code(self) -> int | None:
        return self.popen.poll() if self.popen is not None else None

    @property
    def delivered(self) -> bool:
        return self._state is _Delivery.DELIVERED

    def is_alive(self) -> bool:
        return self.popen is not None and self.popen.poll() is None

    def send_signal(self, sig: int) -> None:
        if self.popen is None:
            raise PreconditionError(f"{self.name} was never spawned")
        self.popen.send_signal(sig)

    def wait(self, timeout: float | None = None) -> ProcessResult:
        """Block until the run is delivered.

        Raises:
            ProcessFailure: If the command exited non-zero or failed to spawn.
            ProcessTimeoutError: If the run's own timeout elapsed first.
            concurrent.futures.TimeoutError: If *timeout* elapsed first.
        """
        return self.future.result(timeout)

    # -- notifications -------------------------------------------------------

    def _claim(self) -> bool:
        with self._lock:
            if self._state is _Delivery.DELIVERED:
                return False
            self._state = _Delivery.DELIVERED
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        return True

    def notify_close(self, code: int) -> bool:
        """Deliver the exit of the process. Returns False if already delivered."""
        if not self._claim():
            logger.debug("%s: discarding close notification (code %s)", self.name, code)
            return False
        logger.debug("%s exited with code %d", self.name, code)
        result = ProcessResult(self.invocation, code, tuple(self.stdout), tuple(self.stderr))
        if result.ok:
            self.future.set_result(result)
        else:
            self.future.set_exception(
                ProcessFailure(self.invocation.command, code, result.stdout, result.stderr, result)
            )
        return True

    def notify_error(self, exc: BaseException) -> bool:
        """Deliver a failure to run the process. Returns False if already delivered."""
        if not self._claim():
            logger.debug("%s: discarding error notification: %s", self.name, exc)
            return False
        logger.debug("%s failed: %s", self.name, exc)
        failure = ProcessFailure(
            self.invocation.command, self.exit_code, tuple(self.stdout), (*self.stderr, str(exc))
        )
        failure.__cause__ = exc
        self.future.set_exception(failure)
        return True

    def notify_timeout(self, timeout: float) -> bool:
        """Deliver a synthetic timeout failure without touching the process."""
        if not self._claim():
            return False
        logger.debug("%s did not complete within %ss", self.name, timeout)
        self.future.set_exception(ProcessTimeoutError(self.invocation.command, timeout))
        return True

    # -- plumbing ------------------------------------------------------------

    def _attach(self, popen: subprocess.Popen[bytes], timeout: float | None) -> None:
        self.popen = popen
        readers = [
            threading.Thread(
                target=self._drain, args=(popen.stdout, "out", self.stdout),
                daemon=True, name=f"{self.name}-stdout-{popen.pid}",
            ),
            threading.Thread(
                target=self._drain, args=(popen.stderr, "err", self.stderr),
                daemon=True, name=f"{self.name}-stderr-{popen.pid}",
            ),
        ]
        for reader in readers:
            reader.start()
        if timeout is not None:
            with self._lock:
                if self._state is _Delivery.PENDING:
                    self._timer = threading.Timer(timeout, self.notify_timeout, args=(timeout,))
                    self._timer.daemon = True
                    self._timer.start()
        threading.Thread(
            target=self._await_close, args=(popen, readers),
            daemon=True, name=f"{self.name}-wait-{popen.pid}",
        ).start()

    def _drain(self, stream: IO[bytes] | None, label: str, chunks: list[str]) -> None:
        if stream is None:
            return
        decoder = codecs.getincrementaldecoder(OUTPUT_ENCODING)(errors="replace")
        try:
            # read1 returns as soon as any bytes are available, partial lines included
            for data in iter(lambda: stream.read1(READ_CHUNK_SIZE), b""):
                self._deliver(label, chunks, decoder.decode(data))
            self._deliver(label, chunks, decoder.decode(b"", final=True))
        except (OSError, ValueError) as exc:
            logger.debug("%s: stopped reading std%s: %s", self.name, label, exc)
        finally:
            stream.close()

    def _deliver(self, label: str, chunks: list[str], chunk: str) -> None:
        if not chunk:
            return
        chunks.append(chunk)
        logger.debug("%s_%s> %s", self.name, label, chunk.rstrip("\n"))
        listener = self._listeners[label]
        if listener is not None:
            try:
                listener(chunk)
            except Exception:
                logger.exception("%s: %s listener failed", self.name, label)

    def _await_close(self, popen: subprocess.Popen[bytes], readers: Sequence[threading.Thread]) -> None:
        code = popen.wait()
        for reader in readers:
            reader.join()
        self.notify_close(code)


# ============================================================================
# Runner
# ============================================================================

class ProcessRunner:
    """Spawn commands and capture their output.

    Args:
        platform: Platform identifier used for shell wrapping, or None for
            ``sys.platform``.
    """

    def __init__(self, platform: str | None = None) -> None:
        self.platform = sys.platform if platform is None else platform

    def start(
        self,
        invocation: ProcessInvocation,
        *,
        on_stdout: ChunkListener | None = None,
        on_stderr: ChunkListener | None = None,
        timeout: float | None = None,
    ) -> RunningProcess:
        """Spawn *invocation* and return its handle immediately.

        Args:
            invocation: What to run.
            on_stdout: Called with each stdout chunk after it is buffered.
            on_stderr: Called with each stderr chunk after it is buffered.
            timeout: Seconds after which the run fails with
                :class:`ProcessTimeoutError`, or None to wait for exit.

        Returns:
            The running process; a spawn failure is delivered through its future.
        """
        running = RunningProcess(invocation, on_stdout=on_stdout, on_stderr=on_stderr)
        argv = invocation.argv(self.platform)
        logger.debug("Executing: %s", shlex.join(argv))
        try:
            popen = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=invocation.environment(),
            )
        except OSError as exc:
            running.notify_error(exc)
            return running
        running._attach(popen, timeout)
        return running

    def run(
        self,
        executable: str,
        args: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Future[ProcessResult]:
        """Spawn a command and return the future of its result."""
        invocation = ProcessInvocation(executable, tuple(args), env or {})
        return self.start(invocation, timeout=timeout).future

    def check(
        self,
        executable: str,
        args: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ProcessResult:
        """Run a command to completion.

        Raises:
            ProcessFailure: If the command exited non-zero or failed to spawn.
            ProcessTimeoutError: If *timeout* elapsed before completion.
        """
        return self.run(executable, args, env, timeout).result()
