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

"""Embedded ADS server (LDAP on 10389, Kerberos on 10088) and Kerberos tickets."""

from __future__ import annotations

import enum
import logging
import os
import signal
import tempfile
import threading
from collections.abc import MutableMapping, Sequence
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from pathlib import Path

from rich.panel import Panel

from ccm_harness import console
from ccm_harness.config import AdsConfig
from ccm_harness.constants import (
    ADS_READY_MARKER,
    ADS_WORKDIR_PREFIX,
    KDESTROY_EXECUTABLE,
    KEYTAB_SUFFIX,
    KINIT_EXECUTABLE,
    KLIST_EXECUTABLE,
    KRB5_CONFIG_ENV,
    KRB5_CONFIG_FILE,
)
from ccm_harness.errors import (
    PreconditionError,
    ProcessFailure,
    ServiceExitedError,
    ServiceStartTimeoutError,
)
from ccm_harness.process import ProcessInvocation, ProcessResult, ProcessRunner, RunningProcess

logger = logging.getLogger(__name__)


class AdsState(enum.Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    FAILED = "failed"


@dataclass(frozen=True)
class KerberosContext:
    """Files generated by one ADS run.

    Passed explicitly to every ticket operation instead of living in the
    process environment.

    Attributes:
        confdir: Working directory the server wrote its configuration to.
    """

    confdir: Path

    @property
    def krb5_config(self) -> Path:
        return self.confdir / KRB5_CONFIG_FILE

    def keytab(self, username: str) -> Path:
        """Keytab generated for *username* (e.g. ``cassandra``)."""
        return self.confdir / f"{username}{KEYTAB_SUFFIX}"

    def env(self) -> dict[str, str]:
        return {KRB5_CONFIG_ENV: str(self.krb5_config)}

    def export(self, environ: MutableMapping[str, str] | None = None) -> None:
        """Set ``KRB5_CONFIG`` for libraries that only read the environment.

        Args:
            environ: Mapping to update, ``os.environ`` when None.
        """
        target = os.environ if environ is None else environ
        target.update(self.env())


class EmbeddedAds:
    """Supervise the embedded-ads jar and run Kerberos client tools against it.

    Args:
        config: ADS configuration, loaded from the environment when None.
        runner: Process runner used for the server and the client tools.
    """

    def __init__(self, config: AdsConfig | None = None, runner: ProcessRunner | None = None) -> None:
        self.config = config if config is not None else AdsConfig()
        self.runner = runner or ProcessRunner()
        self.state = AdsState.STOPPED
        self.process: RunningProcess | None = None
        self.context: KerberosContext | None = None

    def invocation(self, confdir: Path) -> ProcessInvocation:
        jar = self.config.jar_path()
        logger.debug("Using %s for embedded ADS server.", jar)
        return ProcessInvocation(self.config.java, ("-jar", str(jar), "-k", "--confdir", str(confdir)))

    # -- server lifecycle ----------------------------------------------------

    def start(self) -> KerberosContext:
        """Start a server in a fresh working directory and wait for its principals.

        Returns:
            Context locating the generated ``krb5.conf`` and keytabs.

        Raises:
            PreconditionError: If a server started by this instance is still running.
            ServiceStartTimeoutError: If the principals are not initialized within
                ``start_timeout``; the process keeps running and must be stopped.
            ServiceExitedError: If the server exits before initializing.
        """
        if self.process is not None and self.process.is_alive():
            raise PreconditionError("ADS server is already running")

        confdir = Path(tempfile.mkdtemp(prefix=ADS_WORKDIR_PREFIX, dir=self.config.workdir_root))
        context = KerberosContext(confdir)
        console.print(Panel.fit("Starting embedded ADS server", style="bold blue"))

        ready: Future[None] = Future()
        lock = threading.Lock()

        def settle(exc: BaseException | None) -> None:
            with lock:
                if ready.done():
                    return
                if exc is None:
                    ready.set_result(None)
                else:
                    ready.set_exception(exc)

        tail = ""

        def on_stdout(chunk: str) -> None:
            nonlocal tail
            # the marker can be split across reads
            window = tail + chunk
            if ADS_READY_MARKER in window:
                settle(None)
            tail = window[-(len(ADS_READY_MARKER) - 1):]

        def on_exit(future: Future) -> None:
            exc = future.exception()
            code = exc.exit_code if isinstance(exc, ProcessFailure) else 0
            error = ServiceExitedError(f"ADS server exited before initialization completed (exit code {code})")
            error.__cause__ = exc
            settle(error)

        self.state = AdsState.STARTING
        self.context = None
        self.process = self.runner.start(self.invocation(confdir), on_stdout=on_stdout)
        self.process.future.add_done_callback(on_exit)

        try:
            ready.result(timeout=self.config.start_timeout)
        except FutureTimeoutError:
            self.state = AdsState.FAILED
            raise ServiceStartTimeoutError("Timed out while waiting for ADS server to start.") from None
        except ServiceExitedError:
            self.state = AdsState.FAILED
            raise

        self.state = AdsState.RUNNING
        self.context = context
        console.print(f"[green]\u2705 ADS server ready, krb5.conf at {context.krb5_config}[/green]")
        return context

    def stop(self, timeout: float | None = None) -> None:
        """Interrupt the server and wait for it to close.

        Args:
            timeout: Seconds to wait for the close, or None to wait indefinitely.

        Raises:
            PreconditionError: If no server was ever started.
        """
        if self.process is None:
            raise PreconditionError("Process is not defined.")
        process = self.process
        if not process.is_alive():
            logger.debug("Server already stopped with exit code %s.", process.exit_code)
        else:
            process.send_signal(signal.SIGINT)
            try:
                process.wait(timeout)
            except ProcessFailure as err:
                logger.debug("ADS server closed with exit code %s", err.exit_code)
        self.state = AdsState.STOPPED
        self.context = None
        console.print("[green]\u2705 ADS server stopped[/green]")

    # -- Kerberos client tools -----------------------------------------------

    def _execute(self, context: KerberosContext, executable: str, args: Sequence[str]) -> ProcessResult:
        if context is None:
            raise PreconditionError(f"{executable} needs the context returned by start()")
        return self.runner.check(executable, args, env=context.env(), timeout=self.config.command_timeout)

    def acquire_ticket(self, context: KerberosContext, username: str, principal: str) -> None:
        """Acquire a ticket for *principal* from the keytab generated for *username*.

        Args:
            context: Context returned by :meth:`start`.
            username: Keytab owner (e.g. ``cassandra``).
            principal: Principal to authenticate (e.g. ``cassandra@DATASTAX.COM``).

        Raises:
            ProcessFailure: If kinit fails.
            ProcessTimeoutError: If kinit does not complete in ``command_timeout``.
        """
        keytab = context.keytab(username) if context is not None else None
        self._execute(context, KINIT_EXECUTABLE, ["-t", str(keytab), "-k", principal])

    def destroy_ticket(self, context: KerberosContext, principal: str | None = None) -> None:
        """Destroy the tickets of *principal*, or the whole default cache."""
        args = ["-p", principal] if principal else []
        self._execute(context, KDESTROY_EXECUTABLE, args)

    def list_tickets(self, context: KerberosContext) -> str:
        """Return the ``klist`` listing; only useful for debugging."""
        return self._execute(context, KLIST_EXECUTABLE, []).stdout_text
