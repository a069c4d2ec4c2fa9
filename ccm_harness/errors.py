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

"""Exception types raised by the harness."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ccm_harness.process import ProcessResult


class HarnessError(RuntimeError):
    """Base class for every harness failure."""


class ProcessFailure(HarnessError):
    """A spawned command exited non-zero or could not be spawned.

    Attributes:
        command: The argv that was requested.
        exit_code: Exit code, or None when the process never started.
        stdout: Ordered stdout chunks captured before exit.
        stderr: Ordered stderr chunks captured before exit.
        result: The full result, when the process ran to completion.
    """

    def __init__(
        self,
        command: Sequence[str],
        exit_code: int | None,
        stdout: Sequence[str] = (),
        stderr: Sequence[str] = (),
        result: ProcessResult | None = None,
    ) -> None:
        self.command = tuple(command)
        self.exit_code = exit_code
        self.stdout = tuple(stdout)
        self.stderr = tuple(stderr)
        self.result = result
        name = self.command[0] if self.command else "<unknown>"
        super().__init__(f"Error executing {name}:\n" + "".join(self.stderr) + "".join(self.stdout))

    @property
    def stdout_text(self) -> str:
        return "".join(self.stdout)

    @property
    def stderr_text(self) -> str:
        return "".join(self.stderr)


class HarnessTimeoutError(HarnessError, TimeoutError):
    """Base class for every bounded wait that ran out of attempts or time."""


class ConditionTimeoutError(HarnessTimeoutError):
    """A polled predicate never became true."""

    def __init__(self, max_attempts: int, description: str) -> None:
        self.max_attempts = max_attempts
        self.description = description
        super().__init__(f"Condition still false after {max_attempts} attempts: {description}")


class ReadinessTimeoutError(ConditionTimeoutError):
    """The cluster never logged its readiness marker."""


class ProcessTimeoutError(HarnessTimeoutError):
    """A command did not complete within its requested timeout.

    The process itself is left running.
    """

    def __init__(self, command: Sequence[str], timeout: float) -> None:
        self.command = tuple(command)
        self.timeout = timeout
        name = self.command[0] if self.command else "<unknown>"
        super().__init__(f"Timed out while waiting for {name} to complete.")


class ServiceStartTimeoutError(HarnessTimeoutError):
    """The ADS server did not print its readiness marker in time."""


class ServiceExitedError(HarnessError):
    """The ADS server exited before it finished initializing."""


class PreconditionError(HarnessError):
    """An operation was invoked in a state that does not allow it."""
