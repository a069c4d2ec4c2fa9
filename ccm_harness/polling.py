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

"""Bounded polling of boolean predicates and output-based readiness checks."""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from tenacity import RetryError, Retrying, retry_if_result, stop_after_attempt, wait_fixed

from ccm_harness.constants import (
    CQL_READY_PATTERN,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_MAX_ATTEMPTS,
)
from ccm_harness.errors import ConditionTimeoutError

Predicate = Callable[[], bool]


@dataclass(frozen=True)
class PollSpec:
    """A predicate re-evaluated every *delay* seconds, at most *max_attempts* times.

    Attributes:
        predicate: Zero-argument callable; truthy means done.
        delay: Seconds to sleep after each false evaluation.
        max_attempts: Upper bound on evaluations.
        description: Text used in the timeout message, defaults to the predicate repr.
    """

    predicate: Predicate
    delay: float = DEFAULT_POLL_INTERVAL_SECONDS
    max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS
    description: str | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.delay < 0:
            raise ValueError(f"delay must not be negative, got {self.delay}")

    def run(
        self,
        sleep: Callable[[float], None] = time.sleep,
        error: type[ConditionTimeoutError] = ConditionTimeoutError,
    ) -> None:
        """Evaluate until the predicate holds.

        Each call starts a fresh attempt counter. A true first evaluation
        returns without sleeping. Exceptions raised by the predicate
        propagate immediately and are never retried.

        Args:
            sleep: Sleep function, replaced in tests.
            error: Timeout error class to raise on exhaustion.

        Raises:
            ConditionTimeoutError: If the predicate is still false after
                ``max_attempts`` evaluations.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.delay),
            retry=retry_if_result(lambda ok: not ok),
            sleep=sleep,
        )
        try:
            retrying(self.predicate)
        except RetryError as err:
            raise error(self.max_attempts, self.description or repr(self.predicate)) from err


def wait_until(
    predicate: Predicate,
    delay: float = DEFAULT_POLL_INTERVAL_SECONDS,
    max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS,
    *,
    description: str | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Poll *predicate* until it is true; see :meth:`PollSpec.run`."""
    PollSpec(predicate, delay, max_attempts, description).run(sleep=sleep)


# ============================================================================
# Readiness predicates
# ============================================================================

class ReadinessPredicate(Protocol):
    """Decides from raw output whether a service is ready."""

    def __call__(self, output: str) -> bool: ...


class LogPatternPredicate:
    """Ready once *pattern* appears anywhere in the output (case-insensitive)."""

    def __init__(self, pattern: str) -> None:
        self.pattern = re.compile(pattern, re.IGNORECASE | re.MULTILINE)

    def __call__(self, output: str) -> bool:
        return self.pattern.search(output) is not None

    def __repr__(self) -> str:
        return f"LogPatternPredicate({self.pattern.pattern!r})"


CQL_LISTENING = LogPatternPredicate(CQL_READY_PATTERN)
