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

"""Log-scraping readiness check for the CQL native protocol."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from ccm_harness.constants import (
    READINESS_MAX_ATTEMPTS,
    READINESS_NODE,
    READINESS_POLL_INTERVAL_SECONDS,
)
from ccm_harness.errors import ReadinessTimeoutError
from ccm_harness.polling import CQL_LISTENING, PollSpec, ReadinessPredicate
from ccm_harness.utils import node_name

if TYPE_CHECKING:
    from ccm_harness.ccm import CcmTool

logger = logging.getLogger(__name__)


class ReadinessDetector:
    """Poll ``ccm nodeK showlog`` until the readiness predicate matches.

    Args:
        ccm: Executor for ccm subcommands.
        predicate: Decides readiness from the log text.
        max_attempts: Maximum number of log checks.
        delay: Seconds between two unsuccessful checks.
        sleep: Sleep function, replaced in tests.
    """

    def __init__(
        self,
        ccm: CcmTool,
        predicate: ReadinessPredicate = CQL_LISTENING,
        max_attempts: int = READINESS_MAX_ATTEMPTS,
        delay: float = READINESS_POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.ccm = ccm
        self.predicate = predicate
        self.max_attempts = max_attempts
        self.delay = delay
        self._sleep = sleep

    def is_ready(self, node: int = READINESS_NODE) -> bool:
        """Run one log check against *node*.

        Raises:
            ProcessFailure: If ``showlog`` itself fails.
        """
        result = self.ccm.exec(node_name(node), "showlog")
        return self.predicate(result.stdout_text)

    def wait_for_binary_protocol(self, node: int = READINESS_NODE) -> None:
        """Block until *node* reports that it accepts CQL clients.

        Raises:
            ReadinessTimeoutError: If the marker is absent after ``max_attempts`` checks.
            ProcessFailure: If a ``showlog`` call fails; it is not retried.
        """
        logger.debug("Waiting for %s to accept CQL clients", node_name(node))
        PollSpec(
            lambda: self.is_ready(node),
            delay=self.delay,
            max_attempts=self.max_attempts,
            description=f"{node_name(node)} log matches {self.predicate!r}",
        ).run(sleep=self._sleep, error=ReadinessTimeoutError)
