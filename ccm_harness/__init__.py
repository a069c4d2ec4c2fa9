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

"""ccm_harness - provisioning of ccm clusters and embedded ADS servers for tests."""

from __future__ import annotations

import logging

from rich.console import Console

console = Console(stderr=True)
logger = logging.getLogger("ccm_harness")


def configure_logging(trace: bool | None = None) -> None:
    """Initialize root logging, at DEBUG level when tracing is enabled.

    Args:
        trace: Force tracing on or off, or None to read ``TEST_TRACE``.
    """
    if trace is None:
        from ccm_harness.config import TraceConfig

        trace = TraceConfig().enabled
    logging.basicConfig(
        level=logging.DEBUG if trace else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
