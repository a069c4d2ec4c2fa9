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

"""Utility functions for command checks and generated names."""

from __future__ import annotations

import random

import sh

from ccm_harness.constants import RANDOM_NAME_DIGITS, RANDOM_NAME_MAX, RANDOM_NAME_PREFIX


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    try:
        found = sh.which(cmd)
    except sh.ErrorReturnCode as err:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.") from err
    if not found:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.")


def random_name(prefix: str | None = None) -> str:
    """Return *prefix* followed by a zero padded random integer.

    Args:
        prefix: Leading text, defaults to ``ab``.

    Returns:
        A name such as ``ab0000012345678901``.
    """
    value = random.randint(0, RANDOM_NAME_MAX)
    return f"{prefix or RANDOM_NAME_PREFIX}{value:0{RANDOM_NAME_DIGITS}d}"


def node_name(index: int) -> str:
    """ccm name of the 1-based node *index*.

    Raises:
        ValueError: If *index* is not a positive integer.
    """
    if isinstance(index, bool) or not isinstance(index, int) or index < 1:
        raise ValueError(f"node index must be a positive integer, got {index!r}")
    return f"node{index}"
