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

"""Server identity and version comparison."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ccm_harness.config import CcmConfig
from ccm_harness.constants import (
    CASSANDRA_VERSION_BY_DSE,
    DEFAULT_CASSANDRA_FOR_DSE,
    FORCED_DECOMMISSION_DSE_VERSION,
)


@dataclass(frozen=True)
class ServerInfo:
    """Version and flavour of the server ccm provisions.

    Attributes:
        version: Dot separated release (e.g. ``3.11.4`` or ``6.8.1``).
        is_dse: Whether the release is DataStax Enterprise.
    """

    version: str
    is_dse: bool = False

    @classmethod
    def from_config(cls, config: CcmConfig) -> ServerInfo:
        return cls(version=config.version, is_dse=config.is_dse)

    @property
    def flavour(self) -> str:
        return "DSE" if self.is_dse else "Cassandra"


def _components(version: str) -> list[int]:
    parts = []
    for raw in version.split("."):
        match = re.match(r"\d+", raw)
        parts.append(int(match.group()) if match else 0)
    return parts


def version_compare(instance_version: str, version: str) -> bool:
    """Compare *instance_version* against a requirement.

    Args:
        instance_version: The version in use.
        version: Required version, optionally prefixed with ``<=`` or ``<``;
            without a prefix the check is "greater than or equal".

    Returns:
        Whether the requirement holds.
    """
    expected = {1, 0}
    if version.startswith("<="):
        version, expected = version[2:], {-1, 0}
    elif version.startswith("<"):
        version, expected = version[1:], {-1}

    instance = _components(instance_version)
    required = _components(version)
    for idx, compare in enumerate(required):
        current = instance[idx] if idx < len(instance) else 0
        if current > compare:
            return 1 in expected
        if current < compare:
            return -1 in expected
    return 0 in expected


def cassandra_version(server: ServerInfo) -> str:
    """Apache Cassandra version of *server*, mapping DSE releases to the one they embed."""
    if not server.is_dse:
        return server.version
    major_minor = ".".join(server.version.split(".")[:2])
    return CASSANDRA_VERSION_BY_DSE.get(major_minor, DEFAULT_CASSANDRA_FOR_DSE)


def is_dse_greater_than(server: ServerInfo, version: str) -> bool:
    """Whether *server* is DSE at or above *version*."""
    if not server.is_dse:
        return False
    return version_compare(server.version, version)


def is_cassandra_greater_than(server: ServerInfo, version: str) -> bool:
    return version_compare(cassandra_version(server), version)


def requires_forced_decommission(server: ServerInfo) -> bool:
    """Whether decommission needs --force, which is the case from DSE 5.1 on."""
    return is_dse_greater_than(server, FORCED_DECOMMISSION_DSE_VERSION)


def satisfies(server: ServerInfo, requirement: str) -> bool:
    """Check a test version requirement against *server*.

    ``dse-X.Y`` requirements only hold on DSE servers at or above X.Y; any
    other requirement is compared against the Cassandra-equivalent version.
    """
    if requirement.startswith("dse-"):
        return server.is_dse and version_compare(server.version, requirement[4:])
    return version_compare(cassandra_version(server), requirement)
