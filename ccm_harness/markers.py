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

"""pytest markers for version-dependent tests."""

from __future__ import annotations

import pytest

from ccm_harness.config import CcmConfig
from ccm_harness.versions import ServerInfo, cassandra_version, satisfies


def requires_version(requirement: str, server: ServerInfo | None = None) -> pytest.MarkDecorator:
    """Skip the decorated test unless the server satisfies *requirement*.

    Args:
        requirement: ``"3.0"``, ``"<4.0"``, or ``"dse-6.0"`` for DSE-only tests.
        server: Server to check, read from ``CCM_*`` variables when None.
    """
    server = server or ServerInfo.from_config(CcmConfig())
    return pytest.mark.skipif(
        not satisfies(server, requirement),
        reason=f"requires {requirement}, server is {server.flavour} {server.version} "
               f"(Cassandra {cassandra_version(server)})",
    )
