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

"""Context managers wrapping cluster and ADS lifecycles for test suites.

Typical use from a ``conftest.py``::

    @pytest.fixture(scope="module")
    def cluster():
        with ccm_cluster(3, ClusterOptions(vnodes=True)) as handle:
            yield handle
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from ccm_harness.ads import EmbeddedAds, KerberosContext
from ccm_harness.ccm import ClusterController, ClusterHandle
from ccm_harness.config import ClusterOptions


@contextmanager
def ccm_cluster(
    nodes: int | str = 1,
    options: ClusterOptions | None = None,
    *,
    remove_after: bool = True,
    controller: ClusterController | None = None,
) -> Iterator[ClusterHandle]:
    """Provision a cluster for the duration of the block.

    Args:
        nodes: Node count or per-datacenter topology.
        options: Cluster options.
        remove_after: Whether to remove the cluster when the block exits.
        controller: Controller to use, one reading the environment when None.
    """
    controller = controller or ClusterController()
    handle = controller.provision(nodes, options)
    try:
        yield handle
    finally:
        if remove_after:
            controller.remove(handle)


@contextmanager
def ads_server(ads: EmbeddedAds | None = None) -> Iterator[KerberosContext]:
    """Run an embedded ADS server for the duration of the block.

    The server is stopped on exit even when ``start`` timed out.
    """
    ads = ads or EmbeddedAds()
    try:
        yield ads.start()
    finally:
        if ads.process is not None:
            ads.stop()
