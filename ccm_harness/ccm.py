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

"""ccm cluster lifecycle: provisioning, teardown, and per-node operations."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from rich.panel import Panel

from ccm_harness import console
from ccm_harness.config import CcmConfig, ClusterOptions
from ccm_harness.constants import (
    BOOTSTRAP_JMX_BASE_PORT,
    BOOTSTRAP_JMX_PORT_STEP,
    CCM_CURRENT_MARKER,
    CCM_SSL_SUBPATH,
    DEFAULT_CLUSTER_PREFIX,
)
from ccm_harness.errors import PreconditionError, ProcessFailure
from ccm_harness.process import ProcessResult, ProcessRunner
from ccm_harness.readiness import ReadinessDetector
from ccm_harness.utils import node_name, random_name
from ccm_harness.versions import ServerInfo, requires_forced_decommission

logger = logging.getLogger(__name__)


# ============================================================================
# Topology and handles
# ============================================================================

def normalize_topology(nodes: int | str) -> str:
    """Return the per-datacenter form of a node topology.

    A bare count becomes a single datacenter plus an empty one (``3`` ->
    ``"3:0"``) so datacenter naming stays consistent; a string is already in
    that form and is returned unchanged.

    Args:
        nodes: Node count, or ``"x:y:..."`` with one count per datacenter.

    Returns:
        The topology handed to ``ccm populate -n``.

    Raises:
        ValueError: If the count is not positive or the string is empty.
    """
    if isinstance(nodes, bool):
        raise ValueError(f"invalid node topology: {nodes!r}")
    if isinstance(nodes, int):
        if nodes < 1:
            raise ValueError(f"node count must be positive, got {nodes}")
        return f"{nodes}:0"
    if isinstance(nodes, str) and nodes.strip():
        return nodes
    raise ValueError(f"invalid node topology: {nodes!r}")


@dataclass(frozen=True)
class ClusterHandle:
    """A cluster created by :meth:`ClusterController.provision`.

    Attributes:
        name: Cluster name registered with ccm.
        topology: Normalized node topology, or None for an attached cluster.
        server: Server the cluster runs.
    """

    name: str
    topology: str | None
    server: ServerInfo


class CcmTool:
    """Runs ``ccm`` subcommands and raises on non-zero exit."""

    def __init__(self, runner: ProcessRunner | None = None, executable: str = "ccm") -> None:
        self.runner = runner or ProcessRunner()
        self.executable = executable

    def exec(self, *args: str) -> ProcessResult:
        """Run ``ccm <args>`` to completion.

        Raises:
            ProcessFailure: If ccm exits non-zero.
        """
        return self.runner.check(self.executable, args)


# ============================================================================
# Controller
# ============================================================================

class ClusterController:
    """Provision and drive ccm clusters.

    Args:
        config: ccm configuration, loaded from the environment when None.
        runner: Process runner used for every ccm call.
        readiness: Readiness detector, built from *config* when None.
        sleep: Sleep function for post-step pauses and polling.
    """

    def __init__(
        self,
        config: CcmConfig | None = None,
        runner: ProcessRunner | None = None,
        *,
        readiness: ReadinessDetector | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config if config is not None else CcmConfig()
        self.server = ServerInfo.from_config(self.config)
        self.ccm = CcmTool(runner, self.config.executable)
        self.readiness = readiness or ReadinessDetector(
            self.ccm,
            max_attempts=self.config.readiness_attempts,
            delay=self.config.readiness_delay,
            sleep=sleep,
        )
        self._sleep = sleep
        self._active: ClusterHandle | None = None

    @property
    def active(self) -> ClusterHandle | None:
        return self._active

    # -- provisioning --------------------------------------------------------

    def provision(
        self,
        nodes: int | str,
        options: ClusterOptions | None = None,
        *,
        name: str | None = None,
    ) -> ClusterHandle:
        """Remove any previous cluster, then create, populate, configure, and start a new one.

        Steps run strictly in order and the first failing step aborts the
        rest. Only the initial ``remove`` is best-effort.

        Args:
            nodes: Node count or per-datacenter topology (``"3:4"``).
            options: Cluster options, defaults when None.
            name: Cluster name, random when None.

        Returns:
            Handle of the running cluster.

        Raises:
            ProcessFailure: If any ccm step after the cleanup fails.
            ReadinessTimeoutError: If node1 never reports CQL readiness.
        """
        options = options or ClusterOptions()
        topology = normalize_topology(nodes)
        handle = ClusterHandle(name or random_name(DEFAULT_CLUSTER_PREFIX), topology, self.server)
        console.print(Panel.fit(
            f"Starting {self.server.flavour} cluster v{self.server.version} with {topology} node(s)",
            style="bold blue",
        ))

        self.remove_if_any()
        self._step(self._create_args(handle.name, options), options.sleep)
        self._step(self._populate_args(topology, options), options.sleep)
        if options.yaml:
            logger.debug("With cassandra yaml options %s", list(options.yaml))
            self.ccm.exec("updateconf", *options.yaml)
        if options.dse_yaml:
            logger.debug("With dse yaml options %s", list(options.dse_yaml))
            self.ccm.exec("updatedseconf", *options.dse_yaml)
        if options.workloads:
            logger.debug("With workloads %s", list(options.workloads))
            self.ccm.exec("setworkload", ",".join(options.workloads))
        self._step(self._start_args(options), options.sleep)

        self._active = handle
        console.print("[yellow]\u2139\ufe0f  Waiting for the CQL native protocol...[/yellow]")
        self.readiness.wait_for_binary_protocol()
        console.print(f"[green]\u2705 Cluster '{handle.name}' is up[/green]")
        return handle

    def _step(self, args: Sequence[str], sleep: float) -> ProcessResult:
        result = self.ccm.exec(*args)
        if sleep:
            self._sleep(sleep)
        return result

    def _create_args(self, name: str, options: ClusterOptions) -> list[str]:
        if self.config.install_dir:
            args = ["create", name, f"--install-dir={self.config.install_dir}"]
            logger.debug("With %s", args[2])
        else:
            args = ["create", name]
            if self.server.is_dse:
                args.append("--dse")
            args.extend(["-v", self.server.version])
        if options.ssl:
            args.extend(["--ssl", str(self.config.tool_path(CCM_SSL_SUBPATH))])
        if options.partitioner:
            args.extend(["-p", options.partitioner])
        return args

    @staticmethod
    def _populate_args(topology: str, options: ClusterOptions) -> list[str]:
        args = ["populate", "-n", topology]
        if options.vnodes:
            args.append("--vnodes")
        if options.ip_format:
            args.append(f"--ip-format={options.ip_format}")
        return args

    @staticmethod
    def _start_args(options: ClusterOptions) -> list[str]:
        args = ["start", "--wait-for-binary-proto"]
        for arg in options.jvm_args:
            args.extend(["--jvm_arg", arg])
        if options.jvm_args:
            logger.debug("With jvm args %s", list(options.jvm_args))
        return args

    # -- teardown ------------------------------------------------------------

    def remove(self, handle: ClusterHandle) -> None:
        """Remove the cluster behind *handle*.

        Raises:
            PreconditionError: If *handle* is not the active cluster.
            ProcessFailure: If ccm fails to remove it.
        """
        self._require(handle)
        self.ccm.exec("remove")
        self._active = None
        console.print(f"[green]\u2705 Cluster '{handle.name}' removed[/green]")

    def remove_if_any(self) -> None:
        """Remove the current ccm cluster, ignoring every failure."""
        # TODO: only ignore "no current cluster"; ccm reports it with the same exit code as real failures
        try:
            self.ccm.exec("remove")
            console.print("[yellow]   Removed existing cluster[/yellow]")
        except ProcessFailure as err:
            logger.debug("Ignoring failed ccm remove (exit code %s): %s", err.exit_code, err)
            console.print("[yellow]   No existing cluster found[/yellow]")
        self._active = None

    def attach(self) -> ClusterHandle:
        """Adopt the cluster ccm marks as current in ``ccm list``.

        Raises:
            PreconditionError: If ccm has no current cluster.
        """
        result = self.ccm.exec("list")
        for line in result.stdout_text.splitlines():
            line = line.strip()
            if line.startswith(CCM_CURRENT_MARKER):
                name = line[len(CCM_CURRENT_MARKER):].strip()
                if name:
                    self._active = ClusterHandle(name, None, self.server)
                    return self._active
        raise PreconditionError("ccm has no current cluster")

    def wait_for_up(self, handle: ClusterHandle) -> None:
        self._require(handle)
        self.readiness.wait_for_binary_protocol()

    # -- per-node operations -------------------------------------------------

    def _require(self, handle: ClusterHandle) -> None:
        if self._active is None or handle.name != self._active.name:
            raise PreconditionError(f"Cluster '{handle.name}' is not the active ccm cluster")

    def _node(self, handle: ClusterHandle, index: int, *args: str) -> ProcessResult:
        self._require(handle)
        return self.ccm.exec(node_name(index), *args)

    def start_node(self, handle: ClusterHandle, index: int) -> None:
        self._node(handle, index, "start", "--wait-other-notice", "--wait-for-binary-proto")

    def stop_node(self, handle: ClusterHandle, index: int) -> None:
        self._node(handle, index, "stop")

    def pause_node(self, handle: ClusterHandle, index: int) -> None:
        self._node(handle, index, "pause")

    def resume_node(self, handle: ClusterHandle, index: int) -> None:
        self._node(handle, index, "resume")

    def show_log(self, handle: ClusterHandle, index: int) -> str:
        return self._node(handle, index, "showlog").stdout_text

    def set_workload(self, handle: ClusterHandle, index: int, workloads: Sequence[str]) -> None:
        """Set the DSE workloads of one node.

        Raises:
            ValueError: If *workloads* is empty.
        """
        if isinstance(workloads, str) or not workloads:
            raise ValueError("workloads must be a non-empty sequence of names")
        logger.debug("%s with workloads %s", node_name(index), list(workloads))
        self._node(handle, index, "setworkload", ",".join(workloads))

    def bootstrap_node(self, handle: ClusterHandle, index: int) -> None:
        """Add and bootstrap a new node with the next address and JMX port."""
        self._require(handle)
        name = node_name(index)
        logger.debug("bootstrapping %s", name)
        args = [
            "add", name,
            "-i", f"{self.config.ip_prefix}{index}",
            "-j", str(BOOTSTRAP_JMX_BASE_PORT + BOOTSTRAP_JMX_PORT_STEP * index),
            "-b",
        ]
        if handle.server.is_dse:
            args.append("--dse")
        self.ccm.exec(*args)

    def decommission_node(self, handle: ClusterHandle, index: int) -> None:
        """Decommission a node, forcing it on servers that otherwise refuse."""
        logger.debug("decommissioning %s", node_name(index))
        args = ["decommission"]
        if requires_forced_decommission(handle.server):
            args.append("--force")
        self._node(handle, index, *args)
