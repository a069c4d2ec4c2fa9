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

"""Cluster subcommands (up, remove, wait)."""

from __future__ import annotations

import typer

from ccm_harness import console
from ccm_harness.ccm import ClusterController
from ccm_harness.config import CcmConfig, ClusterOptions
from ccm_harness.utils import require_command

app = typer.Typer(help="Provision and remove ccm clusters.")


def _controller() -> ClusterController:
    config = CcmConfig()
    require_command(config.executable)
    return ClusterController(config)


def parse_topology(nodes: str) -> int | str:
    """Turn the ``--nodes`` value into a count or a per-datacenter topology."""
    return int(nodes) if nodes.isdigit() else nodes


@app.command("up")
def up(
    nodes: str = typer.Option("1", "--nodes", help="Node count, or per-datacenter counts like 3:4"),
    name: str | None = typer.Option(None, "--name", help="Cluster name (random by default)"),
    vnodes: bool = typer.Option(False, "--vnodes", help="Populate with virtual nodes"),
    ssl: bool = typer.Option(False, "--ssl", help="Enable client encryption with the ccm ssl material"),
    partitioner: str | None = typer.Option(None, "--partitioner", help="Partitioner class"),
    yaml: list[str] | None = typer.Option(None, "--yaml", help="cassandra.yaml override (key:value)"),
    dse_yaml: list[str] | None = typer.Option(None, "--dse-yaml", help="dse.yaml override (key:value)"),
    jvm_arg: list[str] | None = typer.Option(None, "--jvm-arg", help="Extra JVM argument for start"),
    workload: list[str] | None = typer.Option(None, "--workload", help="DSE workload"),
    sleep: float = typer.Option(0, "--sleep", help="Seconds to pause after create, populate and start"),
    ip_format: str | None = typer.Option(None, "--ip-format", help="Custom populate --ip-format"),
) -> None:
    """Remove any current cluster, then create and start a new one."""
    options = ClusterOptions(
        vnodes=vnodes,
        ssl=ssl,
        partitioner=partitioner,
        yaml=yaml or (),
        dse_yaml=dse_yaml or (),
        jvm_args=jvm_arg or (),
        workloads=workload or (),
        sleep=sleep,
        ip_format=ip_format,
    )
    handle = _controller().provision(parse_topology(nodes), options, name=name)
    console.print(f"[green]   Cluster: {handle.name} ({handle.topology})[/green]")


@app.command("remove")
def remove() -> None:
    """Remove the current ccm cluster."""
    controller = _controller()
    controller.remove(controller.attach())


@app.command("wait")
def wait() -> None:
    """Wait until node1 of the current cluster accepts CQL clients."""
    controller = _controller()
    controller.wait_for_up(controller.attach())
    console.print("[green]\u2705 CQL native protocol is up[/green]")
