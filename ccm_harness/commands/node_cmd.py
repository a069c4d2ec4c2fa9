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

"""Node subcommands acting on the current ccm cluster."""

from __future__ import annotations

import typer

from ccm_harness import console
from ccm_harness.ccm import ClusterController, ClusterHandle
from ccm_harness.commands.cluster_cmd import _controller

app = typer.Typer(help="Per-node operations on the current cluster.")


def _attached() -> tuple[ClusterController, ClusterHandle]:
    controller = _controller()
    return controller, controller.attach()


@app.command("start")
def start(index: int = typer.Argument(..., help="1-based node index")) -> None:
    """Start a node and wait for its binary protocol."""
    controller, handle = _attached()
    controller.start_node(handle, index)
    console.print(f"[green]\u2705 node{index} started[/green]")


@app.command("stop")
def stop(index: int = typer.Argument(..., help="1-based node index")) -> None:
    """Stop a node."""
    controller, handle = _attached()
    controller.stop_node(handle, index)
    console.print(f"[green]\u2705 node{index} stopped[/green]")


@app.command("pause")
def pause(index: int = typer.Argument(..., help="1-based node index")) -> None:
    """Pause (SIGSTOP) a node."""
    controller, handle = _attached()
    controller.pause_node(handle, index)


@app.command("resume")
def resume(index: int = typer.Argument(..., help="1-based node index")) -> None:
    """Resume a paused node."""
    controller, handle = _attached()
    controller.resume_node(handle, index)


@app.command("bootstrap")
def bootstrap(index: int = typer.Argument(..., help="1-based index of the new node")) -> None:
    """Add a new node and bootstrap it into the cluster."""
    controller, handle = _attached()
    controller.bootstrap_node(handle, index)
    console.print(f"[green]\u2705 node{index} bootstrapped[/green]")


@app.command("decommission")
def decommission(index: int = typer.Argument(..., help="1-based node index")) -> None:
    """Decommission a node."""
    controller, handle = _attached()
    controller.decommission_node(handle, index)
    console.print(f"[green]\u2705 node{index} decommissioned[/green]")


@app.command("workload")
def workload(
    index: int = typer.Argument(..., help="1-based node index"),
    workloads: list[str] = typer.Argument(..., help="Workloads such as graph or spark"),
) -> None:
    """Set the DSE workloads of a node."""
    controller, handle = _attached()
    controller.set_workload(handle, index, workloads)


@app.command("log")
def log(index: int = typer.Argument(1, help="1-based node index")) -> None:
    """Print the system log of a node."""
    controller, handle = _attached()
    typer.echo(controller.show_log(handle, index), nl=False)
