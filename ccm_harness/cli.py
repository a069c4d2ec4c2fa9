#!/usr/bin/env python3
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

"""
cli.py - Command line access to ccm clusters and the embedded ADS server.

Subcommands:
    cluster    Provision, wait for, and remove ccm clusters
    node       Per-node operations on the current cluster
    ads        Run the embedded ADS server and manage Kerberos tickets

Examples:
    # Three node cluster with vnodes
    ccm-harness cluster up --nodes 3 --vnodes

    # Two datacenters, three and four nodes
    ccm-harness cluster up --nodes 3:4

    # Decommission node 2 of the current cluster
    ccm-harness node decommission 2

    # Embedded ADS until interrupted
    ccm-harness ads run

Environment Variables:
    CCM_VERSION, CCM_IS_DSE, CCM_INSTALL_DIR, CCM_PATH, ADS_JAR, TEST_TRACE
    (see ccm_harness.config for the full list)
"""

from __future__ import annotations

import sys

import typer

from ccm_harness import configure_logging, console
from ccm_harness.commands import ads_cmd, cluster_cmd, node_cmd

app = typer.Typer(
    help="Provision ccm clusters and embedded ADS servers for driver tests.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    trace: bool = typer.Option(False, "--trace", help="Log every command and its output"),
) -> None:
    """Initialize logging for all subcommands."""
    configure_logging(True if trace else None)


app.add_typer(cluster_cmd.app, name="cluster")
app.add_typer(node_cmd.app, name="node")
app.add_typer(ads_cmd.app, name="ads")


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]\u274c {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
