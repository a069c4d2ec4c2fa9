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

"""Embedded ADS subcommands (run, kinit, klist, kdestroy)."""

from __future__ import annotations

import threading
from pathlib import Path

import typer

from ccm_harness import console
from ccm_harness.ads import EmbeddedAds, KerberosContext
from ccm_harness.config import AdsConfig
from ccm_harness.constants import KDESTROY_EXECUTABLE, KINIT_EXECUTABLE, KLIST_EXECUTABLE
from ccm_harness.utils import require_command

app = typer.Typer(help="Embedded ADS server and Kerberos tickets.")

_CONFDIR = typer.Option(..., "--confdir", help="Working directory printed by 'ads run'")


@app.command("run")
def run() -> None:
    """Start the server, print its krb5.conf, and block until interrupted."""
    config = AdsConfig()
    require_command(config.java)
    ads = EmbeddedAds(config)
    try:
        context = ads.start()
        console.print(f"   export KRB5_CONFIG={context.krb5_config}")
        console.print(f"   --confdir {context.confdir}")
        console.print("[yellow]   Press Ctrl+C to stop[/yellow]")
        threading.Event().wait()
    except KeyboardInterrupt:
        console.print("[yellow]\u2139\ufe0f  Interrupted[/yellow]")
    finally:
        if ads.process is not None:
            ads.stop()


@app.command("kinit")
def kinit(
    username: str = typer.Argument(..., help="Keytab owner, e.g. cassandra"),
    principal: str = typer.Argument(..., help="Principal, e.g. cassandra@DATASTAX.COM"),
    confdir: Path = _CONFDIR,
) -> None:
    """Acquire a ticket from a generated keytab."""
    require_command(KINIT_EXECUTABLE)
    EmbeddedAds().acquire_ticket(KerberosContext(confdir), username, principal)
    console.print(f"[green]\u2705 Ticket acquired for {principal}[/green]")


@app.command("klist")
def klist(confdir: Path = _CONFDIR) -> None:
    """List the cached tickets."""
    require_command(KLIST_EXECUTABLE)
    typer.echo(EmbeddedAds().list_tickets(KerberosContext(confdir)), nl=False)


@app.command("kdestroy")
def kdestroy(
    principal: str | None = typer.Argument(None, help="Principal whose tickets to destroy"),
    confdir: Path = _CONFDIR,
) -> None:
    """Destroy cached tickets."""
    require_command(KDESTROY_EXECUTABLE)
    EmbeddedAds().destroy_ticket(KerberosContext(confdir), principal)
    console.print("[green]\u2705 Tickets destroyed[/green]")
