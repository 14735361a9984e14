# /*
# Copyright 2026 The devops-ready-cluster Authors.
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
cli.py - Unified CLI for a DevOps-ready local kind cluster.

Subcommands:
    cluster    Manage kind clusters (get, create, delete)
    install    Install add-ons (metrics, ingress, metallb, cert-manager, argocd,
               monitoring, logging, database, kafka, demo, all)
    manifest   Patch multi-document manifests (ensure-arg)

Environment Variables:
    Settings can be overridden via DRC_* environment variables, e.g.
    DRC_CLUSTER_NAME, DRC_WAIT_TIMEOUT, DRC_INTERACTIVE, DRC_METRICS_MANIFEST.

Examples:
    # Create a cluster and install everything
    devops-ready-cluster cluster create --name demo
    devops-ready-cluster install all

    # Unattended run, failing instead of prompting
    devops-ready-cluster --yes install all --skip kafka

    # Add a flag to the metrics-server container of a local manifest
    devops-ready-cluster manifest ensure-arg components.yaml --value=--kubelet-insecure-tls
"""

from __future__ import annotations

import logging
import sys

import typer

from devops_cluster import console
from devops_cluster.commands import cluster_cmd, install_cmd, manifest_cmd
from devops_cluster.config import RunOptions

app = typer.Typer(
    help="Create a local kind cluster and install a DevOps add-on catalog.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo tool output and enable debug logging"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Never prompt; fail where manual action is needed"),
) -> None:
    """Initialize logging and global options for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    ctx.obj = RunOptions(verbose=verbose, assume_yes=yes)


app.add_typer(cluster_cmd.app, name="cluster")
app.add_typer(install_cmd.app, name="install")
app.add_typer(manifest_cmd.app, name="manifest")


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
