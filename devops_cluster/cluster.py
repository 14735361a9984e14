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

"""kind cluster lifecycle."""

from __future__ import annotations

import sh
from rich.panel import Panel

from devops_cluster import console
from devops_cluster.config import ClusterConfig
from devops_cluster.utils import materialize_asset, run_tool


def _require_name(cfg: ClusterConfig) -> str:
    if not cfg.cluster_name:
        raise RuntimeError("Cluster name is required (--name or DRC_CLUSTER_NAME)")
    return cfg.cluster_name


def get_clusters(cfg: ClusterConfig) -> list[str]:
    """List existing kind clusters.

    Args:
        cfg: Cluster configuration (only verbosity is used).

    Returns:
        Names of the kind clusters found.
    """
    console.print("[yellow]ℹ️  Getting Kubernetes clusters with kind...[/yellow]")
    try:
        output = run_tool("kind", "get", "clusters", verbose=cfg.verbose)
    except sh.ErrorReturnCode as err:
        raise RuntimeError("Error listing clusters") from err

    clusters = output.split()
    if not clusters:
        console.print("[yellow]No kind clusters found.[/yellow]")
    else:
        console.print("[green]Found clusters:[/green]")
        for name in clusters:
            console.print(f"  {name}")
    return clusters


def create_cluster(cfg: ClusterConfig) -> None:
    """Create a kind cluster from the kind config file.

    Args:
        cfg: Cluster configuration with the cluster name and config path.

    Raises:
        RuntimeError: If no name is configured or kind fails.
    """
    name = _require_name(cfg)
    console.print(Panel.fit(f"Creating kind cluster '{name}'", style="bold blue"))
    kind_config = materialize_asset(cfg.kind_config, "kind-config.yaml")
    try:
        run_tool(
            "kind", "create", "cluster",
            "--name", name,
            "--config", str(kind_config),
            verbose=cfg.verbose,
        )
    except sh.ErrorReturnCode as err:
        raise RuntimeError(f"Error creating cluster '{name}'") from err
    console.print(f"[green]✅ Cluster '{name}' created successfully[/green]")


def delete_cluster(cfg: ClusterConfig) -> None:
    """Delete a kind cluster.

    Args:
        cfg: Cluster configuration with the cluster name.

    Raises:
        RuntimeError: If no name is configured or kind fails.
    """
    name = _require_name(cfg)
    console.print(f"[yellow]ℹ️  Deleting kind cluster '{name}'...[/yellow]")
    try:
        run_tool("kind", "delete", "cluster", "--name", name, verbose=cfg.verbose)
    except sh.ErrorReturnCode as err:
        raise RuntimeError(f"Error deleting cluster '{name}'") from err
    console.print(f"[green]✅ Cluster '{name}' deleted successfully[/green]")
