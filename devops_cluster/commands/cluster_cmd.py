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

"""Cluster subcommands (get, create, delete)."""

from __future__ import annotations

from pathlib import Path

import typer

from devops_cluster.cluster import create_cluster, delete_cluster, get_clusters
from devops_cluster.config import ClusterConfig, apply_run_options

app = typer.Typer(help="Manage kind clusters.")


def _cluster_config(ctx: typer.Context, name: str | None = None, config: Path | None = None) -> ClusterConfig:
    cluster_cfg = apply_run_options(ClusterConfig(), ctx.obj)
    overrides: dict = {}
    if name is not None:
        overrides["cluster_name"] = name
    if config is not None:
        overrides["kind_config"] = config
    if overrides:
        cluster_cfg = cluster_cfg.model_copy(update=overrides)
    return cluster_cfg


@app.command("get")
def get(ctx: typer.Context) -> None:
    """List kind clusters."""
    get_clusters(_cluster_config(ctx))


@app.command()
def create(
    ctx: typer.Context,
    name: str | None = typer.Option(None, "--name", help="Cluster name (required unless DRC_CLUSTER_NAME is set)"),
    config: Path | None = typer.Option(None, "--config", help="kind config file (default: kind-config.yaml)"),
) -> None:
    """Create a kind cluster."""
    create_cluster(_cluster_config(ctx, name, config))


@app.command()
def delete(
    ctx: typer.Context,
    name: str | None = typer.Option(None, "--name", help="Cluster name (required unless DRC_CLUSTER_NAME is set)"),
) -> None:
    """Delete a kind cluster."""
    delete_cluster(_cluster_config(ctx, name))
