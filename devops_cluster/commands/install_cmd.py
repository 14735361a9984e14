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

"""Install subcommands, one per catalog add-on plus ``all``."""

from __future__ import annotations

from pathlib import Path

import typer

from devops_cluster import addons
from devops_cluster.config import AddonConfig, apply_run_options
from devops_cluster.orchestrator import (
    INSTALL_ALL_ORDER,
    plan_install_all,
    run_install_all,
)

app = typer.Typer(help="Install add-ons into the current cluster.")


def _addon_config(ctx: typer.Context, **overrides) -> AddonConfig:
    addon_cfg = apply_run_options(AddonConfig(), ctx.obj)
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if overrides:
        addon_cfg = addon_cfg.model_copy(update=overrides)
    return addon_cfg


@app.command()
def metrics(
    ctx: typer.Context,
    manifest: Path | None = typer.Option(None, "--manifest", help="Local components.yaml path"),
) -> None:
    """Install Metrics Server (patched for kind kubelets)."""
    addons.install_metrics_server(_addon_config(ctx, metrics_manifest=manifest))


@app.command()
def ingress(ctx: typer.Context) -> None:
    """Install the ingress-nginx controller."""
    addons.install_ingress(_addon_config(ctx))


@app.command()
def metallb(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, "--config", help="MetalLB address pool file"),
) -> None:
    """Install MetalLB and apply its address pool."""
    addons.install_metallb(_addon_config(ctx, metallb_config=config))


@app.command("cert-manager")
def cert_manager(ctx: typer.Context) -> None:
    """Install cert-manager."""
    addons.install_cert_manager(_addon_config(ctx))


@app.command()
def argocd(
    ctx: typer.Context,
    values: Path | None = typer.Option(None, "--values", help="Argo CD helm values file"),
) -> None:
    """Install Argo CD."""
    addons.install_argocd(_addon_config(ctx, argocd_values=values))


@app.command()
def monitoring(ctx: typer.Context) -> None:
    """Install the Prometheus and Grafana stack."""
    addons.install_monitoring(_addon_config(ctx))


@app.command()
def logging(ctx: typer.Context) -> None:
    """Install Grafana Loki and promtail."""
    addons.install_logging(_addon_config(ctx))


@app.command()
def database(ctx: typer.Context) -> None:
    """Install the CloudNativePG operator."""
    addons.install_database(_addon_config(ctx))


@app.command()
def kafka(ctx: typer.Context) -> None:
    """Install the Strimzi Kafka operator."""
    addons.install_kafka(_addon_config(ctx))


@app.command()
def demo(
    ctx: typer.Context,
    manifest: Path | None = typer.Option(None, "--manifest", help="Argo CD Application manifest"),
) -> None:
    """Deploy the Argo CD demo application."""
    addons.install_demo_app(_addon_config(ctx, demo_app_manifest=manifest))


@app.command("all")
def install_all(
    ctx: typer.Context,
    skip: list[str] = typer.Option(
        [], "--skip", help=f"Add-on to leave out (repeatable): {', '.join(INSTALL_ALL_ORDER)}"),
) -> None:
    """Install every add-on except the demo app, in dependency order."""
    try:
        plan_install_all(skip)
    except ValueError as err:
        raise typer.BadParameter(str(err), param_hint="--skip") from err
    run_install_all(_addon_config(ctx), skip)
