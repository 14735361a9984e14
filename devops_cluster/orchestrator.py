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

"""Orchestration of the add-on catalog into the install-all workflow."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from rich.panel import Panel

from devops_cluster import console
from devops_cluster import addons
from devops_cluster.config import AddonConfig
from devops_cluster.utils import require_command

# Catalog entries keyed by CLI name.
ADDONS: dict[str, Callable[[AddonConfig], None]] = {
    "metrics": addons.install_metrics_server,
    "ingress": addons.install_ingress,
    "metallb": addons.install_metallb,
    "cert-manager": addons.install_cert_manager,
    "argocd": addons.install_argocd,
    "database": addons.install_database,
    "kafka": addons.install_kafka,
    "monitoring": addons.install_monitoring,
    "logging": addons.install_logging,
    "demo": addons.install_demo_app,
}

INSTALL_ALL_ORDER: tuple[str, ...] = (
    "metrics",
    "ingress",
    "metallb",
    "cert-manager",
    "argocd",
    "database",
    "kafka",
    "monitoring",
    "logging",
)


def addon_installer(name: str) -> Callable[[AddonConfig], None]:
    """Return the install function for a catalog entry.

    Raises:
        KeyError: If *name* is not in the catalog.
    """
    return ADDONS[name]


def plan_install_all(skip: Iterable[str] = ()) -> list[str]:
    """Ordered add-ons for ``install all`` minus the skipped ones.

    Raises:
        ValueError: If a skipped name is not part of ``install all``.
    """
    skip = set(skip)
    unknown = skip.difference(INSTALL_ALL_ORDER)
    if unknown:
        raise ValueError(f"Unknown add-on(s) to skip: {', '.join(sorted(unknown))}")
    return [name for name in INSTALL_ALL_ORDER if name not in skip]


def run_install_all(cfg: AddonConfig, skip: Iterable[str] = ()) -> list[str]:
    """Install every catalog add-on in order, stopping at the first failure.

    Args:
        cfg: Add-on configuration shared by every step.
        skip: Add-on names to leave out.

    Returns:
        Names of the add-ons that were installed.

    Raises:
        RuntimeError: If any step fails.
    """
    steps = plan_install_all(skip)

    console.print(Panel.fit("Checking prerequisites", style="bold blue"))
    for cmd in ("kubectl", "helm"):
        require_command(cmd)
    console.print("[green]✅ All required tools are available[/green]")
    console.print(f"[yellow]ℹ️  Installing: {', '.join(steps)}[/yellow]")

    for name in steps:
        addon_installer(name)(cfg)
    console.print(f"[green]✅ Installed {len(steps)} add-ons[/green]")
    return steps
