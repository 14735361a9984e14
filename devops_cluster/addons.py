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

"""Installers for the add-on catalog (metrics, ingress, MetalLB, cert-manager, ...)."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import sh
from rich.panel import Panel
from tenacity import retry, stop_after_attempt, wait_fixed

from devops_cluster import console
from devops_cluster.config import AddonConfig
from devops_cluster.constants import (
    ARGOCD_SERVER_DEPLOYMENT,
    ARGOCD_URL,
    CERT_MANAGER_EXTRA_ARGS,
    HELM_CHART_ARGOCD,
    HELM_CHART_CERT_MANAGER,
    HELM_CHART_LOKI,
    HELM_CHART_METALLB,
    HELM_CHART_PROMETHEUS,
    HELM_RELEASE_ARGOCD,
    HELM_RELEASE_CERT_MANAGER,
    HELM_RELEASE_LOKI,
    HELM_RELEASE_METALLB,
    HELM_RELEASE_PROMETHEUS,
    HELM_RELEASE_STRIMZI,
    HELM_REPO_ARGO,
    HELM_REPO_ARGO_URL,
    HELM_REPO_GRAFANA,
    HELM_REPO_GRAFANA_URL,
    HELM_REPO_JETSTACK,
    HELM_REPO_JETSTACK_URL,
    HELM_REPO_METALLB,
    HELM_REPO_METALLB_URL,
    HELM_REPO_PROMETHEUS,
    HELM_REPO_PROMETHEUS_URL,
    LOKI_OVERRIDES,
    METALLB_POOL_KIND,
    METRICS_INSECURE_TLS_ARG,
    METRICS_NODE_STATUS_PORT_ARG,
    METRICS_SERVER_KIND,
    METRICS_SERVER_NAME,
    NS_ARGOCD,
    NS_CERT_MANAGER,
    NS_INGRESS_NGINX,
    NS_KAFKA,
    NS_LOGGING,
    NS_METALLB,
    NS_MONITORING,
    SELECTOR_CERT_MANAGER,
    SELECTOR_INGRESS_CONTROLLER,
    SELECTOR_METALLB_CONTROLLER,
    SELECTOR_STRIMZI,
    dep_value,
)
from devops_cluster.manifest import PatchOutcome, PatchReport, Selector, load_manifest, patch_manifest_file
from devops_cluster.utils import confirm_or_abort, download_file, materialize_asset, run_tool

METRICS_SERVER_SELECTOR = Selector(METRICS_SERVER_KIND, METRICS_SERVER_NAME)


# ============================================================================
# Internal helpers
# ============================================================================

def _run_step(message: str, cfg: AddonConfig, tool: str, *args: str) -> str:
    """Run one tool invocation, turning a non-zero exit into RuntimeError(message)."""
    try:
        return run_tool(tool, *args, verbose=cfg.verbose)
    except sh.ErrorReturnCode as err:
        raise RuntimeError(message) from err


def _add_helm_repo(cfg: AddonConfig, name: str, url: str, update: bool = False) -> None:
    _run_step(f"Error adding {name} Helm repo", cfg, "helm", "repo", "add", name, url, "--force-update")
    if update:
        _run_step("Error updating Helm repositories", cfg, "helm", "repo", "update", name)


def _helm_install(
    message: str,
    cfg: AddonConfig,
    release: str,
    chart: str,
    namespace: str,
    *extra: str,
) -> None:
    """Install or upgrade a helm release into its own namespace."""
    _run_step(
        message, cfg,
        "helm", "upgrade", "--install", release, chart,
        "--namespace", namespace,
        "--create-namespace",
        *extra,
    )


def _wait_ready(
    message: str,
    cfg: AddonConfig,
    namespace: str,
    *resource: str,
    condition: str = "ready",
) -> None:
    """Wait for a condition with ``kubectl wait``, retrying while resources appear.

    ``kubectl wait`` fails straight away when no resource matches yet, so the
    whole wait is retried ``cfg.ready_retries`` times.

    Args:
        message: Error message used when the resource never becomes ready.
        cfg: Add-on configuration with timeout and retry settings.
        namespace: Namespace holding the resource.
        *resource: Resource arguments (e.g. ``"pod", "--selector=..."``).
        condition: Condition name passed to ``--for=condition=``.

    Raises:
        RuntimeError: If the condition is not met after all retries.
    """
    @retry(
        stop=stop_after_attempt(cfg.ready_retries),
        wait=wait_fixed(cfg.ready_poll_seconds),
        reraise=True,
    )
    def _attempt() -> None:
        run_tool(
            "kubectl", "wait",
            "--namespace", namespace,
            f"--for=condition={condition}",
            *resource,
            f"--timeout={cfg.wait_timeout}",
            verbose=cfg.verbose,
        )

    try:
        _attempt()
    except sh.ErrorReturnCode as err:
        raise RuntimeError(message) from err


def _ask_manual_metrics_edit(cfg: AddonConfig) -> Callable[[PatchReport], None]:
    def _confirm(report: PatchReport) -> None:
        confirm_or_abort(
            [
                report.message,
                "The Metrics Server requires a modification to the components.yaml file.",
                f"Please add the argument `- {METRICS_INSECURE_TLS_ARG}` after "
                f"`- {METRICS_NODE_STATUS_PORT_ARG}` in {report.path}.",
            ],
            cfg.interactive,
        )
    return _confirm


def metallb_address_ranges(config_file: Path) -> list[str]:
    """Collect the addresses of every IPAddressPool in a MetalLB config file.

    Args:
        config_file: Multi-document MetalLB configuration.

    Returns:
        Address ranges in file order; empty if no pool declares any.
    """
    ranges: list[str] = []
    for doc in load_manifest(config_file):
        if not isinstance(doc, dict) or doc.get("kind") != METALLB_POOL_KIND:
            continue
        spec = doc.get("spec")
        addresses = spec.get("addresses") if isinstance(spec, dict) else None
        if isinstance(addresses, list):
            ranges.extend(str(address) for address in addresses)
    return ranges


# ============================================================================
# Metrics Server
# ============================================================================

def install_metrics_server(cfg: AddonConfig) -> None:
    """Download, patch and apply the Metrics Server manifest.

    kind kubelets serve self-signed certificates, so the deployment needs
    ``--kubelet-insecure-tls``. When the flag cannot be added automatically a
    human is asked to edit the file first.

    Args:
        cfg: Add-on configuration with the manifest path and URL.
    """
    console.print(Panel.fit("Installing Metrics Server", style="bold blue"))
    manifest_path = cfg.metrics_manifest
    if not manifest_path.exists():
        console.print(f"[yellow]ℹ️  Downloading Metrics Server {manifest_path}...[/yellow]")
        download_file(cfg.metrics_manifest_url, manifest_path, timeout=cfg.download_timeout)

    report = patch_manifest_file(
        manifest_path,
        METRICS_SERVER_SELECTOR,
        METRICS_INSECURE_TLS_ARG,
        confirm=_ask_manual_metrics_edit(cfg),
    )
    if report.outcome is PatchOutcome.CHANGED:
        console.print(f"[green]  ✓ Added {METRICS_INSECURE_TLS_ARG} to {manifest_path}[/green]")
    elif report.outcome is PatchOutcome.ALREADY_PRESENT:
        console.print(f"[yellow]   {manifest_path} already contains {METRICS_INSECURE_TLS_ARG}, skipping modification[/yellow]")

    _run_step("Error installing Metrics Server", cfg, "kubectl", "apply", "-f", str(manifest_path))
    console.print("[green]✅ Metrics Server installed[/green]")


# ============================================================================
# Networking
# ============================================================================

def install_ingress(cfg: AddonConfig) -> None:
    """Apply the kind ingress-nginx manifest and wait for the controller."""
    console.print(Panel.fit("Installing Ingress Controller", style="bold blue"))
    _run_step(
        "Error installing Ingress Controller", cfg,
        "kubectl", "apply", "-f", dep_value("ingress_nginx", "manifest_url"),
    )
    console.print("[yellow]ℹ️  Waiting for Ingress Controller to be ready...[/yellow]")
    _wait_ready(
        "Ingress Controller is not ready", cfg, NS_INGRESS_NGINX,
        "pod", f"--selector={SELECTOR_INGRESS_CONTROLLER}",
    )
    console.print("[green]✅ Ingress Controller installed[/green]")


def _apply_metallb_config(cfg: AddonConfig, config_file: Path) -> None:
    """Apply the address pool, retrying until the MetalLB webhook answers."""

    @retry(
        stop=stop_after_attempt(cfg.ready_retries),
        wait=wait_fixed(cfg.ready_poll_seconds),
        reraise=True,
    )
    def _attempt() -> None:
        _run_step("Error applying MetalLB configuration", cfg, "kubectl", "apply", "-f", str(config_file))

    _attempt()


def install_metallb(cfg: AddonConfig) -> None:
    """Install MetalLB and apply a human-confirmed address pool.

    Args:
        cfg: Add-on configuration with the MetalLB config path.
    """
    console.print(Panel.fit("Installing MetalLB", style="bold blue"))
    _add_helm_repo(cfg, HELM_REPO_METALLB, HELM_REPO_METALLB_URL)
    _helm_install("Error installing MetalLB", cfg, HELM_RELEASE_METALLB, HELM_CHART_METALLB, NS_METALLB)

    console.print("[yellow]ℹ️  Waiting for MetalLB controller to be ready...[/yellow]")
    _wait_ready(
        "MetalLB is not ready", cfg, NS_METALLB,
        "pod", f"--selector={SELECTOR_METALLB_CONTROLLER}",
    )

    config_file = materialize_asset(cfg.metallb_config, "metallb-config.yaml")
    ranges = metallb_address_ranges(config_file)
    if ranges and not cfg.interactive:
        console.print(f"[yellow]ℹ️  Using address range {', '.join(ranges)}[/yellow]")
    else:
        question = (
            f"Are you sure you want to use the address range {', '.join(ranges)}?"
            if ranges else f"No {METALLB_POOL_KIND} addresses found in {config_file}."
        )
        confirm_or_abort([question, f"If not, edit {config_file} before pressing Enter."], cfg.interactive)

    _apply_metallb_config(cfg, config_file)
    console.print("[green]✅ MetalLB installed[/green]")


# ============================================================================
# Certificates and GitOps
# ============================================================================

def install_cert_manager(cfg: AddonConfig) -> None:
    """Install cert-manager with CRDs and recursive DNS01 nameservers."""
    console.print(Panel.fit("Installing cert-manager", style="bold blue"))
    _add_helm_repo(cfg, HELM_REPO_JETSTACK, HELM_REPO_JETSTACK_URL)
    _helm_install(
        "Error installing cert-manager", cfg,
        HELM_RELEASE_CERT_MANAGER, HELM_CHART_CERT_MANAGER, NS_CERT_MANAGER,
        "--set", "crds.enabled=true",
        "--set", CERT_MANAGER_EXTRA_ARGS,
    )
    console.print("[yellow]ℹ️  cert-manager installation initiated. Waiting for readiness check...[/yellow]")
    _wait_ready(
        "cert-manager is not ready", cfg, NS_CERT_MANAGER,
        "pod", f"--selector={SELECTOR_CERT_MANAGER}",
    )
    console.print("[green]✅ cert-manager installed[/green]")


def install_argocd(cfg: AddonConfig) -> None:
    """Install Argo CD with the custom values file.

    A server that is not available in time only produces a warning.
    """
    console.print(Panel.fit("Installing Argo CD", style="bold blue"))
    values_file = materialize_asset(cfg.argocd_values, "argocd-custom-values.yaml")
    _add_helm_repo(cfg, HELM_REPO_ARGO, HELM_REPO_ARGO_URL)
    _helm_install(
        "Error installing Argo CD", cfg,
        HELM_RELEASE_ARGOCD, HELM_CHART_ARGOCD, NS_ARGOCD,
        "-f", str(values_file),
    )
    console.print("[yellow]ℹ️  Argo CD installation initiated. Waiting for readiness check...[/yellow]")
    try:
        _wait_ready(
            "Argo CD server is not ready yet", cfg, NS_ARGOCD,
            ARGOCD_SERVER_DEPLOYMENT, condition="available",
        )
    except RuntimeError as err:
        console.print(f"[yellow]⚠️  {err}[/yellow]")

    console.print("[green]✅ Argo CD installed[/green]")
    console.print(f"Argo CD is accessible at: {ARGOCD_URL}")
    console.print("[yellow]⚠️  Ensure that 'argocd.local' resolves to the correct IP by:[/yellow]")
    console.print("[yellow]   1. Editing your /etc/hosts file[/yellow]")
    console.print("[yellow]   2. Configuring DNS correctly[/yellow]")
    console.print(f"[yellow]   3. Modifying '{values_file}' to use a different domain if needed[/yellow]")
    console.print("To retrieve the initial admin password, run:")
    console.print(
        'kubectl -n argocd get secret argocd-initial-admin-secret -o jsonpath="{.data.password}" | base64 -d',
        markup=False, highlight=False,
    )


def install_demo_app(cfg: AddonConfig) -> None:
    """Deploy the Argo CD demo Application."""
    console.print(Panel.fit("Deploying Argo CD demo app", style="bold blue"))
    manifest_path = materialize_asset(cfg.demo_app_manifest, "argocd-demo-app.yaml")
    _run_step("Error deploying demo app", cfg, "kubectl", "apply", "-f", str(manifest_path))
    console.print("[green]✅ Demo app deployed[/green]")


# ============================================================================
# Observability
# ============================================================================

def install_monitoring(cfg: AddonConfig) -> None:
    """Install the Prometheus and Grafana stack."""
    console.print(Panel.fit("Installing Prometheus and Grafana monitoring stack", style="bold blue"))
    _add_helm_repo(cfg, HELM_REPO_PROMETHEUS, HELM_REPO_PROMETHEUS_URL, update=True)
    _helm_install(
        "Error installing Prometheus stack", cfg,
        HELM_RELEASE_PROMETHEUS, HELM_CHART_PROMETHEUS, NS_MONITORING,
    )
    console.print("[green]✅ Prometheus and Grafana installed[/green]")

    console.print("\n[bold]Prometheus dashboard:[/bold] http://localhost:9090")
    console.print("Forward the Prometheus service with:")
    console.print(
        "kubectl port-forward svc/prometheus-stack-kube-prom-prometheus -n monitoring 9090:9090",
        markup=False, highlight=False,
    )
    console.print("\n[bold]Grafana dashboard:[/bold] http://localhost:3000")
    console.print("Forward the Grafana service with:")
    console.print(
        'export POD_NAME=$(kubectl --namespace monitoring get pod -l '
        '"app.kubernetes.io/name=grafana,app.kubernetes.io/instance=prometheus-stack" -o name)',
        markup=False, highlight=False,
    )
    console.print("kubectl --namespace monitoring port-forward $POD_NAME 3000:3000", markup=False, highlight=False)
    console.print("\n[bold]Grafana admin password:[/bold]")
    console.print(
        'kubectl --namespace monitoring get secrets prometheus-stack-grafana '
        '-o jsonpath="{.data.admin-password}" | base64 -d ; echo',
        markup=False, highlight=False,
    )


def install_logging(cfg: AddonConfig) -> None:
    """Install Grafana Loki with promtail."""
    console.print(Panel.fit("Installing Grafana Loki for logging", style="bold blue"))
    _add_helm_repo(cfg, HELM_REPO_GRAFANA, HELM_REPO_GRAFANA_URL, update=True)
    set_args = [item for value in LOKI_OVERRIDES for item in ("--set", value)]
    _helm_install(
        "Error installing Loki stack", cfg,
        HELM_RELEASE_LOKI, HELM_CHART_LOKI, NS_LOGGING,
        *set_args,
    )
    console.print("[green]✅ Grafana Loki installed[/green]")
    console.print("To check logs, run:")
    console.print("kubectl -n logging logs -l app.kubernetes.io/name=promtail", markup=False, highlight=False)


# ============================================================================
# Data services
# ============================================================================

def install_database(cfg: AddonConfig) -> None:
    """Apply the CloudNativePG operator manifest server-side."""
    console.print(Panel.fit("Installing CloudNativePG", style="bold blue"))
    _run_step(
        "Error applying CloudNativePG manifests", cfg,
        "kubectl", "apply", "--server-side", "-f", dep_value("cloudnative_pg", "manifest_url"),
    )
    console.print("[green]✅ CloudNativePG installed[/green]")
    console.print("[yellow]⚠️  To manage CloudNativePG more easily, install the cnpg plugin:[/yellow]")
    console.print(
        f"curl -sSfL {dep_value('cloudnative_pg', 'plugin_install_url')} | sudo sh -s -- -b /usr/local/bin",
        markup=False, highlight=False,
    )
    console.print("Once installed, check a PostgreSQL cluster with:")
    console.print("kubectl cnpg status <CNPG_CLUSTER> -n <NAMESPACE>", markup=False, highlight=False)


def install_kafka(cfg: AddonConfig) -> None:
    """Install the Strimzi Kafka operator and wait for it."""
    console.print(Panel.fit("Installing Kafka (Strimzi operator)", style="bold blue"))
    _helm_install(
        "Error installing Kafka", cfg,
        HELM_RELEASE_STRIMZI, dep_value("strimzi", "chart"), NS_KAFKA,
        "--set", f"replicas={dep_value('strimzi', 'replicas', default=1)}",
    )
    _wait_ready(
        "Strimzi cluster operator is not ready", cfg, NS_KAFKA,
        "pod", f"--selector={SELECTOR_STRIMZI}",
    )
    console.print("[green]✅ Kafka operator installed[/green]")

    image = dep_value("strimzi", "kafka_image")
    bootstrap = "--bootstrap-server my-cluster-kafka-bootstrap:9092 --topic my-topic"
    hints = [
        ("To deploy a Kafka cluster, run:",
         f"kubectl apply -f {dep_value('strimzi', 'example_cluster_url')} -n kafka"),
        ("To produce messages, run:",
         f"kubectl -n kafka run kafka-producer -ti --image={image} --rm=true --restart=Never "
         f"-- bin/kafka-console-producer.sh {bootstrap}"),
        ("To consume messages, run:",
         f"kubectl -n kafka run kafka-consumer -ti --image={image} --rm=true --restart=Never "
         f"-- bin/kafka-console-consumer.sh {bootstrap} --from-beginning"),
        ("To delete the Kafka cluster, run:", "kubectl delete kafka my-cluster -n kafka"),
    ]
    for title, command in hints:
        console.print(title)
        console.print(command, markup=False, highlight=False)
