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

"""Constants, dependency loading, and dep_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

# -- Resolved paths --
PACKAGE_DIR = Path(__file__).resolve().parent
ASSETS_DIR = PACKAGE_DIR / "assets"


def load_dependencies() -> dict:
    """Load remote manifest URLs, charts and images from dependencies.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    deps_file = PACKAGE_DIR / "dependencies.yaml"
    with open(deps_file) as f:
        return yaml.safe_load(f)


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEPENDENCIES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEPENDENCIES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


# -- Environment --
ENV_PREFIX = "DRC_"

# -- Readiness --
DEFAULT_WAIT_TIMEOUT = "90s"
DEFAULT_READY_MAX_RETRIES = 12
DEFAULT_READY_POLL_INTERVAL_SECONDS = 5
DEFAULT_DOWNLOAD_TIMEOUT_SECONDS = 60

# -- Local files (relative to the working directory) --
DEFAULT_KIND_CONFIG = "kind-config.yaml"
DEFAULT_METRICS_MANIFEST = "components.yaml"
DEFAULT_METALLB_CONFIG = "metallb-config.yaml"
DEFAULT_ARGOCD_VALUES = "argocd-custom-values.yaml"
DEFAULT_DEMO_APP_MANIFEST = "argocd-demo-app.yaml"

# -- Metrics Server patch --
METRICS_SERVER_KIND = "Deployment"
METRICS_SERVER_NAME = "metrics-server"
METRICS_INSECURE_TLS_ARG = "--kubelet-insecure-tls"
METRICS_NODE_STATUS_PORT_ARG = "--kubelet-use-node-status-port"

# -- Namespaces --
NS_INGRESS_NGINX = "ingress-nginx"
NS_METALLB = "metallb-system"
NS_CERT_MANAGER = "cert-manager"
NS_ARGOCD = "argocd"
NS_MONITORING = "monitoring"
NS_LOGGING = "logging"
NS_KAFKA = "kafka"

# -- Helm repos --
HELM_REPO_METALLB = "metallb"
HELM_REPO_METALLB_URL = "https://metallb.github.io/metallb"
HELM_REPO_JETSTACK = "jetstack"
HELM_REPO_JETSTACK_URL = "https://charts.jetstack.io"
HELM_REPO_ARGO = "argo"
HELM_REPO_ARGO_URL = "https://argoproj.github.io/argo-helm"
HELM_REPO_PROMETHEUS = "prometheus-community"
HELM_REPO_PROMETHEUS_URL = "https://prometheus-community.github.io/helm-charts"
HELM_REPO_GRAFANA = "grafana"
HELM_REPO_GRAFANA_URL = "https://grafana.github.io/helm-charts"

# -- Helm releases and charts --
HELM_RELEASE_METALLB = "metallb"
HELM_CHART_METALLB = "metallb/metallb"
HELM_RELEASE_CERT_MANAGER = "cert-manager"
HELM_CHART_CERT_MANAGER = "jetstack/cert-manager"
HELM_RELEASE_ARGOCD = "argocd"
HELM_CHART_ARGOCD = "argo/argo-cd"
HELM_RELEASE_PROMETHEUS = "prometheus-stack"
HELM_CHART_PROMETHEUS = "prometheus-community/kube-prometheus-stack"
HELM_RELEASE_LOKI = "loki"
HELM_CHART_LOKI = "grafana/loki-stack"
HELM_RELEASE_STRIMZI = "strimzi-cluster-operator"

# -- Helm override values --
CERT_MANAGER_EXTRA_ARGS = (
    "extraArgs={--dns01-recursive-nameservers-only,"
    "--dns01-recursive-nameservers=8.8.8.8:53,1.1.1.1:53}"
)
LOKI_OVERRIDES = (
    "loki.enabled=true",
    "promtail.enabled=true",
    "promtail.config.server.http_listen_port=9080",
    "promtail.config.server.grpc_listen_port=0",
)

# -- Readiness selectors --
SELECTOR_INGRESS_CONTROLLER = "app.kubernetes.io/component=controller"
SELECTOR_CERT_MANAGER = "app.kubernetes.io/name=cert-manager"
SELECTOR_STRIMZI = "name=strimzi-cluster-operator"
SELECTOR_METALLB_CONTROLLER = "app.kubernetes.io/component=controller"
ARGOCD_SERVER_DEPLOYMENT = "deployment/argocd-server"

# -- MetalLB --
METALLB_POOL_KIND = "IPAddressPool"

# -- Argo CD --
ARGOCD_URL = "https://argocd.local"
