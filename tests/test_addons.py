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
Tests for the add-on installers. External tools are never executed.
"""

import pytest

from devops_cluster import addons, console
from devops_cluster.constants import dep_value
from devops_cluster.manifest import find_target, parse


@pytest.fixture(autouse=True)
def tools(monkeypatch, recorder):
    monkeypatch.setattr(addons, "run_tool", recorder)
    return recorder


class TestMetricsServer:
    """Tests for install_metrics_server."""

    def test_patches_local_manifest_then_applies(self, addon_cfg, metrics_manifest_yaml, tools):
        addon_cfg.metrics_manifest.write_text(metrics_manifest_yaml)

        addons.install_metrics_server(addon_cfg)

        docs = parse(addon_cfg.metrics_manifest.read_bytes())
        deployment = find_target(docs, addons.METRICS_SERVER_SELECTOR)
        assert deployment["spec"]["template"]["spec"]["containers"][0]["args"] == [
            "--cert-dir=/tmp",
            "--kubelet-use-node-status-port",
            "--kubelet-insecure-tls",
        ]
        assert tools.commands("kubectl") == [("apply", "-f", str(addon_cfg.metrics_manifest))]

    def test_downloads_when_missing(self, addon_cfg, metrics_manifest_yaml, monkeypatch):
        downloads = []

        def _download(url, dest, timeout=60):
            downloads.append(url)
            dest.write_text(metrics_manifest_yaml)

        monkeypatch.setattr(addons, "download_file", _download)
        addons.install_metrics_server(addon_cfg)
        assert downloads == ["https://example.invalid/components.yaml"]
        assert b"--kubelet-insecure-tls" in addon_cfg.metrics_manifest.read_bytes()

    def test_existing_manifest_is_not_downloaded_again(self, addon_cfg, metrics_manifest_yaml, monkeypatch):
        addon_cfg.metrics_manifest.write_text(metrics_manifest_yaml)

        def _download(url, dest, timeout=60):
            raise AssertionError("should not download")

        monkeypatch.setattr(addons, "download_file", _download)
        addons.install_metrics_server(addon_cfg)

    def test_unexpected_structure_aborts_when_non_interactive(self, addon_cfg, tools):
        addon_cfg.metrics_manifest.write_text("kind: Deployment\nmetadata:\n  name: something-else\n")
        with pytest.raises(RuntimeError, match="Manual confirmation required"):
            addons.install_metrics_server(addon_cfg)
        assert tools.commands("kubectl") == []

    def test_unexpected_structure_waits_for_human(self, addon_cfg, tools, monkeypatch):
        addon_cfg = addon_cfg.model_copy(update={"interactive": True})
        addon_cfg.metrics_manifest.write_text("kind: Deployment\nmetadata:\n  name: metrics-server\nspec: {}\n")
        prompts = []
        monkeypatch.setattr(console, "input", lambda prompt="", **kwargs: prompts.append(prompt) or "")

        addons.install_metrics_server(addon_cfg)

        assert len(prompts) == 1
        assert tools.commands("kubectl") == [("apply", "-f", str(addon_cfg.metrics_manifest))]

    def test_apply_failure_is_fatal(self, addon_cfg, metrics_manifest_yaml, tools):
        addon_cfg.metrics_manifest.write_text(metrics_manifest_yaml)
        tools.fail("kubectl", "apply")
        with pytest.raises(RuntimeError, match="Error installing Metrics Server"):
            addons.install_metrics_server(addon_cfg)


class TestHelmAddons:
    """Tests for the helm-based installers."""

    def test_cert_manager(self, addon_cfg, tools):
        addons.install_cert_manager(addon_cfg)
        helm = tools.commands("helm")
        assert helm[0] == ("repo", "add", "jetstack", "https://charts.jetstack.io", "--force-update")
        assert helm[1] == (
            "upgrade", "--install", "cert-manager", "jetstack/cert-manager",
            "--namespace", "cert-manager",
            "--create-namespace",
            "--set", "crds.enabled=true",
            "--set",
            "extraArgs={--dns01-recursive-nameservers-only,--dns01-recursive-nameservers=8.8.8.8:53,1.1.1.1:53}",
        )
        wait = tools.commands("kubectl")[0]
        assert wait[:4] == ("wait", "--namespace", "cert-manager", "--for=condition=ready")
        assert "--selector=app.kubernetes.io/name=cert-manager" in wait
        assert wait[-1] == "--timeout=90s"

    def test_logging_overrides(self, addon_cfg, tools):
        addons.install_logging(addon_cfg)
        helm = tools.commands("helm")
        assert helm[1] == ("repo", "update", "grafana")
        install = helm[2]
        assert install[:4] == ("upgrade", "--install", "loki", "grafana/loki-stack")
        assert install.count("--set") == 4
        assert "promtail.config.server.grpc_listen_port=0" in install

    def test_monitoring(self, addon_cfg, tools):
        addons.install_monitoring(addon_cfg)
        install = tools.commands("helm")[-1]
        assert install[:6] == (
            "upgrade", "--install", "prometheus-stack",
            "prometheus-community/kube-prometheus-stack", "--namespace", "monitoring",
        )

    def test_argocd_uses_values_file(self, addon_cfg, tools):
        addons.install_argocd(addon_cfg)
        install = tools.commands("helm")[-1]
        assert install[-2:] == ("-f", str(addon_cfg.argocd_values))
        assert addon_cfg.argocd_values.exists()

    def test_argocd_wait_failure_is_only_a_warning(self, addon_cfg, tools):
        tools.fail("kubectl", "wait", times=addon_cfg.ready_retries)
        addons.install_argocd(addon_cfg)
        waits = tools.commands("kubectl")
        assert len(waits) == addon_cfg.ready_retries
        assert "--for=condition=available" in waits[0]

    def test_kafka(self, addon_cfg, tools):
        addons.install_kafka(addon_cfg)
        install = tools.commands("helm")[0]
        assert install[3] == dep_value("strimzi", "chart")
        assert install[-2:] == ("--set", "replicas=2")
        assert "--selector=name=strimzi-cluster-operator" in tools.commands("kubectl")[0]

    def test_install_failure_is_fatal(self, addon_cfg, tools):
        tools.fail("helm", "upgrade")
        with pytest.raises(RuntimeError, match="Error installing Kafka"):
            addons.install_kafka(addon_cfg)


class TestReadinessWait:
    """Tests for readiness retries."""

    def test_retries_until_resources_exist(self, addon_cfg, tools):
        tools.fail("kubectl", "wait", times=2)
        addons.install_ingress(addon_cfg)
        assert [call[0] for call in tools.commands("kubectl")] == ["apply", "wait", "wait", "wait"]

    def test_gives_up_after_configured_attempts(self, addon_cfg, tools):
        tools.fail("kubectl", "wait", times=10)
        with pytest.raises(RuntimeError, match="Ingress Controller is not ready"):
            addons.install_ingress(addon_cfg)
        assert len(tools.commands("kubectl")) == 1 + addon_cfg.ready_retries


class TestMetalLB:
    """Tests for install_metallb and its address pool handling."""

    def test_default_config_is_written_and_applied(self, addon_cfg, tools):
        addons.install_metallb(addon_cfg)
        assert addon_cfg.metallb_config.exists()
        assert tools.commands("kubectl")[-1] == ("apply", "-f", str(addon_cfg.metallb_config))

    def test_address_ranges(self, tmp_path):
        config = tmp_path / "pool.yaml"
        config.write_text(
            "kind: IPAddressPool\nmetadata:\n  name: a\nspec:\n  addresses:\n  - 10.0.0.1-10.0.0.9\n"
            "---\n"
            "kind: L2Advertisement\nmetadata:\n  name: l2\n"
            "---\n"
            "kind: IPAddressPool\nmetadata:\n  name: b\nspec:\n  addresses:\n  - 10.1.0.0/24\n"
        )
        assert addons.metallb_address_ranges(config) == ["10.0.0.1-10.0.0.9", "10.1.0.0/24"]

    def test_missing_pool_requires_confirmation(self, addon_cfg, tools):
        addon_cfg.metallb_config.write_text("kind: L2Advertisement\nmetadata:\n  name: l2\n")
        with pytest.raises(RuntimeError, match="Manual confirmation required"):
            addons.install_metallb(addon_cfg)

    def test_config_apply_is_retried(self, addon_cfg, tools):
        tools.fail("kubectl", "apply", times=1)
        addons.install_metallb(addon_cfg)
        applies = [call for call in tools.commands("kubectl") if call[0] == "apply"]
        assert len(applies) == 2


class TestManifestAddons:
    """Tests for installers that apply manifests directly."""

    def test_database_applies_server_side(self, addon_cfg, tools):
        addons.install_database(addon_cfg)
        assert tools.commands("kubectl") == [
            ("apply", "--server-side", "-f", dep_value("cloudnative_pg", "manifest_url")),
        ]

    def test_demo_app(self, addon_cfg, tools):
        addons.install_demo_app(addon_cfg)
        assert addon_cfg.demo_app_manifest.exists()
        assert tools.commands("kubectl") == [("apply", "-f", str(addon_cfg.demo_app_manifest))]
