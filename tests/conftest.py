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

import pytest
import sh

from devops_cluster.config import AddonConfig

METRICS_MANIFEST = """\
apiVersion: v1
kind: ServiceAccount
metadata:
  labels:
    k8s-app: metrics-server
  name: metrics-server
  namespace: kube-system
---
apiVersion: apps/v1
kind: Deployment
metadata:
  labels:
    k8s-app: metrics-server
  name: metrics-server
  namespace: kube-system
spec:
  selector:
    matchLabels:
      k8s-app: metrics-server
  strategy:
    rollingUpdate:
      maxUnavailable: 0
  template:
    metadata:
      labels:
        k8s-app: metrics-server
    spec:
      containers:
      - args:
        - --cert-dir=/tmp
        - --kubelet-use-node-status-port
        image: registry.k8s.io/metrics-server/metrics-server:v0.7.2
        imagePullPolicy: IfNotPresent
        name: metrics-server
        ports:
        - containerPort: 10250
          name: https
          protocol: TCP
      priorityClassName: system-cluster-critical
      serviceAccountName: metrics-server
---
apiVersion: v1
kind: Service
metadata:
  labels:
    k8s-app: metrics-server
  name: metrics-server
  namespace: kube-system
spec:
  ports:
  - name: https
    port: 443
    protocol: TCP
    targetPort: https
  selector:
    k8s-app: metrics-server
"""


class ToolRecorder:
    """Stand-in for run_tool that records invocations instead of running them."""

    def __init__(self):
        self.calls = []
        self.outputs = {}
        self.failures = {}

    def __call__(self, tool, *args, verbose=False):
        self.calls.append((tool, *args))
        key = (tool, args[0] if args else "")
        remaining = self.failures.get(key, 0)
        if remaining:
            self.failures[key] = remaining - 1
            raise make_error_return_code(f"{tool} {' '.join(args)}")
        return self.outputs.get(key, "")

    def fail(self, tool, subcommand, times=1):
        self.failures[(tool, subcommand)] = times

    def commands(self, tool):
        return [call[1:] for call in self.calls if call[0] == tool]


def make_error_return_code(full_cmd):
    return sh.ErrorReturnCode_1(full_cmd, b"", b"simulated failure")


@pytest.fixture
def metrics_manifest_yaml():
    return METRICS_MANIFEST


@pytest.fixture
def metrics_manifest_file(tmp_path):
    path = tmp_path / "components.yaml"
    path.write_text(METRICS_MANIFEST)
    return path


@pytest.fixture
def recorder():
    return ToolRecorder()


@pytest.fixture
def addon_cfg(tmp_path):
    return AddonConfig(
        interactive=False,
        metrics_manifest=tmp_path / "components.yaml",
        metrics_manifest_url="https://example.invalid/components.yaml",
        metallb_config=tmp_path / "metallb-config.yaml",
        argocd_values=tmp_path / "argocd-custom-values.yaml",
        demo_app_manifest=tmp_path / "argocd-demo-app.yaml",
        ready_retries=3,
        ready_poll_seconds=0,
    )
