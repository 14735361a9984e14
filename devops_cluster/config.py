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

"""Configuration classes and run options."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from devops_cluster.constants import (
    DEFAULT_ARGOCD_VALUES,
    DEFAULT_DEMO_APP_MANIFEST,
    DEFAULT_DOWNLOAD_TIMEOUT_SECONDS,
    DEFAULT_KIND_CONFIG,
    DEFAULT_METALLB_CONFIG,
    DEFAULT_METRICS_MANIFEST,
    DEFAULT_READY_MAX_RETRIES,
    DEFAULT_READY_POLL_INTERVAL_SECONDS,
    DEFAULT_WAIT_TIMEOUT,
    ENV_PREFIX,
    dep_value,
)


# ============================================================================
# Configuration classes
# ============================================================================

class ClusterConfig(BaseSettings):
    """kind cluster configuration, auto-loaded from DRC_* env vars.

    Attributes:
        cluster_name: Name of the kind cluster, or None when not given.
        kind_config: Path to the kind cluster config file.
        verbose: Whether to echo the stdout of every tool invocation.
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    cluster_name: str | None = None
    kind_config: Path = Path(DEFAULT_KIND_CONFIG)
    verbose: bool = False


class AddonConfig(BaseSettings):
    """Add-on install settings, auto-loaded from DRC_* env vars.

    Attributes:
        verbose: Whether to echo the stdout of every tool invocation.
        interactive: Whether a human may be asked to confirm or edit files.
        metrics_manifest: Local path of the Metrics Server components.yaml.
        metrics_manifest_url: Where to download components.yaml from.
        metallb_config: Local path of the MetalLB address pool config.
        argocd_values: Local path of the Argo CD helm values file.
        demo_app_manifest: Local path of the Argo CD demo Application.
        wait_timeout: Timeout passed to each ``kubectl wait``.
        ready_retries: Attempts for a readiness wait before giving up.
        ready_poll_seconds: Pause between readiness attempts.
        download_timeout: HTTP timeout in seconds for manifest downloads.
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    verbose: bool = False
    interactive: bool = True
    metrics_manifest: Path = Path(DEFAULT_METRICS_MANIFEST)
    metrics_manifest_url: str = dep_value("metrics_server", "manifest_url", default="")
    metallb_config: Path = Path(DEFAULT_METALLB_CONFIG)
    argocd_values: Path = Path(DEFAULT_ARGOCD_VALUES)
    demo_app_manifest: Path = Path(DEFAULT_DEMO_APP_MANIFEST)
    wait_timeout: str = Field(default=DEFAULT_WAIT_TIMEOUT, pattern=r"^\d+[smh]$")
    ready_retries: int = Field(default=DEFAULT_READY_MAX_RETRIES, ge=1, le=120)
    ready_poll_seconds: int = Field(default=DEFAULT_READY_POLL_INTERVAL_SECONDS, ge=0)
    download_timeout: int = Field(default=DEFAULT_DOWNLOAD_TIMEOUT_SECONDS, ge=1)


# ============================================================================
# Global CLI options
# ============================================================================

@dataclass(frozen=True)
class RunOptions:
    """Options collected from the global CLI flags.

    Attributes:
        verbose: Echo tool output and log at DEBUG level.
        assume_yes: Never prompt; fail where a human would be asked instead.
    """

    verbose: bool = False
    assume_yes: bool = False


SettingsT = TypeVar("SettingsT", ClusterConfig, AddonConfig)


def apply_run_options(cfg: SettingsT, options: RunOptions | None) -> SettingsT:
    """Overlay global CLI flags on a settings object.

    Flags only ever switch behaviour on, so an unset flag leaves the value
    loaded from the environment untouched.

    Args:
        cfg: Settings object loaded from the environment.
        options: Global CLI options, or None when running outside the CLI.

    Returns:
        The settings object, copied with overrides when any flag was set.
    """
    if options is None:
        return cfg
    overrides: dict = {}
    if options.verbose:
        overrides["verbose"] = True
    if options.assume_yes and isinstance(cfg, AddonConfig):
        overrides["interactive"] = False
    if overrides:
        cfg = cfg.model_copy(update=overrides)
    return cfg
