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

"""Utility functions for tool execution, downloads, assets, and prompts."""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from pathlib import Path

import requests
import sh

from devops_cluster import console, logger
from devops_cluster.constants import ASSETS_DIR


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    try:
        sh.Command(cmd)
    except sh.CommandNotFound as err:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.") from err


def run_tool(tool: str, *args: str, verbose: bool = False) -> str:
    """Run an external tool and return its stdout.

    On failure the tool's stderr is printed before the error propagates.

    Args:
        tool: Executable name (``kind``, ``kubectl``, ``helm``).
        *args: Arguments passed to the tool.
        verbose: Echo the tool's stdout to the console.

    Returns:
        Captured stdout.

    Raises:
        RuntimeError: If the executable is not on PATH.
        sh.ErrorReturnCode: If the tool exits non-zero.
    """
    logger.debug("Running: %s %s", tool, " ".join(args))
    require_command(tool)
    try:
        output = str(sh.Command(tool)(*args))
    except sh.ErrorReturnCode as err:
        stderr = err.stderr.decode(errors="replace").strip()
        if stderr:
            console.print(stderr, style="red", markup=False, highlight=False)
        raise
    if verbose and output.strip():
        console.print(output.rstrip(), markup=False, highlight=False)
    return output


def download_file(url: str, dest: Path, timeout: int = 60) -> None:
    """Download *url* into *dest*.

    Args:
        url: HTTP(S) URL to fetch.
        dest: Local file to create or overwrite.
        timeout: Request timeout in seconds.

    Raises:
        RuntimeError: If the request fails or returns an error status.
    """
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as err:
        raise RuntimeError(f"Failed to download {url}: {err}") from err
    dest.write_bytes(response.content)


def materialize_asset(path: Path, asset_name: str) -> Path:
    """Make sure a local copy of a packaged default file exists.

    Files are expected in the working directory so they can be edited before
    they are applied. When *path* is missing, the packaged default is copied
    there.

    Args:
        path: Local path the caller wants to use.
        asset_name: File name of the packaged default under ``assets/``.

    Returns:
        *path*, which now exists.
    """
    if not path.exists():
        shutil.copyfile(ASSETS_DIR / asset_name, path)
        console.print(f"[yellow]ℹ️  Wrote default {path} (edit it to customize)[/yellow]")
    return path


def confirm_or_abort(lines: Iterable[str], interactive: bool) -> None:
    """Ask a human to check something before the run continues.

    Args:
        lines: Warning lines explaining what to check or edit.
        interactive: Whether waiting for Enter is allowed.

    Raises:
        RuntimeError: If the run is non-interactive.
    """
    lines = list(lines)
    for line in lines:
        console.print(f"[yellow]⚠️  {line}[/yellow]")
    if not interactive:
        raise RuntimeError("Manual confirmation required but running non-interactively: " + " ".join(lines))
    console.input("[yellow]Press Enter to continue...[/yellow]")
    console.print("[yellow]ℹ️  Continuing...[/yellow]")
