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

"""Manifest subcommands (ensure-arg)."""

from __future__ import annotations

from pathlib import Path

import typer

from devops_cluster import console
from devops_cluster.constants import METRICS_SERVER_KIND, METRICS_SERVER_NAME
from devops_cluster.manifest import DEFAULT_ARGS_PATH, Selector, format_path, parse_path, patch_manifest_file

app = typer.Typer(help="Patch multi-document manifests.")

EXIT_NEEDS_ATTENTION = 2


@app.command("ensure-arg")
def ensure_arg(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Manifest file to patch in place"),
    value: str = typer.Option(..., "--value", help="Argument that must be present, e.g. --value=--kubelet-insecure-tls"),
    kind: str = typer.Option(METRICS_SERVER_KIND, "--kind", help="Kind of the target document"),
    name: str = typer.Option(METRICS_SERVER_NAME, "--name", help="metadata.name of the target document"),
    path: str = typer.Option(format_path(DEFAULT_ARGS_PATH), "--path", help="Dotted path to the argument list"),
) -> None:
    """Ensure an argument is present in a container argument list.

    Exits with status 2 when the document or the argument list cannot be found.
    """
    try:
        arg_path = parse_path(path)
    except ValueError as err:
        raise typer.BadParameter(str(err), param_hint="--path") from err

    report = patch_manifest_file(file, Selector(kind, name), value, arg_path=arg_path)
    if report.needs_attention:
        console.print(f"[yellow]⚠️  {report.message}[/yellow]")
        raise typer.Exit(code=EXIT_NEEDS_ATTENTION)
    console.print(f"[green]✅ {report.message}[/green]")
