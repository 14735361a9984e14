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

"""Multi-document manifest loading, target lookup, and idempotent arg patching.

A manifest is kept as the plain values PyYAML produces (dicts, lists and
scalars), so fields the patcher does not interpret survive a load/save cycle
untouched. Only ``kind``, ``metadata.name`` and the descent path given to
:func:`ensure_arg` are ever looked at.
"""

from __future__ import annotations

import os
import re
import shutil
import tempfile
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from devops_cluster import logger

PathSegment = str | int
Manifest = list[Any]

DEFAULT_ARGS_PATH: tuple[PathSegment, ...] = ("spec", "template", "spec", "containers", 0, "args")

_PATH_PART = re.compile(r"^([^.\[\]]+)((?:\[\d+\])*)$")
_PATH_INDEX = re.compile(r"\[(\d+)\]")


# ============================================================================
# Errors and results
# ============================================================================

class ManifestError(RuntimeError):
    """Base class for manifest read, parse and write failures."""


class ParseError(ManifestError):
    """The input is not well-formed multi-document YAML."""


class WriteError(ManifestError):
    """The patched manifest could not be written back."""


class PatchOutcome(str, Enum):
    """Result of looking up a target and ensuring an argument on it."""

    CHANGED = "changed"
    ALREADY_PRESENT = "already-present"
    PATH_MISSING = "path-missing"
    NOT_FOUND = "not-found"


@dataclass(frozen=True)
class Selector:
    """Identifies one document by ``kind`` and ``metadata.name``."""

    kind: str
    name: str

    def matches(self, document: Any) -> bool:
        if not isinstance(document, dict):
            return False
        metadata = document.get("metadata")
        return (
            document.get("kind") == self.kind
            and isinstance(metadata, dict)
            and metadata.get("name") == self.name
        )

    def __str__(self) -> str:
        return f"{self.kind}/{self.name}"


@dataclass(frozen=True)
class PatchReport:
    """Outcome of one :func:`patch_manifest_file` call.

    Attributes:
        path: Manifest file that was read (and written on change).
        selector: Document the argument was ensured on.
        value: Argument that was ensured.
        arg_path: Descent path to the argument sequence.
        outcome: What happened.
    """

    path: Path
    selector: Selector
    value: str
    arg_path: tuple[PathSegment, ...]
    outcome: PatchOutcome

    @property
    def needs_attention(self) -> bool:
        """True when the expected structure was not found and nothing was patched."""
        return self.outcome in (PatchOutcome.NOT_FOUND, PatchOutcome.PATH_MISSING)

    @property
    def message(self) -> str:
        where = f"{self.selector} in {self.path}"
        if self.outcome is PatchOutcome.CHANGED:
            return f"Added {self.value} to {format_path(self.arg_path)} of {where}"
        if self.outcome is PatchOutcome.ALREADY_PRESENT:
            return f"{where} already contains {self.value}"
        if self.outcome is PatchOutcome.NOT_FOUND:
            return f"No {self.selector.kind} named {self.selector.name} in {self.path}"
        return f"{where} has no sequence at {format_path(self.arg_path)}"


# ============================================================================
# Descent paths
# ============================================================================

def parse_path(text: str) -> tuple[PathSegment, ...]:
    """Parse a dotted descent path such as ``spec.containers[0].args``.

    Args:
        text: Dotted path; ``[n]`` indexes into a sequence.

    Returns:
        Tuple of segments, ``str`` for mapping keys and ``int`` for indexes.

    Raises:
        ValueError: If the path is empty or malformed.
    """
    segments: list[PathSegment] = []
    for part in text.split("."):
        match = _PATH_PART.match(part)
        if not match:
            raise ValueError(f"Invalid path segment {part!r} in {text!r}")
        segments.append(match.group(1))
        segments.extend(int(index) for index in _PATH_INDEX.findall(match.group(2)))
    return tuple(segments)


def format_path(path: Sequence[PathSegment]) -> str:
    """Render a descent path back into its dotted form."""
    text = ""
    for segment in path:
        if isinstance(segment, int):
            text += f"[{segment}]"
        else:
            text += f".{segment}" if text else segment
    return text


# ============================================================================
# Core operations
# ============================================================================

def parse(raw: bytes | str) -> Manifest:
    """Parse a multi-document YAML stream into a list of documents.

    Empty and null documents (``---`` or ``--- ~``) are dropped. Nothing is
    returned if any document fails to parse.

    Args:
        raw: Manifest content.

    Returns:
        Documents in stream order.

    Raises:
        ParseError: If the stream is not well-formed YAML.
    """
    try:
        documents = list(yaml.safe_load_all(raw))
    except yaml.YAMLError as err:
        raise ParseError(f"Invalid manifest: {err}") from err
    return [doc for doc in documents if doc is not None]


def find_target(manifest: Manifest, selector: Selector) -> dict | None:
    """Return the first document matching *selector*, or None."""
    return next((doc for doc in manifest if selector.matches(doc)), None)


def ensure_arg(
    document: dict,
    value: str,
    path: Sequence[PathSegment] = DEFAULT_ARGS_PATH,
) -> PatchOutcome:
    """Ensure *value* is present in the sequence found at *path*.

    The document is only mutated when the outcome is ``CHANGED``; the value is
    appended after the existing elements.

    Args:
        document: Document to patch in place.
        value: Element that must be present.
        path: Descent path to a sequence-valued field.

    Returns:
        ``CHANGED``, ``ALREADY_PRESENT`` or ``PATH_MISSING``.
    """
    node: Any = document
    for segment in path:
        if isinstance(segment, int):
            if not isinstance(node, list) or not 0 <= segment < len(node):
                return PatchOutcome.PATH_MISSING
        elif not isinstance(node, dict) or segment not in node:
            return PatchOutcome.PATH_MISSING
        node = node[segment]

    if not isinstance(node, list):
        return PatchOutcome.PATH_MISSING
    if value in node:
        return PatchOutcome.ALREADY_PRESENT
    node.append(value)
    return PatchOutcome.CHANGED


def serialize(manifest: Manifest) -> bytes:
    """Dump documents back into a multi-document YAML stream, keeping key order."""
    return yaml.safe_dump_all(
        manifest,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        encoding="utf-8",
    )


# ============================================================================
# File I/O
# ============================================================================

def load_manifest(path: Path) -> Manifest:
    """Read and parse a manifest file.

    Raises:
        ManifestError: If the file cannot be read.
        ParseError: If the content is not well-formed YAML.
    """
    try:
        raw = Path(path).read_bytes()
    except OSError as err:
        raise ManifestError(f"Cannot read manifest {path}: {err}") from err
    return parse(raw)


def save_manifest(path: Path, manifest: Manifest) -> None:
    """Atomically replace *path* with the serialized manifest.

    Symlinks are followed so the real file is rewritten, and its permission
    bits are kept.

    Raises:
        WriteError: If the temporary file cannot be written or moved into place.
    """
    path = Path(path).resolve()
    data = serialize(manifest)
    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(data)
        if path.exists():
            shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except OSError as err:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise WriteError(f"Cannot write manifest {path}: {err}") from err


def patch_manifest_file(
    path: Path,
    selector: Selector,
    value: str,
    *,
    arg_path: Sequence[PathSegment] = DEFAULT_ARGS_PATH,
    confirm: Callable[[PatchReport], None] | None = None,
) -> PatchReport:
    """Ensure *value* on the document matching *selector* inside a manifest file.

    The file is rewritten only when the argument was actually added. When the
    target document or the argument sequence cannot be found, *confirm* is
    called with the report so the caller can have a human check the file
    before going on.

    Args:
        path: Manifest file to read and, on change, overwrite.
        selector: Document to patch.
        value: Argument that must be present.
        arg_path: Descent path to the argument sequence.
        confirm: Called with the report when it needs attention.

    Returns:
        Report describing the outcome.

    Raises:
        ParseError: If the file is not well-formed YAML.
        WriteError: If the patched file cannot be written.
    """
    path = Path(path)
    manifest = load_manifest(path)
    target = find_target(manifest, selector)
    if target is None:
        outcome = PatchOutcome.NOT_FOUND
    else:
        outcome = ensure_arg(target, value, arg_path)

    if outcome is PatchOutcome.CHANGED:
        save_manifest(path, manifest)

    report = PatchReport(path, selector, value, tuple(arg_path), outcome)
    if report.needs_attention:
        logger.warning(report.message)
        if confirm is not None:
            confirm(report)
    else:
        logger.info(report.message)
    return report
