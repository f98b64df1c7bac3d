"""Filesystem operations for collection files.

INVARIANT: Files are truth. Every collection is one YAML file holding a
sequence of documents; nothing is cached between operations, so each read
reflects the file as it is on disk.

This module handles actual file I/O, path resolution, and file discovery.
The document engine never sees the encoding.
"""

from __future__ import annotations

import logging
from io import StringIO
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".yaml"


# ---------------------------------------------------------------------------
# YAML codec
# ---------------------------------------------------------------------------


def _new_yaml() -> YAML:
    """Create a fresh safe-mode YAML instance.

    A new instance per call avoids corrupted internal emitter state from
    propagating across operations (ruamel.yaml's YAML object is stateful).
    Safe mode loads plain ``dict``/``list`` values rather than round-trip
    container types.
    """
    y = YAML(typ="safe", pure=True)
    y.default_flow_style = False
    y.allow_unicode = True
    # Keep documents in insertion order on disk.
    y.representer.sort_base_mapping_type_on_output = False
    return y


def dump_documents(documents: list[dict[str, Any]]) -> str:
    """Encode *documents* as a YAML sequence."""
    buf = StringIO()
    _new_yaml().dump(list(documents), buf)
    return buf.getvalue()


def load_documents(text: str) -> list[dict[str, Any]]:
    """Decode a YAML sequence of documents. Empty input yields ``[]``."""
    data = _new_yaml().load(text)
    if data is None:
        return []
    if not isinstance(data, list):
        msg = f"Collection file must contain a sequence of documents, got {type(data).__name__}"
        raise ValueError(msg)
    return data


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------


def read_collection(path: Path) -> list[dict[str, Any]]:
    """Read every document from *path*; a missing file is an empty collection."""
    if not path.exists():
        return []
    return load_documents(path.read_text(encoding="utf-8"))


def write_collection(path: Path, documents: list[dict[str, Any]]) -> None:
    """Overwrite *path* with *documents*.

    Creates parent directories if they don't exist.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_documents(documents), encoding="utf-8")
    logger.debug("Wrote %d documents to %s", len(documents), path)


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------


def resolve_collection_path(
    root: Path,
    name: str,
    *,
    extension: str = DEFAULT_EXTENSION,
) -> Path:
    """Resolve the file backing collection *name*: ``{root}/{name.lower()}{ext}``."""
    result = root / f"{name.lower()}{extension}"

    # Guard against path traversal via a crafted collection name
    root_resolved = root.resolve()
    if not result.resolve().is_relative_to(root_resolved):
        msg = f"Path escapes storage root: {result}"
        raise ValueError(msg)

    return result


def find_collection_files(root: Path, *, extension: str = DEFAULT_EXTENSION) -> list[Path]:
    """Discover collection files directly under *root*, sorted by name."""
    if not root.is_dir():
        return []
    return sorted(p for p in root.iterdir() if p.is_file() and p.suffix == extension)
