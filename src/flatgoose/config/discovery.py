"""Locate ``flatgoose.toml``.

``FLATGOOSE_CONFIG`` names a file explicitly; otherwise the nearest
``flatgoose.toml`` in the start directory or any of its ancestors wins.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "flatgoose.toml"
CONFIG_ENV_VAR = "FLATGOOSE_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file governing *start* (default: cwd), or None.

    An env var pointing at a missing file disables discovery entirely.
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidate = Path(explicit)
        return candidate if candidate.is_file() else None

    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
