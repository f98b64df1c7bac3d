"""Plugin system — store-wide lifecycle hooks via pluggy."""

from __future__ import annotations

import pluggy

hookimpl = pluggy.HookimplMarker("flatgoose")

__all__ = ["hookimpl"]
