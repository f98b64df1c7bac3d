"""Pluggy hook specifications for flatgoose store lifecycle events.

Unlike schema hooks (per model, run inside the operation pipeline and
able to abort it), plugin hooks observe every model of a store and fire
only after a write has been committed. Plugin failures never fail the
operation.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("flatgoose")


class FlatgooseHookSpec:
    """Hook specifications for the flatgoose plugin system."""

    @hookspec
    def post_connect(self, root: str) -> None:
        """Called after a store is opened."""

    @hookspec
    def post_insert(self, model: str, documents: list[dict[str, Any]]) -> None:
        """Called after documents are inserted and persisted."""

    @hookspec
    def post_update(self, model: str, matched_count: int, modified_count: int) -> None:
        """Called after an update or replace is persisted."""

    @hookspec
    def post_delete(self, model: str, deleted_count: int) -> None:
        """Called after a delete is persisted."""
