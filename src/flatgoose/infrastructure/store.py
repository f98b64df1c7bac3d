"""Store — the explicit context every model is bound to.

A Store replaces ambient connection and model registries: it owns the
storage root, the per-collection locks, the identifier factory, the plugin
manager, and the models built on it. Independent stores coexist in one
process without sharing anything.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from flatgoose.config.settings import FlatgooseSettings
from flatgoose.domain.ids import generate_object_id
from flatgoose.domain.validation import validate_model_name
from flatgoose.errors import InvalidArgumentError
from flatgoose.infrastructure.filesystem import (
    find_collection_files,
    read_collection,
    resolve_collection_path,
)
from flatgoose.plugins.manager import PluginManager

if TYPE_CHECKING:
    from flatgoose.schema import Schema
    from flatgoose.services.model import Model

logger = logging.getLogger(__name__)


class Store:
    """An open storage root and the models built on it.

    Parameters:
        settings: Resolved settings (root directory, storage options).
        plugins: Plugin manager for lifecycle events. By default a fresh one
            loaded with every installed ``flatgoose.plugins`` entry point.
        id_factory: Produces a new document identifier per insert.
    """

    def __init__(
        self,
        settings: FlatgooseSettings,
        *,
        plugins: PluginManager | None = None,
        id_factory: Callable[[], str] = generate_object_id,
    ) -> None:
        self.settings = settings
        self.root: Path = settings.root
        if plugins is None:
            plugins = PluginManager()
            plugins.discover_and_load()
        self.plugins = plugins
        self.id_factory = id_factory
        self.models: dict[str, Model] = {}

        self._locks: dict[Path, threading.RLock] = {}
        self._locks_guard = threading.Lock()

        if settings.storage.create_root:
            self.root.mkdir(parents=True, exist_ok=True)
        logger.debug("Store opened at %s", self.root)
        self.dispatch("post_connect", {"root": str(self.root)})

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    def model(self, name: str, schema: Schema) -> Model:
        """Build (or return the already-built) model *name* from *schema*.

        Freezes the schema's hooks and statics.
        """
        from flatgoose.services.model import Model

        result = validate_model_name(name, max_length=self.settings.models.max_name_length)
        if not result.valid:
            msg = "Invalid model name: " + "; ".join(issue.message for issue in result.issues)
            raise InvalidArgumentError(msg)

        existing = self.models.get(name)
        if existing is not None:
            if existing.schema is schema:
                return existing
            msg = f"Model {name!r} is already defined on this store with a different schema"
            raise InvalidArgumentError(msg)

        built = Model(self, name, schema)
        schema.hooks.freeze()
        self.models[name] = built
        logger.debug("Built model %s -> %s", name, built.path)
        return built

    def get_model(self, name: str) -> Model:
        try:
            return self.models[name]
        except KeyError:
            msg = f"No model named {name!r} on this store"
            raise InvalidArgumentError(msg) from None

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    @property
    def extension(self) -> str:
        return self.settings.storage.extension

    def collection_path(self, name: str) -> Path:
        """Resolve the file backing collection *name*."""
        try:
            return resolve_collection_path(self.root, name, extension=self.extension)
        except ValueError as exc:
            raise InvalidArgumentError(str(exc)) from exc

    def collection_names(self) -> list[str]:
        """Names (file stems) of every collection file under the root."""
        return [p.stem for p in find_collection_files(self.root, extension=self.extension)]

    def read_collection(self, name: str) -> list[dict[str, Any]]:
        """Read a collection's raw documents without a model or schema."""
        path = self.collection_path(name)
        with self.lock(path):
            return read_collection(path)

    @contextmanager
    def lock(self, path: Path) -> Iterator[None]:
        """Exclusive access to one collection file for a read-mutate-write cycle."""
        key = path.resolve()
        with self._locks_guard:
            collection_lock = self._locks.setdefault(key, threading.RLock())
        with collection_lock:
            yield

    # ------------------------------------------------------------------
    # Plugins
    # ------------------------------------------------------------------

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> list[str]:
        """Notify plugins of a committed event. Failures come back as warnings."""
        return self.plugins.dispatch(hook_name, payload)

    def __repr__(self) -> str:
        return f"Store(root={str(self.root)!r}, models={sorted(self.models)!r})"


def connect(
    root: str | Path | None = None,
    *,
    config_path: str | Path | None = None,
    plugins: PluginManager | None = None,
    id_factory: Callable[[], str] = generate_object_id,
    **overrides: Any,
) -> Store:
    """Open a store rooted at *root* (or the configured root).

    Settings are resolved from *overrides*, ``FLATGOOSE_*`` env vars, and a
    discovered ``flatgoose.toml``, in that order.
    """
    settings = FlatgooseSettings.load(
        config_path=config_path,
        root=Path(root) if root is not None else None,
        **overrides,
    )
    return Store(settings, plugins=plugins, id_factory=id_factory)
