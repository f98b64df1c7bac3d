"""PluginManager — the pluggy registry a Store notifies after each write.

Plugins arrive two ways: installed packages advertising an entry point in
the ``flatgoose.plugins`` group (see :meth:`PluginManager.discover_and_load`)
or instances handed to :meth:`PluginManager.register_plugin`.

INVARIANT: A plugin can observe writes but never fail them. Exceptions
raised by hook implementations are logged and returned as warnings.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any

import pluggy

from flatgoose.plugins.hookspecs import FlatgooseHookSpec

PROJECT_NAME = "flatgoose"
ENTRY_POINT_GROUP = "flatgoose.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """A pluggy manager preloaded with :class:`FlatgooseHookSpec`."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(FlatgooseHookSpec)
        self._loaded = False

    def discover_and_load(self) -> list[str]:
        """Register every installed entry-point plugin; returns all plugin names."""
        count = self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_classes()
        self._loaded = True
        logger.debug("Loaded %d entry-point plugins", count)
        return self.list_plugin_names()

    def _instantiate_classes(self) -> None:
        # An entry point may name a class; hooks need a bound instance.
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            self._pm.register(plugin(), name=name)

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register *plugin* under *name* (its class name by default)."""
        plugin_name = name or type(plugin).__name__
        self._pm.register(plugin, name=plugin_name)
        logger.debug("Registered plugin: %s", plugin_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or type(p).__name__ for p in self._pm.get_plugins()]

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> list[str]:
        """Call *hook_name* on every registered plugin with *payload* as kwargs.

        Returns warning strings for failed calls (empty when all succeed).

        Raises:
            ValueError: If *hook_name* is not a declared hook.
        """
        caller = getattr(self._pm.hook, hook_name, None)
        if caller is None:
            msg = f"Unknown plugin hook: {hook_name!r}"
            raise ValueError(msg)
        try:
            caller(**payload)
        except Exception as exc:
            logger.warning("Plugin hook %s failed: %s", hook_name, exc, exc_info=True)
            return [f"Plugin hook {hook_name} failed: {exc}"]
        return []
