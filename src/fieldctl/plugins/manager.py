"""Plugin discovery, loading, and hook dispatch.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
Capabilities: observer hooks, named predicates.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable
from typing import Any

import pluggy

from fieldctl.plugins.hookspecs import FieldctlHookSpec

PROJECT_NAME = "fieldctl"
ENTRY_POINT_GROUP = "fieldctl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(FieldctlHookSpec)
        self._loaded: bool = False

    def discover_and_load(self, *, disabled: Iterable[str] = ()) -> list[str]:
        """Load plugins from the ``fieldctl.plugins`` entry-point group.

        Plugins named in *disabled* are blocked before loading.
        Returns a list of loaded plugin names.
        """
        for name in disabled:
            self._pm.set_blocked(name)
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        """Unregister a plugin instance."""
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for dispatching events."""
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        """Return all registered plugins."""
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins."""
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def notify(self, hook_name: str, **kwargs: Any) -> bool:
        """Call an observer hook. Returns False if a plugin raised.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        caller = getattr(self._pm.hook, hook_name)
        try:
            caller(**kwargs)
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)
            return False
        return True

    def collect_predicates(self) -> dict[str, Any]:
        """Merge the named predicates contributed by every plugin.

        Non-callable entries and non-dict returns are skipped with a warning.
        When two plugins register the same name, the first registration wins.
        """
        predicates: dict[str, Any] = {}
        for plugin_name, plugin in self._pm.list_name_plugin():
            hook = getattr(plugin, "register_predicates", None)
            if hook is None:
                continue
            try:
                provided = hook()
            except Exception:
                logger.warning(
                    "Failed to collect predicates from plugin %s", plugin_name, exc_info=True
                )
                continue
            if provided is None:
                continue
            if not isinstance(provided, dict):
                logger.warning("Plugin %s returned non-dict predicate registrations", plugin_name)
                continue
            for name, predicate in provided.items():
                if not callable(predicate):
                    logger.warning("Skipping non-callable predicate %r from %s", name, plugin_name)
                    continue
                if name in predicates:
                    logger.warning("Predicate %r from %s is already registered", name, plugin_name)
                    continue
                predicates[name] = predicate
        return predicates

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            if not self._has_hook_impls(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)

            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Check whether *cls* has any methods decorated with ``@hookimpl``.

        Pluggy's ``HookimplMarker("fieldctl")`` sets a ``fieldctl_impl``
        attribute on decorated methods.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, "fieldctl_impl", None):
                return True
        return False
