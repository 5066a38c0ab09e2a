"""
Plugin Registry.

This module tracks which plugins are currently active.

Key features:
- Idempotent registration gated by the enabled set
- Init callback invoked exactly once per activation
- Unload with a cascade through the build units the plugin depends on
- Re-entrancy guard so cyclic unit graphs cannot recurse forever
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from hearth.plugin.errors import PluginError, TeardownError

if TYPE_CHECKING:
    from hearth.plugin.resolver import DependencyResolver

logger = logging.getLogger(__name__)


def _noop() -> None:
    pass


def normalize_plugin_id(plugin_id: str) -> str:
    """Return the canonical (lower-case) form of a plugin identifier."""
    return plugin_id.strip().lower()


@dataclass
class PluginEntry:
    """
    An active plugin.

    Attributes:
        plugin_id: Unique plugin identifier
        init: Called once when the plugin is registered
        teardown: Called once when the plugin is unloaded
    """

    plugin_id: str
    init: Callable[[], None]
    teardown: Callable[[], None] = _noop


class PluginRegistry:
    """
    Registry of active plugins.

    An identifier is present if and only if that plugin is active. Only
    identifiers in the enabled set can ever be registered.
    """

    def __init__(
        self,
        enabled: Iterable[str] = (),
        resolver: "DependencyResolver | None" = None,
    ):
        """
        Initialize PluginRegistry.

        Args:
            enabled: Identifiers allowed to register
            resolver: Computes unload cascades; None disables cascading
        """
        self.enabled = frozenset(normalize_plugin_id(plugin_id) for plugin_id in enabled)
        self.resolver = resolver
        self._entries: dict[str, PluginEntry] = {}
        self._unloading: set[str] | None = None

    def register(
        self,
        plugin_id: str,
        init: Callable[[], None],
        teardown: Callable[[], None] | None = None,
    ) -> bool:
        """
        Register a plugin and run its init callback.

        Does nothing if the plugin is not enabled or is already registered.

        Args:
            plugin_id: Plugin identifier
            init: Zero-argument init callback
            teardown: Zero-argument teardown callback (optional)

        Returns:
            True if the plugin was registered by this call

        Raises:
            PluginError: If the init callback fails (the entry is removed again)
        """
        plugin_id = normalize_plugin_id(plugin_id)

        if plugin_id not in self.enabled:
            logger.debug("Plugin %s is not enabled; ignoring registration", plugin_id)
            return False

        if plugin_id in self._entries:
            logger.debug("Plugin %s is already registered", plugin_id)
            return False

        self._entries[plugin_id] = PluginEntry(plugin_id, init, teardown or _noop)
        logger.info("Registering plugin %s", plugin_id)

        try:
            init()
        except Exception as e:
            del self._entries[plugin_id]
            raise PluginError(f"Init callback of plugin {plugin_id} failed: {e}") from e

        return True

    def unload(self, plugin_id: str) -> None:
        """
        Unload a plugin, then the plugins its build unit depends on.

        Unloading an inactive plugin skips the teardown but still runs the
        cascade. Each identifier is visited at most once per call.

        Args:
            plugin_id: Plugin identifier

        Raises:
            TeardownError: If a teardown callback fails; the rest of the
                cascade is abandoned and the failing plugin stays registered
        """
        plugin_id = normalize_plugin_id(plugin_id)

        top_level = self._unloading is None
        if top_level:
            self._unloading = set()
        try:
            self._unload(plugin_id)
        finally:
            if top_level:
                self._unloading = None

    def _unload(self, plugin_id: str) -> None:
        if plugin_id in self._unloading:
            return
        self._unloading.add(plugin_id)

        entry = self._entries.get(plugin_id)
        if entry is None:
            logger.debug("Plugin %s is not active; skipping teardown", plugin_id)
        else:
            logger.info("Unloading plugin %s", plugin_id)
            try:
                entry.teardown()
            except Exception as e:
                raise TeardownError(f"Teardown of plugin {plugin_id} failed: {e}") from e
            del self._entries[plugin_id]

        if self.resolver is None:
            return

        for target in self.resolver.cascade_targets(plugin_id):
            logger.debug("Unload of %s cascades to %s", plugin_id, target)
            self._unload(target)

    def reset(self) -> None:
        """Unload every active plugin."""
        for plugin_id in list(self._entries):
            self.unload(plugin_id)

    def get(self, plugin_id: str) -> PluginEntry | None:
        """Return the entry of an active plugin, or None."""
        return self._entries.get(normalize_plugin_id(plugin_id))

    def is_active(self, plugin_id: str) -> bool:
        """Return True if the plugin is registered."""
        return normalize_plugin_id(plugin_id) in self._entries

    def is_enabled(self, plugin_id: str) -> bool:
        """Return True if the plugin is allowed to register."""
        return normalize_plugin_id(plugin_id) in self.enabled

    def active_plugins(self) -> list[str]:
        """Return active plugin identifiers in registration order."""
        return list(self._entries)

    def __contains__(self, plugin_id: object) -> bool:
        return isinstance(plugin_id, str) and self.is_active(plugin_id)

    def __len__(self) -> int:
        return len(self._entries)
