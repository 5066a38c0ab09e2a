"""
Plugin Host.

PluginHost owns one instance of every piece of plugin state (registry,
build-unit map, configuration store, build tool) and wires them together.
Nothing is module-global, so separate hosts, or a host that is reset(), never
see each other's plugins.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from hearth.config import DEFAULT_CONFIG_FILE, HostSettings, load_settings
from hearth.plugin import store
from hearth.plugin.build_tool import BuildTool, ModuleBuildTool
from hearth.plugin.discovery import PluginDiscoverer
from hearth.plugin.registry import PluginRegistry
from hearth.plugin.resolver import DependencyResolver
from hearth.plugin.store import PluginConfigStore
from hearth.plugin.unit_map import BuildUnitMap

logger = logging.getLogger(__name__)


class PluginHost:
    """
    Plugin runtime for a host server process.

    Example:
        host = PluginHost.from_config_file(Path("hearth.toml"))
        host.discover()

        # inside a request handler
        host.set_request_data("foo", request, {"started": now})
        host.get_request_data("foo", request)
    """

    def __init__(
        self,
        settings: HostSettings | None = None,
        build_tool_factory: Callable[[PluginRegistry], BuildTool] = ModuleBuildTool,
    ):
        """
        Initialize PluginHost.

        Args:
            settings: Host settings (defaults when None)
            build_tool_factory: Creates the build tool; receives the registry
                that unit entry points register into
        """
        self.settings = settings or HostSettings()
        self._build_tool_factory = build_tool_factory
        self.reset()

    @classmethod
    def from_config_file(cls, config_file: Path = DEFAULT_CONFIG_FILE) -> "PluginHost":
        """Create a host from a TOML settings file."""
        return cls(load_settings(config_file))

    def reset(self) -> None:
        """
        Replace all plugin state with fresh, empty state.

        Active plugins are not torn down; call discover() or unload() for that.
        """
        self.unit_map = BuildUnitMap()
        self.registry = PluginRegistry(self.settings.enabled)
        self.build_tool = self._build_tool_factory(self.registry)
        self.resolver = DependencyResolver(
            self.unit_map, self.build_tool, quiet=self.settings.quiet
        )
        self.registry.resolver = self.resolver
        self.discoverer = PluginDiscoverer(
            self.settings.plugin_folders,
            self.registry,
            self.unit_map,
            self.build_tool,
            self.resolver,
        )
        self.config = PluginConfigStore()
        if self.settings.plugin_config:
            self.config.update(self.settings.plugin_config)

    def discover(self) -> list[str]:
        """Run a full discovery pass; returns the active plugin identifiers."""
        logger.info(
            "Discovering plugins in %s",
            ", ".join(str(folder) for folder in self.settings.plugin_folders) or "no folders",
        )
        return self.discoverer.discover()

    def register(
        self,
        plugin_id: str,
        init: Callable[[], None],
        teardown: Callable[[], None] | None = None,
    ) -> bool:
        return self.registry.register(plugin_id, init, teardown)

    def unload(self, plugin_id: str) -> None:
        self.registry.unload(plugin_id)

    def get_config(self, plugin_id: str, default: Any = None) -> Any:
        return self.config.get(plugin_id, default)

    def set_config(self, plugin_id: str, value: Any) -> None:
        self.config.set(plugin_id, value)

    def get_request_data(self, plugin_id: str, request: Any, default: Any = store.ABSENT) -> Any:
        return store.get_request_data(plugin_id, request, default)

    def set_request_data(self, plugin_id: str, request: Any, value: Any) -> None:
        store.set_request_data(plugin_id, request, value)
