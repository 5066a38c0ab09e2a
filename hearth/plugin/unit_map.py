"""
Build-Unit Map.

This module provides the bidirectional association between plugin
identifiers and the build units that implement them.

Key features:
- Forward lookup (plugin -> unit) used for activation
- Reverse lookup (unit -> plugin) used for deactivation cascades
- One unit per plugin and one plugin per unit
"""

from hearth.plugin.errors import PluginError


class UnitMapError(PluginError):
    """Raised when an association would break the one-to-one invariant."""

    pass


class BuildUnitMap:
    """
    Bidirectional plugin <-> build unit mapping.

    Populated during discovery and left untouched until the next full
    discovery pass calls reset().
    """

    def __init__(self):
        self._units: dict[str, str] = {}  # plugin_id -> unit
        self._plugins: dict[str, str] = {}  # unit -> plugin_id

    def associate(self, plugin_id: str, unit: str) -> None:
        """
        Associate a plugin identifier with a build unit.

        Args:
            plugin_id: Plugin identifier
            unit: Build unit name

        Raises:
            UnitMapError: If either side is already mapped to something else
        """
        current = self._units.get(plugin_id)
        if current is not None and current != unit:
            raise UnitMapError(
                f"Plugin '{plugin_id}' is already mapped to build unit '{current}'"
            )

        owner = self._plugins.get(unit)
        if owner is not None and owner != plugin_id:
            raise UnitMapError(
                f"Build unit '{unit}' is already mapped to plugin '{owner}'"
            )

        self._units[plugin_id] = unit
        self._plugins[unit] = plugin_id

    def unit_for(self, plugin_id: str) -> str | None:
        """Return the build unit of a plugin, or None if it has none."""
        return self._units.get(plugin_id)

    def plugin_for(self, unit: str) -> str | None:
        """Return the plugin identifier backed by a unit, or None."""
        return self._plugins.get(unit)

    def units(self) -> frozenset[str]:
        """Return every build unit that backs a known plugin."""
        return frozenset(self._plugins)

    def plugins(self) -> list[str]:
        """Return mapped plugin identifiers in discovery order."""
        return list(self._units)

    def reset(self) -> None:
        """Forget every association."""
        self._units.clear()
        self._plugins.clear()

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self._units

    def __len__(self) -> int:
        return len(self._units)

    def __repr__(self) -> str:
        return f"BuildUnitMap({self._units})"
