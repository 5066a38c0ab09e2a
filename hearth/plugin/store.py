"""
Plugin Configuration and Request-Scoped Data.

Two small keyed stores owned by plugins:
- PluginConfigStore: per-plugin configuration, independent of activation
- Request data: per-plugin values attached to a single host request object

Both treat values as opaque; their meaning belongs to the plugin. Plugin
identifiers are normalized the same way the registry normalizes them.
"""

from collections.abc import Mapping
from typing import Any

from hearth.plugin.registry import normalize_plugin_id

# Attribute of the host request object holding the plugin -> value mapping
REQUEST_DATA_ATTR = "plugin_data"


class _Absent:
    """Type of the ABSENT sentinel."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


# Returned by get_request_data() when nothing was stored
ABSENT = _Absent()


class PluginConfigStore:
    """Plugin identifier -> configuration value, created on first use."""

    def __init__(self):
        self._values: dict[str, Any] | None = None

    def _mapping(self) -> dict[str, Any]:
        if self._values is None:
            self._values = {}
        return self._values

    def get(self, plugin_id: str, default: Any = None) -> Any:
        """Return the configuration of a plugin, or default."""
        return self._mapping().get(normalize_plugin_id(plugin_id), default)

    def set(self, plugin_id: str, value: Any) -> None:
        """Store the configuration of a plugin."""
        self._mapping()[normalize_plugin_id(plugin_id)] = value

    def update(self, values: Mapping[str, Any]) -> None:
        """Store several plugin configurations at once."""
        self._mapping().update(
            (normalize_plugin_id(plugin_id), value) for plugin_id, value in values.items()
        )

    def __contains__(self, plugin_id: object) -> bool:
        if not isinstance(plugin_id, str):
            return False
        return normalize_plugin_id(plugin_id) in self._mapping()

    def __repr__(self) -> str:
        return f"PluginConfigStore({self._values})"


def set_request_data(plugin_id: str, request: Any, value: Any) -> None:
    """
    Store a plugin's value on a request.

    The mapping is attached to the request object the first time any plugin
    writes to it, so it lives exactly as long as the request.

    Args:
        plugin_id: Plugin identifier
        request: Host request object
        value: Value to store
    """
    data = getattr(request, REQUEST_DATA_ATTR, None)
    if data is None:
        data = {}
        setattr(request, REQUEST_DATA_ATTR, data)
    data[normalize_plugin_id(plugin_id)] = value


def get_request_data(plugin_id: str, request: Any, default: Any = ABSENT) -> Any:
    """
    Return a plugin's value stored on a request.

    Args:
        plugin_id: Plugin identifier
        request: Host request object
        default: Returned when nothing was stored (ABSENT unless given)

    Returns:
        The stored value, or default
    """
    data = getattr(request, REQUEST_DATA_ATTR, None)
    if data is None:
        return default
    return data.get(normalize_plugin_id(plugin_id), default)


def clear_request_data(plugin_id: str, request: Any) -> None:
    """Remove a plugin's value from a request, if present."""
    data = getattr(request, REQUEST_DATA_ATTR, None)
    if data is not None:
        data.pop(normalize_plugin_id(plugin_id), None)
