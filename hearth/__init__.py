"""
Hearth - Runtime plugin registry for host server processes.

This is the main package that exports the public API.
"""

__version__ = "0.1.0"

from hearth.host import PluginHost
from hearth.plugin.errors import PluginError, TeardownError
from hearth.plugin.registry import PluginEntry, PluginRegistry
from hearth.plugin.store import (
    ABSENT,
    PluginConfigStore,
    clear_request_data,
    get_request_data,
    set_request_data,
)

__all__ = [
    "__version__",
    "ABSENT",
    "PluginConfigStore",
    "PluginEntry",
    "PluginError",
    "PluginHost",
    "PluginRegistry",
    "TeardownError",
    "clear_request_data",
    "get_request_data",
    "set_request_data",
]
