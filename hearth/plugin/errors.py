"""
Plugin system exception base.

Every plugin subsystem raises a subclass of PluginError, so hosts can catch
one type around a discovery pass.
"""


class PluginError(Exception):
    """Base exception for plugin-related errors."""

    pass


class TeardownError(PluginError):
    """Raised when a plugin's teardown callback fails during unload."""

    pass
