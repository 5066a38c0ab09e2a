"""
Hearth Plugin System - Plugin registry, discovery and activation.

This module handles:
- Plugin registration and cascading unload
- Plugin <-> build unit mapping
- Manifest parsing and plugin folder discovery
- Build unit activation in dependency order
- Plugin configuration and request-scoped data
"""

__all__ = []
