"""
Hearth Settings - TOML-based host configuration.

This module provides:
- The [hearth] settings schema (plugin folders, enabled set, quiet mode)
- Loading settings from a TOML file, with defaults for anything missing
- Per-plugin configuration tables ([plugins.<id>]) passed through untouched
- Generation of a commented default settings file

Example settings file:
    [hearth]
    plugin_folders = ["plugins", "/opt/site-plugins"]
    enabled = ["foo", "bar"]
    quiet = true

    [plugins.foo]
    greeting = "hello"
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from hearth.config.schema import ConfigField, ValidationError, validate_config
from hearth.config.toml_handler import TOMLError, generate_settings_toml, read_toml, write_toml

SECTION = "hearth"
PLUGINS_SECTION = "plugins"

DEFAULT_CONFIG_FILE = Path("hearth.toml")

SETTINGS_SCHEMA: dict[str, ConfigField] = {
    "plugin_folders": ConfigField(
        list,
        ["plugins"],
        "Directories searched for plugins, in order. Earlier folders win.",
        min_length=1,
        item_type=str,
    ),
    "enabled": ConfigField(
        list,
        [],
        "Plugins allowed to activate.",
        item_type=str,
    ),
    "quiet": ConfigField(
        bool,
        True,
        "Discard build output printed while plugins are activated.",
    ),
}


class ConfigError(Exception):
    """Raised when host settings cannot be loaded or written."""

    pass


@dataclass
class HostSettings:
    """
    Host settings.

    Attributes:
        plugin_folders: Ordered plugin folders
        enabled: Identifiers of plugins allowed to activate
        quiet: Suppress build output during activation
        plugin_config: Plugin identifier -> opaque configuration value
    """

    plugin_folders: list[Path] = field(default_factory=lambda: [Path("plugins")])
    enabled: frozenset[str] = frozenset()
    quiet: bool = True
    plugin_config: dict[str, Any] = field(default_factory=dict)


def load_settings(config_file: Path = DEFAULT_CONFIG_FILE) -> HostSettings:
    """
    Load host settings from a TOML file.

    Relative plugin folders are resolved against the directory holding the
    file. A missing file yields the defaults.

    Raises:
        ConfigError: If the file cannot be parsed or fails validation
    """
    config_file = Path(config_file)
    base_dir = config_file.parent

    try:
        data = read_toml(config_file) if config_file.exists() else {}
        section = data.get(SECTION, {})
        if not isinstance(section, dict):
            raise ConfigError(f"'{SECTION}' in {config_file} must be a table")
        values = validate_config(section, SETTINGS_SCHEMA)
    except (TOMLError, ValidationError) as e:
        raise ConfigError(f"Invalid settings in {config_file}: {e}") from e

    plugin_config = data.get(PLUGINS_SECTION, {})
    if not isinstance(plugin_config, dict):
        raise ConfigError(f"'{PLUGINS_SECTION}' in {config_file} must be a table")

    return HostSettings(
        plugin_folders=[base_dir / folder for folder in values["plugin_folders"]],
        enabled=frozenset(name.lower() for name in values["enabled"]),
        quiet=values["quiet"],
        plugin_config={name.lower(): value for name, value in plugin_config.items()},
    )


def write_default_settings(config_file: Path = DEFAULT_CONFIG_FILE, overwrite: bool = False) -> None:
    """
    Write a commented settings file holding the defaults.

    Raises:
        ConfigError: If the file exists and overwrite is False, or on write failure
    """
    config_file = Path(config_file)
    if config_file.exists() and not overwrite:
        raise ConfigError(f"Settings file already exists: {config_file}")

    content = generate_settings_toml(SECTION, SETTINGS_SCHEMA, {})
    try:
        write_toml(config_file, content)
    except TOMLError as e:
        raise ConfigError(str(e)) from e


__all__ = [
    "ConfigError",
    "HostSettings",
    "SETTINGS_SCHEMA",
    "load_settings",
    "write_default_settings",
]
