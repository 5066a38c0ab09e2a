"""
Plugin Manifest System.

This module provides manifest parsing and validation for plugin directories.

Key features:
- JSON validation for manifest.json
- Build unit declaration with the build tool
- Unit association for the plugin identifier derived from the directory
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from hearth.plugin.errors import PluginError

if TYPE_CHECKING:
    from hearth.plugin.build_tool import BuildTool
    from hearth.plugin.unit_map import BuildUnitMap

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"

_UNIT_NAME_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")
_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+$")


class ManifestError(PluginError):
    """Base exception for manifest-related errors."""

    pass


class ValidationError(ManifestError):
    """Raised when manifest validation fails."""

    pass


@dataclass
class UnitManifest:
    """
    Represents a plugin directory's manifest.

    Attributes:
        unit: Name of the build unit the directory declares
        main: Entry point file, relative to the plugin directory
        version: Unit version
        description: Human-readable description
        depends_on: Names of build units this unit depends on
    """

    unit: str
    main: str
    version: str = "0.0.0"
    description: str = ""
    depends_on: list[str] = field(default_factory=list)


def parse_manifest(manifest_path: Path) -> UnitManifest:
    """
    Parse a manifest.json file.

    Args:
        manifest_path: Path to manifest.json

    Returns:
        UnitManifest object

    Raises:
        ManifestError: If file cannot be read or parsed
        ValidationError: If manifest is invalid
    """
    try:
        with open(manifest_path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ManifestError(f"Manifest file not found: {manifest_path}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"Failed to parse manifest JSON: {e}") from e
    except OSError as e:
        raise ManifestError(f"Failed to read manifest file: {e}") from e

    validate_manifest_structure(data)

    return UnitManifest(
        unit=data["unit"],
        main=data["main"],
        version=data.get("version", "0.0.0"),
        description=data.get("description", ""),
        depends_on=list(data.get("depends_on", [])),
    )


def validate_manifest_structure(data: Any) -> None:
    """
    Validate manifest structure and required fields.

    Args:
        data: Parsed manifest data

    Raises:
        ValidationError: If manifest structure is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("Manifest must be a JSON object")

    for required in ("unit", "main"):
        if required not in data:
            raise ValidationError(f"Missing required field: {required}")

    unit = data["unit"]
    if not isinstance(unit, str) or not _UNIT_NAME_RE.match(unit):
        raise ValidationError(
            f"Invalid unit name: {unit}. "
            f"Must be lowercase alphanumeric with hyphens only."
        )

    main = data["main"]
    if not isinstance(main, str) or not main.endswith(".py"):
        raise ValidationError(f"Invalid main entry point: {main}. Must be a .py file")

    if "version" in data:
        version = data["version"]
        if not isinstance(version, str) or not _VERSION_RE.match(version):
            raise ValidationError(
                f"Invalid version: {version}. Must be semantic version (e.g., '1.0.0')"
            )

    if "description" in data and not isinstance(data["description"], str):
        raise ValidationError("'description' field must be a string")

    if "depends_on" in data:
        depends_on = data["depends_on"]
        if not isinstance(depends_on, list):
            raise ValidationError("'depends_on' field must be a list")
        for dep in depends_on:
            if not isinstance(dep, str) or not dep:
                raise ValidationError(f"Dependency name must be a non-empty string: {dep!r}")
        if unit in depends_on:
            raise ValidationError(f"Unit '{unit}' cannot depend on itself")


def load_manifest(
    plugin_dir: Path,
    plugin_id: str,
    build_tool: "BuildTool",
    unit_map: "BuildUnitMap",
) -> UnitManifest:
    """
    Load a plugin directory's manifest on behalf of a plugin identifier.

    Associates the manifest's build unit with plugin_id in the unit map, then
    declares the unit with the build tool. A unit already claimed by another
    plugin is rejected before the build tool sees it.

    Args:
        plugin_dir: Plugin directory containing manifest.json
        plugin_id: Candidate identifier derived from the directory name
        build_tool: Build tool receiving the unit declaration
        unit_map: Map receiving the plugin -> unit association

    Returns:
        The parsed manifest

    Raises:
        ManifestError: If the manifest cannot be read or its entry point is missing
        ValidationError: If the manifest is invalid
        UnitMapError: If the unit already backs another plugin
    """
    manifest = parse_manifest(plugin_dir / MANIFEST_FILENAME)

    entry_point = plugin_dir / manifest.main
    if not entry_point.is_file():
        raise ManifestError(f"Entry point not found: {entry_point}")

    unit_map.associate(plugin_id, manifest.unit)
    build_tool.declare_unit(manifest.unit, entry_point, manifest.depends_on)

    logger.debug(
        "Declared build unit %s for plugin %s (depends on: %s)",
        manifest.unit,
        plugin_id,
        ", ".join(manifest.depends_on) or "nothing",
    )
    return manifest
