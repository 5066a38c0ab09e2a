"""
Plugin Discovery.

Walks the configured plugin folders, maps each plugin directory to the build
unit its manifest declares, and activates every enabled plugin.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from hearth.plugin.build_tool import BuildTool
from hearth.plugin.manifest import MANIFEST_FILENAME, UnitManifest, load_manifest
from hearth.plugin.registry import PluginRegistry, normalize_plugin_id
from hearth.plugin.resolver import DependencyResolver
from hearth.plugin.unit_map import BuildUnitMap

logger = logging.getLogger(__name__)


class PluginDiscoverer:
    """
    Full discovery pass over an ordered list of plugin folders.

    Earlier folders take precedence: once a plugin identifier is mapped, the
    same identifier in a later folder is ignored. The manifest of every
    discovered plugin is kept in manifests until the next pass.
    """

    def __init__(
        self,
        folders: Iterable[Path],
        registry: PluginRegistry,
        unit_map: BuildUnitMap,
        build_tool: BuildTool,
        resolver: DependencyResolver,
    ):
        self.folders = [Path(folder) for folder in folders]
        self.registry = registry
        self.unit_map = unit_map
        self.build_tool = build_tool
        self.resolver = resolver
        self.manifests: dict[str, UnitManifest] = {}

    def discover(self) -> list[str]:
        """
        Tear everything down, rediscover plugins and activate enabled ones.

        Returns:
            Identifiers of the plugins active after the pass

        Raises:
            ManifestError: If a manifest exists but is invalid
            BuildError: If activation fails
            TeardownError: If tearing down a previously active plugin fails
        """
        self.registry.reset()
        self.unit_map.reset()
        self.manifests.clear()

        for folder in self.folders:
            self._scan_folder(folder)

        logger.info(
            "Discovered %d plugin(s): %s",
            len(self.unit_map),
            ", ".join(self.unit_map.plugins()) or "none",
        )

        self.resolver.activate(self.registry.enabled)
        return self.registry.active_plugins()

    def _scan_folder(self, folder: Path) -> None:
        if not folder.is_dir():
            logger.debug("Plugin folder %s does not exist; skipping", folder)
            return

        for plugin_dir in sorted(folder.iterdir()):
            if not plugin_dir.is_dir() or plugin_dir.name.startswith((".", "_")):
                continue

            plugin_id = normalize_plugin_id(plugin_dir.name)

            if plugin_id in self.unit_map:
                logger.debug(
                    "Plugin %s already discovered; ignoring %s", plugin_id, plugin_dir
                )
                continue

            if not (plugin_dir / MANIFEST_FILENAME).is_file():
                logger.info("No %s in %s; skipping", MANIFEST_FILENAME, plugin_dir)
                continue

            logger.debug("Loading manifest for plugin %s from %s", plugin_id, plugin_dir)
            self.manifests[plugin_id] = load_manifest(
                plugin_dir, plugin_id, self.build_tool, self.unit_map
            )
