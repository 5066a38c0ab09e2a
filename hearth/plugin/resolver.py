"""
Dependency Resolver.

Translates between plugin identifiers and build units in both directions:
activation hands the build units of enabled plugins to the build tool in one
batch, and deactivation computes which plugins must be unloaded along with a
given one.
"""

import contextlib
import io
import logging
from collections.abc import Iterable

from hearth.plugin.build_tool import BuildTool
from hearth.plugin.unit_map import BuildUnitMap

logger = logging.getLogger(__name__)


class DependencyResolver:
    """Activation and unload-cascade logic on top of a BuildUnitMap."""

    def __init__(self, unit_map: BuildUnitMap, build_tool: BuildTool, quiet: bool = True):
        """
        Initialize DependencyResolver.

        Args:
            unit_map: Plugin <-> build unit associations
            build_tool: Build tool that loads units
            quiet: Suppress the build tool's stdout and stderr output during activation
        """
        self.unit_map = unit_map
        self.build_tool = build_tool
        self.quiet = quiet

    def activate(self, enabled: Iterable[str]) -> list[str]:
        """
        Activate the build units of every enabled, discovered plugin.

        The build tool receives the whole batch at once and is responsible
        for loading transitive dependencies. In quiet mode anything written to
        sys.stdout or sys.stderr is discarded; logging handlers configured
        beforehand keep writing to their own streams.

        Args:
            enabled: Enabled plugin identifiers

        Returns:
            Build units handed to the build tool, sorted

        Raises:
            BuildError: If activation fails (no rollback is attempted)
        """
        units = sorted(
            {
                unit
                for unit in (self.unit_map.unit_for(plugin_id) for plugin_id in enabled)
                if unit is not None
            }
        )
        if not units:
            logger.debug("No enabled plugin has a build unit; nothing to activate")
            return units

        logger.info("Activating build units: %s", ", ".join(units))
        if self.quiet:
            sink = io.StringIO()
            with contextlib.redirect_stdout(sink), contextlib.redirect_stderr(sink):
                self.build_tool.activate(units)
        else:
            self.build_tool.activate(units)
        return units

    def cascade_targets(self, plugin_id: str) -> list[str]:
        """
        Return the plugins to unload together with plugin_id.

        These are the plugins backing the build units that plugin_id's own
        unit directly declares as dependencies. A plugin without a unit
        (registered in-process) has no cascade.

        Args:
            plugin_id: Plugin being unloaded

        Returns:
            Plugin identifiers, sorted
        """
        unit = self.unit_map.unit_for(plugin_id)
        if unit is None:
            return []

        dependencies = self.build_tool.declared_dependencies(unit)
        plugin_units = dependencies & self.unit_map.units()

        targets = [self.unit_map.plugin_for(dep) for dep in plugin_units]
        return sorted(target for target in targets if target is not None)
