"""
hearth CLI - inspect and exercise a plugin host configuration.

Usage:
    hearth -I [-c FILE] [--force]    Write a default settings file
    hearth -D [-c FILE]              Run a discovery pass, list active plugins
    hearth -Q [-c FILE]              List discovered plugins, versions and state
"""

import argparse
import logging
import sys
from pathlib import Path

from hearth.config import DEFAULT_CONFIG_FILE, ConfigError, write_default_settings
from hearth.host import PluginHost
from hearth.plugin.errors import PluginError


class HearthCLIError(Exception):
    """Base exception for CLI errors."""

    pass


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="hearth",
        description="hearth - plugin host inspector",
        add_help=False,
    )

    ops = parser.add_mutually_exclusive_group()
    ops.add_argument("-I", "--init", action="store_true", help="Write default settings")
    ops.add_argument("-D", "--discover", action="store_true", help="Discover and activate")
    ops.add_argument("-Q", "--query", action="store_true", help="List discovered plugins")
    ops.add_argument("-h", "--help", action="store_true", help="Show help")

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_FILE,
        help=f"Settings file (default: {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument("--force", action="store_true", help="Overwrite on -I")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    return parser


def _load_host(config_file: Path) -> PluginHost:
    if not config_file.exists():
        raise HearthCLIError(f"Settings file not found: {config_file} (create one with -I)")
    return PluginHost.from_config_file(config_file)


def discover_command(args: argparse.Namespace) -> int:
    host = _load_host(args.config)
    active = host.discover()

    if not active:
        print("No active plugins")
        return 0

    for plugin_id in active:
        print(plugin_id)
    return 0


def query_command(args: argparse.Namespace) -> int:
    host = _load_host(args.config)
    host.discover()

    plugins = host.unit_map.plugins()
    if not plugins:
        print("No plugins discovered")
        return 0

    for plugin_id in plugins:
        manifest = host.discoverer.manifests[plugin_id]
        if host.registry.is_active(plugin_id):
            state = "active"
        elif host.registry.is_enabled(plugin_id):
            state = "enabled"
        else:
            state = "disabled"
        line = (
            f"{plugin_id:<20} {manifest.unit:<20} {manifest.version:<10} "
            f"{state:<9} {manifest.description}"
        )
        print(line.rstrip())
    return 0


def init_command(args: argparse.Namespace) -> int:
    write_default_settings(args.config, overwrite=args.force)
    print(f"Wrote {args.config}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the hearth CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.help or not (args.init or args.discover or args.query):
            parser.print_help()
            return 0

        if args.init:
            return init_command(args)
        if args.discover:
            return discover_command(args)
        if args.query:
            return query_command(args)

    except (ConfigError, PluginError, HearthCLIError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
