"""
TOML File I/O.

Settings files are parsed with tomllib and written with tomlkit, which keeps
comments and formatting intact when hearth rewrites a file.
"""

import tomllib
from pathlib import Path
from typing import Any

import tomlkit

from hearth.config.schema import ConfigField


class TOMLError(Exception):
    """Raised when a TOML file cannot be read, parsed or written."""

    pass


def read_toml(file_path: Path) -> dict[str, Any]:
    """
    Read and parse a TOML file.

    Raises:
        TOMLError: If the file is missing, unreadable or not valid TOML
    """
    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise TOMLError(f"TOML file not found: {file_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise TOMLError(f"Failed to parse TOML file {file_path}: {e}") from e
    except OSError as e:
        raise TOMLError(f"Failed to read TOML file {file_path}: {e}") from e


def write_toml(file_path: Path, content: str | dict[str, Any]) -> None:
    """
    Write a TOML document, creating parent directories as needed.

    Args:
        file_path: Destination file
        content: Rendered TOML text, or data to serialize with tomlkit

    Raises:
        TOMLError: If the file cannot be written
    """
    if not isinstance(content, str):
        content = tomlkit.dumps(content)

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise TOMLError(f"Failed to write TOML file {file_path}: {e}") from e


def generate_settings_toml(
    section: str, schema: dict[str, ConfigField], values: dict[str, Any]
) -> str:
    """
    Render a settings table with each field's description as a comment.

    A commented example of a per-plugin configuration table follows it.

    Args:
        section: Table name
        schema: Field name -> ConfigField
        values: Field name -> value (schema defaults fill the gaps)

    Returns:
        TOML text
    """
    doc = tomlkit.document()
    doc.add(tomlkit.comment(f"{section} plugin host settings"))
    doc.add(tomlkit.nl())

    table = tomlkit.table()
    for field_name, field in schema.items():
        if field.description:
            table.add(tomlkit.comment(field.description))
        table.add(field_name, values.get(field_name, field.default))

    doc.add(section, table)
    doc.add(tomlkit.nl())
    doc.add(tomlkit.comment("Per-plugin configuration, passed to plugins as-is:"))
    doc.add(tomlkit.comment("[plugins.example]"))
    doc.add(tomlkit.comment('greeting = "hello"'))

    return tomlkit.dumps(doc)
