"""
Settings Schema.

Field definitions and validation for the [hearth] settings table.

Key features:
- Typed fields with defaults and descriptions
- Minimum length for list fields
- Element type checks for list fields
"""

from dataclasses import dataclass
from typing import Any


class SchemaError(Exception):
    """Raised when a field definition is inconsistent."""

    pass


class ValidationError(SchemaError):
    """Raised when a settings value fails validation."""

    pass


@dataclass
class ConfigField:
    """
    A settings field.

    Attributes:
        type_: The expected type of the field value
        default: Default value for the field
        description: Human-readable description, rendered as a TOML comment
        min_length: Minimum number of elements for list fields
        item_type: Required element type for list fields
    """

    type_: type
    default: Any
    description: str = ""
    min_length: int | None = None
    item_type: type | None = None

    def __post_init__(self):
        if not isinstance(self.default, self.type_):
            raise SchemaError(
                f"Default value {self.default!r} does not match type {self.type_.__name__}"
            )

        if self.type_ is not list and (self.item_type is not None or self.min_length is not None):
            raise SchemaError("item_type and min_length are only supported for list fields")

        self.validate(self.default)

    def validate(self, value: Any) -> None:
        """
        Validate a value against this field's constraints.

        Raises:
            ValidationError: If validation fails
        """
        if not isinstance(value, self.type_):
            raise ValidationError(
                f"Expected type {self.type_.__name__}, got {type(value).__name__}"
            )

        if self.min_length is not None and len(value) < self.min_length:
            raise ValidationError(
                f"List length {len(value)} is less than minimum {self.min_length}"
            )

        if self.item_type is not None:
            for item in value:
                if not isinstance(item, self.item_type):
                    raise ValidationError(
                        f"List item {item!r} is not of type {self.item_type.__name__}"
                    )


def validate_config(config: dict[str, Any], schema: dict[str, ConfigField]) -> dict[str, Any]:
    """
    Validate a settings table and fill in defaults for missing fields.

    Args:
        config: The settings table to validate
        schema: Field name -> ConfigField

    Returns:
        A new dictionary with every schema field present

    Raises:
        ValidationError: On unknown fields or invalid values
    """
    for key in config:
        if key not in schema:
            raise ValidationError(f"Unknown configuration field: {key}")

    result = {}
    for field_name, field in schema.items():
        if field_name not in config:
            result[field_name] = generate_default_value(field)
            continue

        try:
            field.validate(config[field_name])
        except ValidationError as e:
            raise ValidationError(f"Field '{field_name}': {e}") from e
        result[field_name] = config[field_name]

    return result


def generate_default_value(field: ConfigField) -> Any:
    """Return a fresh copy of a field's default."""
    if isinstance(field.default, list):
        return list(field.default)
    return field.default

