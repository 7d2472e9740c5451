"""Typed, unit-tagged measurement values."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from .errors import InvalidArgumentError
from .measure import MeasureUnit


class PropertyType(enum.Enum):
    """The runtime kind of a property value."""

    LONG = "Long"
    DOUBLE = "Double"
    FLOAT = "Float"
    STRING = "String"

    def accepts(self, value: Any) -> bool:
        if value is None:
            return True
        if self is PropertyType.LONG:
            return isinstance(value, int) and not isinstance(value, bool)
        if self is PropertyType.STRING:
            return isinstance(value, str)
        return isinstance(value, float)

    def coerce(self, value: Any) -> Any:
        """Convert a parsed value to this type's Python representation."""
        if value is None:
            return None
        if self is PropertyType.LONG:
            return int(value)
        if self is PropertyType.STRING:
            return str(value)
        return float(value)


@dataclass(frozen=True)
class Property:
    """A single named measurement.

    A ``None`` value is the sole signal that the measurement could not be
    taken; ``type`` and ``unit`` are populated regardless.
    """

    name: str
    type: PropertyType
    unit: MeasureUnit | None
    value: Any = None

    def __post_init__(self) -> None:
        if not self.type.accepts(self.value):
            raise InvalidArgumentError(
                f"value {self.value!r} of property {self.name!r} is not a {self.type.value}"
            )

    @property
    def is_null(self) -> bool:
        return self.value is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "unit": str(self.unit) if self.unit is not None else None,
            "value": self.value,
        }


def make_property(
    name: str,
    type: PropertyType,
    unit: MeasureUnit | None,
    value: Any = None,
) -> Property:
    """Build a property, coercing *value* to the declared type."""
    return Property(name=name, type=type, unit=unit, value=type.coerce(value))
