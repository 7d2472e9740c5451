"""Measurement units and memory arithmetic.

Memory quantities are converted to a canonical byte count. ``top`` and
``/proc/meminfo`` print values as ``<number><unit>`` or with a leading unit
column (``KiB Mem :``), so a small tokeniser maps unit tokens to multipliers:

====================  ==================
token                 multiplier
====================  ==================
``B``                 1
``K`` ``KiB``         2**10
``KB``                10**3
``M`` ``MiB``         2**20
``MB``                10**6
``G`` ``GiB``         2**30
``GB``                10**9
====================  ==================

Single-letter tokens follow the ``top`` convention and are binary.
"""

from __future__ import annotations

import enum

from .errors import InvalidArgumentError, ParsingError


class UnitKind(enum.Enum):
    MEMORY = "memory"
    RATIO = "ratio"
    TIME = "time"


class MeasureUnit(enum.Enum):
    """A unit kind plus the scale factor to the canonical base of that kind."""

    BYTE = ("bytes", UnitKind.MEMORY, 1)
    KILOBYTE = ("KB", UnitKind.MEMORY, 10**3)
    KIBIBYTE = ("KiB", UnitKind.MEMORY, 2**10)
    MEGABYTE = ("MB", UnitKind.MEMORY, 10**6)
    MEBIBYTE = ("MiB", UnitKind.MEMORY, 2**20)
    GIGABYTE = ("GB", UnitKind.MEMORY, 10**9)
    GIBIBYTE = ("GiB", UnitKind.MEMORY, 2**30)
    PERCENT = ("percent", UnitKind.RATIO, 1)
    MILLISECOND = ("ms", UnitKind.TIME, 1)
    SECOND = ("s", UnitKind.TIME, 1000)

    def __init__(self, symbol: str, kind: UnitKind, factor: int) -> None:
        self.symbol = symbol
        self.kind = kind
        self.factor = factor

    @property
    def is_memory(self) -> bool:
        return self.kind is UnitKind.MEMORY

    def __str__(self) -> str:
        return self.symbol


_MEMORY_TOKENS: dict[str, MeasureUnit] = {
    "B": MeasureUnit.BYTE,
    "K": MeasureUnit.KIBIBYTE,
    "KB": MeasureUnit.KILOBYTE,
    "KiB": MeasureUnit.KIBIBYTE,
    "M": MeasureUnit.MEBIBYTE,
    "MB": MeasureUnit.MEGABYTE,
    "MiB": MeasureUnit.MEBIBYTE,
    "G": MeasureUnit.GIBIBYTE,
    "GB": MeasureUnit.GIGABYTE,
    "GiB": MeasureUnit.GIBIBYTE,
}

MEMORY_TOKENS = frozenset(_MEMORY_TOKENS)


def memory_unit_from_token(token: str) -> MeasureUnit:
    """Return the memory unit for *token*. Tokens are case-sensitive."""
    try:
        return _MEMORY_TOKENS[token]
    except KeyError:
        raise ParsingError(f"unknown memory unit token {token!r}") from None


def _check_memory_target(target: MeasureUnit) -> None:
    if not target.is_memory:
        raise InvalidArgumentError(f"{target.name} is not a memory measure unit")


def parse_memory(value: str, unit_token: str, target: MeasureUnit = MeasureUnit.BYTE) -> int:
    """Convert ``<value><unit_token>`` into an integer amount of *target* units.

    >>> parse_memory("12", "G")
    12884901888
    >>> parse_memory("999936", "KiB")
    1023934464
    """
    _check_memory_target(target)
    source = memory_unit_from_token(unit_token)
    text = value.strip()
    if not (text.isascii() and text.isdigit()):
        raise ParsingError(f"{value!r} is not a non-negative integer")
    return int(text) * source.factor // target.factor


def format_memory(amount: int, unit_token: str = "B") -> str:
    """Render a byte count as an integer number of *unit_token* units.

    The inverse of :func:`parse_memory` for amounts that are exact multiples
    of the unit.
    """
    if amount < 0:
        raise InvalidArgumentError(f"negative memory amount {amount}")
    unit = memory_unit_from_token(unit_token)
    quotient, remainder = divmod(amount, unit.factor)
    if remainder:
        raise InvalidArgumentError(f"{amount} bytes is not a whole number of {unit_token}")
    return str(quotient)
