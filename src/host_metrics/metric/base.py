"""Metric definition contracts.

An :class:`OSMetricDefinition` knows, for each :class:`OSType`, which file to
read or which command to run, and how to turn the resulting text into a
:class:`Property`. It never performs I/O itself: the metric source fetches
each distinct file or command once per collection and hands the content to
every definition that needs it, so metrics sharing an input are consistent
and stamped at the same moment.

Parsers never raise on bad input. A failed match or conversion is logged at
WARN together with the offending text, and the returned property carries a
``None`` value.
"""

from __future__ import annotations

import abc
import logging
import re
from dataclasses import dataclass
from typing import Any, ClassVar, NamedTuple

from ..address import LOCAL_ADDRESS, Address
from ..errors import InvalidArgumentError, ParsingError
from ..measure import MeasureUnit, UnitKind
from ..ostype import OSType
from ..property import Property, PropertyType, make_property

logger = logging.getLogger(__name__)

MAX_LOGGED_INPUT = 512


def truncate(text: str, limit: int = MAX_LOGGED_INPUT) -> str:
    """Shorten *text* for log messages."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... ({len(text) - limit} more characters)"


class PreParsedContent:
    """Parser state carried between two successive collections.

    Subclasses set :attr:`kind`; a definition only accepts state whose kind
    matches its own :attr:`OSMetricDefinition.state_type`.
    """

    kind: ClassVar[str] = ""


class MetricReading(NamedTuple):
    """What a parser returns: the property plus the state for the next reading."""

    property: Property
    state: PreParsedContent | None


@dataclass(frozen=True)
class Acquisition:
    """How a metric is obtained on one OS. Any field may be None."""

    command: str | None = None
    command_pattern: re.Pattern[str] | None = None
    file: str | None = None
    file_pattern: re.Pattern[str] | None = None


class MetricDefinition(abc.ABC):
    """The rule for acquiring and interpreting one named measurement."""

    def __init__(
        self,
        address: Address,
        *,
        type: PropertyType,
        base_unit: MeasureUnit | None,
        label: str,
        description: str,
    ) -> None:
        if address is None:
            raise InvalidArgumentError("a metric definition must be bound to a metric source address")
        self._address = address
        self._type = type
        self._base_unit = base_unit
        self._label = label
        self._description = description

    @property
    def id(self) -> str:
        """By convention, the name of the concrete definition class."""
        return type(self).__name__

    @property
    def address(self) -> Address:
        """Address of the metric source this definition is bound to."""
        return self._address

    @property
    def type(self) -> PropertyType:
        return self._type

    @property
    def base_unit(self) -> MeasureUnit | None:
        return self._base_unit

    @property
    def label(self) -> str:
        return self._label

    @property
    def description(self) -> str:
        return self._description

    def null_property(self) -> Property:
        return make_property(self.id, self._type, self._base_unit)

    def __repr__(self) -> str:
        return f"{self.id}({self._address})"


class OSMetricDefinition(MetricDefinition):
    """A metric read from a file or a command output of an operating system.

    Subclasses pass one :class:`Acquisition` per supported OS to the
    constructor and override :meth:`_value_from_command` and/or
    :meth:`_value_from_file`. When both a file and a command are available,
    the metric source prefers the file.
    """

    state_type: ClassVar[type[PreParsedContent] | None] = None

    def __init__(
        self,
        address: Address = LOCAL_ADDRESS,
        *,
        type: PropertyType,
        base_unit: MeasureUnit | None,
        label: str,
        description: str,
        acquisitions: dict[OSType, Acquisition] | None = None,
    ) -> None:
        super().__init__(address, type=type, base_unit=base_unit, label=label, description=description)
        self._acquisitions: dict[OSType, Acquisition] = dict(acquisitions or {})

    def acquisition(self, os_type: OSType) -> Acquisition | None:
        return self._acquisitions.get(os_type)

    def source_file(self, os_type: OSType) -> str | None:
        a = self._acquisitions.get(os_type)
        return a.file if a else None

    def command(self, os_type: OSType) -> str | None:
        a = self._acquisitions.get(os_type)
        return a.command if a else None

    def parse_file(
        self,
        os_type: OSType,
        content: bytes | None,
        previous: PreParsedContent | None = None,
    ) -> MetricReading:
        """Extract the property from the content of :meth:`source_file`."""
        self._check_state(previous)
        if content is None:
            return MetricReading(self.null_property(), previous)
        text = content.decode("utf-8", errors="replace")
        try:
            value, state = self._value_from_file(os_type, text, previous)
            return MetricReading(self._to_property(value), state)
        except Exception as e:
            logger.warning(
                "%s: failed to parse %s content on %s: %s\n\n%s\n",
                self.id, self.source_file(os_type), os_type.name, e, truncate(text),
            )
            return MetricReading(self.null_property(), previous)

    def parse_command(
        self,
        os_type: OSType,
        stdout: str | None,
        previous: PreParsedContent | None = None,
    ) -> MetricReading:
        """Extract the property from the stdout of :meth:`command`."""
        self._check_state(previous)
        if stdout is None:
            return MetricReading(self.null_property(), previous)
        try:
            value, state = self._value_from_command(os_type, stdout, previous)
            return MetricReading(self._to_property(value), state)
        except Exception as e:
            logger.warning(
                '%s: failed to parse "%s" output on %s: %s\n\n%s\n',
                self.id, self.command(os_type), os_type.name, e, truncate(stdout),
            )
            return MetricReading(self.null_property(), previous)

    def _check_state(self, previous: PreParsedContent | None) -> None:
        if previous is None:
            return
        expected = self.state_type
        if expected is None or not isinstance(previous, expected) or previous.kind != expected.kind:
            raise InvalidArgumentError(
                f"{self.id} cannot use previous reading {type(previous).__name__}"
                + (f", a {expected.__name__} is expected" if expected else "")
            )

    def _to_property(self, value: Any) -> Property:
        if value is None:
            raise ParsingError("parser produced no value")
        p = make_property(self.id, self._type, self._base_unit, value)
        unit = self._base_unit
        if unit is not None and unit.kind is UnitKind.RATIO and not 0.0 <= p.value <= 100.0:
            raise ParsingError(f"percentage {p.value} outside [0, 100]")
        if unit is not None and unit.kind is UnitKind.MEMORY and p.value < 0:
            raise ParsingError(f"negative memory amount {p.value}")
        return p

    def _match(self, pattern: re.Pattern[str] | None, text: str) -> re.Match[str]:
        if pattern is None:
            raise ParsingError("no pattern configured")
        m = pattern.search(text)
        if m is None:
            raise ParsingError(f"failed to match pattern {pattern.pattern!r}")
        return m

    def _value_from_command(
        self,
        os_type: OSType,
        stdout: str,
        previous: PreParsedContent | None,
    ) -> tuple[Any, PreParsedContent | None]:
        a = self._acquisitions.get(os_type)
        if a is None or a.command is None:
            raise ParsingError(f"not available via a command on {os_type.name}")
        m = self._match(a.command_pattern, stdout)
        return self._extract(os_type, m), None

    def _value_from_file(
        self,
        os_type: OSType,
        content: str,
        previous: PreParsedContent | None,
    ) -> tuple[Any, PreParsedContent | None]:
        a = self._acquisitions.get(os_type)
        if a is None or a.file is None:
            raise ParsingError(f"not available from a file on {os_type.name}")
        m = self._match(a.file_pattern, content)
        return self._extract(os_type, m), None

    def _extract(self, os_type: OSType, match: re.Match[str]) -> Any:
        """Turn a successful pattern match into the metric value."""
        raise ParsingError(f"{self.id} does not implement pattern extraction")
