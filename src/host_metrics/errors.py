"""Exception hierarchy for host_metrics.

Only :class:`ConfigurationError`, :class:`NotStartedError` and
:class:`InvalidArgumentError` ever escape :meth:`OSSource.collect`.
:class:`ParsingError` and :class:`ExecutionError` are raised internally and
converted into null-valued properties plus a WARN log entry.
"""

from __future__ import annotations


class HostMetricsError(Exception):
    """Base class for all host_metrics errors."""


class ConfigurationError(HostMetricsError):
    """Invalid configuration: unknown metric id, bad address, bad OS type."""


class UnknownMetricError(ConfigurationError):
    """No metric definition is registered under the requested id."""

    def __init__(self, metric_id: str) -> None:
        self.metric_id = metric_id
        super().__init__(f"unknown metric definition {metric_id!r}")


class InvalidAddressError(ConfigurationError):
    """A metric source address could not be parsed."""

    def __init__(self, address: str, reason: str = "") -> None:
        self.address = address
        msg = f"invalid metric source address {address!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class NotStartedError(HostMetricsError):
    """A metric source was asked to collect before being started."""


class InvalidArgumentError(HostMetricsError, ValueError):
    """An argument of the wrong kind was supplied to a source or a parser."""


class ParsingError(HostMetricsError):
    """Raised by parsers when command output or file content cannot be interpreted."""


class ExecutionError(HostMetricsError):
    """A command could not be executed (spawn failure, timeout, transport error)."""

    def __init__(self, command: str, message: str) -> None:
        self.command = command
        super().__init__(f'"{command}" {message}')
