"""Base interface for property exporters."""

from __future__ import annotations

import abc

from ..address import Address
from ..property import Property


class BaseExporter(abc.ABC):
    """Abstract base for exporters that receive collected properties."""

    @abc.abstractmethod
    def export(self, properties: list[Property], source: Address, timestamp: float | None = None) -> None:
        """Export the properties of one collection from *source*."""

    @abc.abstractmethod
    def shutdown(self) -> None:
        """Flush and release resources."""
