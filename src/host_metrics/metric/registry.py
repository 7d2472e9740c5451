"""Metric definition lookup and interning.

Definitions are interned per ``(metric id, source address)``: asking twice for
``CpuIdleTime`` on the same source returns the same object, which is what
lets a source keep per-definition parser state between collections.
"""

from __future__ import annotations

import importlib
import logging
import threading
from collections.abc import Callable, Iterable, Iterator

from ..address import LOCAL_ADDRESS, Address
from ..errors import UnknownMetricError
from .base import OSMetricDefinition

logger = logging.getLogger(__name__)

DefinitionFactory = Callable[[Address], OSMetricDefinition]

_BUILTIN_MODULES = (
    "host_metrics.metric.cpu",
    "host_metrics.metric.memory",
    "host_metrics.metric.load",
)

_factories: dict[str, DefinitionFactory] = {}
_builtins_loaded = False


def register_definition(cls: type[OSMetricDefinition]) -> type[OSMetricDefinition]:
    """Class decorator making *cls* resolvable by its class name."""
    _factories[cls.__name__] = cls
    return cls


def _load_builtins() -> None:
    global _builtins_loaded
    if _builtins_loaded:
        return
    for name in _BUILTIN_MODULES:
        importlib.import_module(name)
    _builtins_loaded = True


def known_metric_ids() -> list[str]:
    """Every metric id that can be parsed, in registration order."""
    _load_builtins()
    return list(_factories)


class MetricDefinitionRegistry:
    """Interns definitions and indexes them by id and by source address.

    Reads and writes are serialised by one lock; construction of a new
    definition happens under the lock so two threads never intern two
    different objects for the same key.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_key: dict[tuple[str, Address], OSMetricDefinition] = {}
        self._by_address: dict[Address, list[OSMetricDefinition]] = {}

    def parse(self, metric_id: str, address: Address | None = None) -> OSMetricDefinition:
        """Return the definition for *metric_id* bound to *address* (default: local)."""
        _load_builtins()
        address = address or LOCAL_ADDRESS
        key = (metric_id, address)
        with self._lock:
            existing = self._by_key.get(key)
            if existing is not None:
                return existing
            factory = _factories.get(metric_id)
            if factory is None:
                raise UnknownMetricError(metric_id)
            definition = factory(address)
            self._by_key[key] = definition
            self._by_address.setdefault(address, []).append(definition)
        logger.debug("interned %r", definition)
        return definition

    def parse_many(self, metric_ids: Iterable[str], address: Address | None = None) -> list[OSMetricDefinition]:
        return [self.parse(m, address) for m in metric_ids]

    def get(self, metric_id: str, address: Address | None = None) -> OSMetricDefinition | None:
        with self._lock:
            return self._by_key.get((metric_id, address or LOCAL_ADDRESS))

    def definitions_for(self, address: Address) -> list[OSMetricDefinition]:
        """Definitions pinned to *address*, in the order they were interned."""
        with self._lock:
            return list(self._by_address.get(address, ()))

    def clear(self) -> None:
        with self._lock:
            self._by_key.clear()
            self._by_address.clear()

    def __iter__(self) -> Iterator[OSMetricDefinition]:
        with self._lock:
            return iter(list(self._by_key.values()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_key)


_default_registry = MetricDefinitionRegistry()


def get_registry() -> MetricDefinitionRegistry:
    """The process-wide registry."""
    return _default_registry


def parse_metric_definition(metric_id: str, address: Address | None = None) -> OSMetricDefinition:
    """Resolve *metric_id* against the process-wide registry."""
    return _default_registry.parse(metric_id, address)
