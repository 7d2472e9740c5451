"""The collection scheduler shared by local and remote operating systems.

One :meth:`OSSource.collect` call:

1. resolves, for the source's OS, whether each definition is file-backed or
   command-backed (file preferred);
2. reads each distinct file and runs each distinct command exactly once,
   possibly in parallel across distinct targets;
3. hands every definition its input and its previous parser state, stores
   the new state and returns the properties in request order.

A failure affecting a single metric never escapes ``collect``: it is logged
at WARN and the corresponding property carries a ``None`` value.
"""

from __future__ import annotations

import abc
import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from ..address import Address
from ..errors import InvalidArgumentError, NotStartedError
from ..metric.base import MetricDefinition, MetricReading, OSMetricDefinition, PreParsedContent
from ..ostype import OSType
from ..property import Property
from .executor import NativeExecutor

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_WORKERS = 4


class OSSource(abc.ABC):
    """A host against which commands are executed and files are read.

    Lifecycle: construct, :meth:`start`, :meth:`collect` any number of times,
    :meth:`stop`. Callers must not run two ``collect`` calls on the same
    source concurrently.
    """

    def __init__(
        self,
        address: Address,
        executor: NativeExecutor,
        *,
        os_type: OSType | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self._address = address
        self._executor = executor
        self._os_type = os_type
        self._timeout = timeout
        self._max_workers = max(1, max_workers)
        self._lock = threading.Lock()
        self._started = False
        self._states: dict[tuple[str, Address], PreParsedContent] = {}
        self._cancelled = threading.Event()

    @property
    def address(self) -> Address:
        return self._address

    @property
    def executor(self) -> NativeExecutor:
        return self._executor

    @executor.setter
    def executor(self, executor: NativeExecutor) -> None:
        self._executor = executor

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def os_type(self) -> OSType:
        """The configured OS type, or the detected one."""
        if self._os_type is not None:
            return self._os_type
        return self._detect_os_type()

    @abc.abstractmethod
    def _detect_os_type(self) -> OSType:
        ...

    @abc.abstractmethod
    def _read_file(self, path: str) -> bytes:
        """Return the content of *path* on this source, raising on failure."""

    # lifecycle

    def start(self) -> None:
        with self._lock:
            if self._started:
                return
            self._started = True
            self._cancelled.clear()
        self._on_start()
        logger.debug("%s started", self)

    def stop(self) -> None:
        with self._lock:
            if not self._started:
                return
            self._started = False
        self.cancel()
        self._on_stop()
        logger.debug("%s stopped", self)

    def is_started(self) -> bool:
        with self._lock:
            return self._started

    def cancel(self) -> None:
        """Abandon the fetches of the collection in progress; their values become null."""
        self._cancelled.set()

    def _on_start(self) -> None:
        pass

    def _on_stop(self) -> None:
        pass

    # collection

    def collect(self, definitions: Sequence[MetricDefinition]) -> list[Property]:
        """Collect *definitions* and return one property per definition, in order."""
        if not self.is_started():
            raise NotStartedError(f"{self} not started")

        os_type = self.os_type
        os_definitions = [self._ensure_os_definition(d) for d in definitions]
        self._cancelled.clear()

        files: dict[str, bytes | None] = {}
        commands: dict[str, str | None] = {}
        plan: list[tuple[OSMetricDefinition, str | None, str | None]] = []

        for d in os_definitions:
            path = d.source_file(os_type)
            command = None if path is not None else d.command(os_type)
            if path is not None:
                logger.debug("%r is collected on %s by reading %s", d, os_type.name, path)
                files[path] = None
            elif command is not None:
                logger.debug('%r is collected on %s by executing "%s"', d, os_type.name, command)
                commands[command] = None
            else:
                logger.debug("%r not available on %s", d, os_type.name)
            plan.append((d, path, command))

        self._fetch_all(files, commands)

        readings: dict[str, MetricReading] = {}
        results: list[Property] = []
        for d, path, command in plan:
            reading = readings.get(d.id)
            if reading is None:
                previous = self._get_state(d)
                if path is not None:
                    reading = d.parse_file(os_type, files[path], previous)
                else:
                    # command is None when the metric is unavailable on this OS
                    reading = d.parse_command(os_type, commands.get(command) if command else None, previous)
                self._put_state(d, reading.state)
                readings[d.id] = reading
            results.append(reading.property)
        return results

    def _fetch_all(self, files: dict[str, bytes | None], commands: dict[str, str | None]) -> None:
        tasks: list[tuple[Callable[[str], Any], str, dict[str, Any]]] = []
        tasks.extend((self.read, path, files) for path in files)
        tasks.extend((self.execute, command, commands) for command in commands)
        if not tasks:
            return

        if self._max_workers == 1 or len(tasks) == 1:
            for fetch, target, bucket in tasks:
                bucket[target] = fetch(target)
            return

        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(tasks))) as pool:
            futures = {pool.submit(fetch, target): (target, bucket) for fetch, target, bucket in tasks}
            for future in as_completed(futures):
                target, bucket = futures[future]
                bucket[target] = future.result()

    def execute(self, command: str) -> str | None:
        """Run *command* and return its stdout, or None on any failure.

        Failures (executor exception, non-zero exit code, empty stdout) are
        logged at WARN. This method does not raise.
        """
        if self._cancelled.is_set():
            logger.debug('"%s" cancelled before execution', command)
            return None
        logger.debug('%s executing "%s" on %r', self, command, self._executor)
        try:
            r = self._executor.execute(command, timeout=self._timeout)
        except Exception as e:
            logger.warning('"%s" execution failed on %s: %s', command, self, e)
            return None

        if not r.succeeded:
            logger.warning(
                '"%s" execution failed with exit code %d:\n\n%s\n\n%s',
                command,
                r.exit_code,
                f"stdout:\n\n{r.stdout}" if r.stdout else "no stdout",
                f"stderr:\n\n{r.stderr}" if r.stderr else "no stderr",
            )
            return None
        if not r.stdout:
            logger.warning('"%s" succeeded but returned no stdout', command)
            return None
        return r.stdout

    def read(self, path: str) -> bytes | None:
        """Return the content of *path*, or None on any failure. Does not raise."""
        if self._cancelled.is_set():
            logger.debug("reading %s cancelled", path)
            return None
        try:
            content = self._read_file(path)
        except Exception as e:
            logger.warning("failed to read %s on %s: %s", path, self, e)
            return None
        if not content:
            logger.warning("%s on %s is empty", path, self)
            return None
        return content

    # parser state

    def previous_state(self, definition: MetricDefinition) -> PreParsedContent | None:
        return self._get_state(definition)

    def _get_state(self, definition: MetricDefinition) -> PreParsedContent | None:
        with self._lock:
            return self._states.get((definition.id, self._address))

    def _put_state(self, definition: MetricDefinition, state: PreParsedContent | None) -> None:
        key = (definition.id, self._address)
        with self._lock:
            if state is None:
                self._states.pop(key, None)
            else:
                self._states[key] = state

    def _ensure_os_definition(self, d: Any) -> OSMetricDefinition:
        if not isinstance(d, OSMetricDefinition):
            raise InvalidArgumentError(
                f"{self} does not handle {d!r}, an {OSMetricDefinition.__name__} is expected"
            )
        return d

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OSSource):
            return NotImplemented
        return self._address == other._address

    def __hash__(self) -> int:
        return hash(self._address)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._address})"
