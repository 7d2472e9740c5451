"""CPU time metrics.

On Linux the values come from the first line of ``/proc/stat``::

    cpu  user nice system idle iowait irq softirq steal guest guest_nice

The counters are cumulative ticks since boot, so each reading keeps the
previous totals and reports ``100 * (field - prev_field) / (total - prev_total)``.
The first reading has no predecessor and is computed against a zero
baseline. ``top`` output is parsed when the file is not available.

On macOS only user, system and idle are reported, by ``top -l 1 -n 0``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, fields
from typing import Any, ClassVar

from ..address import LOCAL_ADDRESS, Address
from ..errors import ParsingError
from ..measure import MeasureUnit
from ..ostype import OSType
from ..property import PropertyType
from .base import Acquisition, OSMetricDefinition, PreParsedContent
from .registry import register_definition

logger = logging.getLogger(__name__)

LINUX_TOP_COMMAND = "/usr/bin/top -b -n 1 -p 0"
MAC_TOP_COMMAND = "/usr/bin/top -l 1 -n 0"
PROC_STAT = "/proc/stat"

# %Cpu(s):  2.8 us,  8.1 sy,  0.0 ni, 88.7 id,  0.4 wa,  0.0 hi,  0.1 si,  0.0 st
LINUX_TOP_CPU_PATTERN = re.compile(
    r"%Cpu\(s\):\s*(?P<us>[\d.]+)\s*us,\s*(?P<sy>[\d.]+)\s*sy,\s*(?P<ni>[\d.]+)\s*ni,"
    r"\s*(?P<id>[\d.]+)\s*id,\s*(?P<wa>[\d.]+)\s*wa,\s*(?P<hi>[\d.]+)\s*hi,"
    r"\s*(?P<si>[\d.]+)\s*si,\s*(?P<st>[\d.]+)\s*st"
)

# CPU usage: 2.73% user, 10.95% sys, 86.30% idle
MAC_TOP_CPU_PATTERN = re.compile(
    r"CPU usage: (?P<user>[\d.]+)% user, (?P<sys>[\d.]+)% sys, (?P<idle>[\d.]+)% idle"
)

PROC_STAT_CPU_PATTERN = re.compile(r"^cpu[ \t]+(?P<ticks>\d+(?:[ \t]+\d+)*)[ \t]*$", re.MULTILINE)


@dataclass(frozen=True)
class CpuTicks(PreParsedContent):
    """The aggregate ``cpu`` line of ``/proc/stat``. Older kernels report fewer columns."""

    kind: ClassVar[str] = "proc-stat-cpu"

    user: int = 0
    nice: int = 0
    system: int = 0
    idle: int = 0
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0
    guest: int = 0
    guest_nice: int = 0

    @property
    def total(self) -> int:
        return sum(getattr(self, f.name) for f in fields(self))

    @classmethod
    def parse(cls, content: str) -> CpuTicks:
        m = PROC_STAT_CPU_PATTERN.search(content)
        if m is None:
            raise ParsingError(f"failed to match pattern {PROC_STAT_CPU_PATTERN.pattern!r}")
        ticks = [int(t) for t in m.group("ticks").split()]
        names = [f.name for f in fields(cls)]
        if len(ticks) < 4:
            raise ParsingError(f"expected at least 4 cpu columns, got {len(ticks)}")
        return cls(**dict(zip(names, ticks)))


def cpu_percentage(field: str, current: CpuTicks, previous: CpuTicks | None) -> float:
    """Share of *field* in the ticks elapsed since *previous*, as a percentage."""
    if previous is not None and current.total < previous.total:
        logger.debug("/proc/stat totals went backwards, computing against a zero baseline")
        previous = None
    elapsed = current.total - (previous.total if previous else 0)
    if elapsed <= 0:
        raise ParsingError("no CPU ticks elapsed since the previous reading")
    delta = getattr(current, field) - (getattr(previous, field) if previous else 0)
    return 100.0 * delta / elapsed


class CpuTimeDefinition(OSMetricDefinition):
    """Common shape of the CPU time metrics: Float, percent, one column per source."""

    state_type = CpuTicks

    def __init__(
        self,
        address: Address = LOCAL_ADDRESS,
        *,
        label: str,
        description: str,
        proc_stat_field: str,
        linux_top_column: str,
        mac_top_column: str | None = None,
    ) -> None:
        acquisitions = {
            OSType.LINUX: Acquisition(
                command=LINUX_TOP_COMMAND,
                command_pattern=LINUX_TOP_CPU_PATTERN,
                file=PROC_STAT,
                file_pattern=PROC_STAT_CPU_PATTERN,
            ),
        }
        if mac_top_column is not None:
            acquisitions[OSType.MAC] = Acquisition(
                command=MAC_TOP_COMMAND,
                command_pattern=MAC_TOP_CPU_PATTERN,
            )
        super().__init__(
            address,
            type=PropertyType.FLOAT,
            base_unit=MeasureUnit.PERCENT,
            label=label,
            description=description,
            acquisitions=acquisitions,
        )
        self._proc_stat_field = proc_stat_field
        self._columns = {OSType.LINUX: linux_top_column, OSType.MAC: mac_top_column}

    def _extract(self, os_type: OSType, match: re.Match[str]) -> Any:
        return float(match.group(self._columns[os_type]))

    def _value_from_file(self, os_type, content, previous):
        if self.source_file(os_type) is None:
            raise ParsingError(f"not available from a file on {os_type.name}")
        current = CpuTicks.parse(content)
        return cpu_percentage(self._proc_stat_field, current, previous), current


@register_definition
class CpuUserTime(CpuTimeDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            label="CPU User Time",
            description="Percentage of CPU time spent running user space processes that are not niced.",
            proc_stat_field="user",
            linux_top_column="us",
            mac_top_column="user",
        )


@register_definition
class CpuSystemTime(CpuTimeDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            label="CPU Kernel Time",
            description="Percentage of CPU time spent running kernel code.",
            proc_stat_field="system",
            linux_top_column="sy",
            mac_top_column="sys",
        )


@register_definition
class CpuNiceTime(CpuTimeDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            label="CPU Nice Time",
            description="Percentage of CPU time spent running niced user space processes.",
            proc_stat_field="nice",
            linux_top_column="ni",
        )


@register_definition
class CpuIdleTime(CpuTimeDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            label="CPU Idle Time",
            description="Percentage of CPU time spent idle, not waiting for I/O.",
            proc_stat_field="idle",
            linux_top_column="id",
            mac_top_column="idle",
        )


@register_definition
class CpuIoWaitTime(CpuTimeDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            label="CPU I/O Wait Time",
            description="Percentage of CPU time spent idle while waiting for I/O operations to complete.",
            proc_stat_field="iowait",
            linux_top_column="wa",
        )


@register_definition
class CpuHardwareInterruptTime(CpuTimeDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            label="CPU Hardware Interrupt Time",
            description="Percentage of CPU time spent servicing hardware interrupts.",
            proc_stat_field="irq",
            linux_top_column="hi",
        )


@register_definition
class CpuSoftwareInterruptTime(CpuTimeDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            label="CPU Software Interrupt Time",
            description="Percentage of CPU time spent servicing software interrupts.",
            proc_stat_field="softirq",
            linux_top_column="si",
        )


@register_definition
class CpuStealTime(CpuTimeDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            label="CPU Steal Time",
            description=(
                "Percentage of CPU time stolen from this virtual machine by the hypervisor "
                "to run other tasks."
            ),
            proc_stat_field="steal",
            linux_top_column="st",
        )
