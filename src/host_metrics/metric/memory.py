"""Physical memory and swap metrics, all reported as Long byte counts.

Linux values come from ``/proc/meminfo``; ``top`` batch output is the
command alternative::

    KiB Mem :   999936 total,   735636 free,   117680 used,   146620 buff/cache
    KiB Swap:        0 total,        0 free,        0 used.   715840 avail Mem

macOS reports physical memory only, on the ``PhysMem`` line of ``top -l 1``::

    PhysMem: 12G used (2149M wired), 4305M unused.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from ..address import LOCAL_ADDRESS, Address
from ..errors import ParsingError
from ..measure import MeasureUnit, parse_memory
from ..ostype import OSType
from ..property import PropertyType
from .base import Acquisition, OSMetricDefinition
from .cpu import LINUX_TOP_COMMAND, MAC_TOP_COMMAND
from .registry import register_definition

PROC_MEMINFO = "/proc/meminfo"

# The unit token is matched permissively; unknown tokens fail in parse_memory.
LINUX_TOP_MEM_PATTERN = re.compile(
    r"(?P<unit>[KMGiB]+) *Mem *: *(?P<total>\d+) total, *(?P<free>\d+) free,"
    r" *(?P<used>\d+) used, *(?P<cached>\d+) buff/cache"
)
LINUX_TOP_SWAP_PATTERN = re.compile(
    r"(?P<unit>[KMGiB]+) *Swap *: *(?P<total>\d+) total, *(?P<free>\d+) free, *(?P<used>\d+) used\."
)
MAC_TOP_MEM_PATTERN = re.compile(
    r"PhysMem: (?P<used>\d+)(?P<used_unit>[MG]+) used .* (?P<unused>\d+)(?P<unused_unit>[MG]+) unused"
)
MEMINFO_LINE_PATTERN = re.compile(r"^(?P<key>[\w()]+):[ \t]+(?P<value>\d+)(?:[ \t]+(?P<unit>kB))?[ \t]*$", re.MULTILINE)


def parse_meminfo(content: str) -> dict[str, int]:
    """Map ``/proc/meminfo`` keys to byte counts. ``kB`` there means KiB."""
    result = {}
    for m in MEMINFO_LINE_PATTERN.finditer(content):
        value = int(m.group("value"))
        result[m.group("key")] = value * 1024 if m.group("unit") else value
    if not result:
        raise ParsingError(f"failed to match pattern {MEMINFO_LINE_PATTERN.pattern!r}")
    return result


def _meminfo_value(info: dict[str, int], *keys: str) -> list[int]:
    missing = [k for k in keys if k not in info]
    if missing:
        raise ParsingError(f"/proc/meminfo has no {', '.join(missing)}")
    return [info[k] for k in keys]


def top_amount(match: re.Match[str], group: str, unit_group: str = "unit") -> int:
    return parse_memory(match.group(group), match.group(unit_group), MeasureUnit.BYTE)


class MemoryDefinition(OSMetricDefinition):
    """A byte-valued metric with a meminfo formula and per-OS ``top`` extractors."""

    def __init__(
        self,
        address: Address,
        *,
        label: str,
        description: str,
        linux_top_pattern: re.Pattern[str],
        linux_top: Callable[[re.Match[str]], int],
        meminfo: Callable[[dict[str, int]], int],
        mac_top: Callable[[re.Match[str]], int] | None = None,
    ) -> None:
        acquisitions = {
            OSType.LINUX: Acquisition(
                command=LINUX_TOP_COMMAND,
                command_pattern=linux_top_pattern,
                file=PROC_MEMINFO,
                file_pattern=MEMINFO_LINE_PATTERN,
            ),
        }
        if mac_top is not None:
            acquisitions[OSType.MAC] = Acquisition(
                command=MAC_TOP_COMMAND,
                command_pattern=MAC_TOP_MEM_PATTERN,
            )
        super().__init__(
            address,
            type=PropertyType.LONG,
            base_unit=MeasureUnit.BYTE,
            label=label,
            description=description,
            acquisitions=acquisitions,
        )
        self._extractors = {OSType.LINUX: linux_top, OSType.MAC: mac_top}
        self._meminfo = meminfo

    def _extract(self, os_type, match):
        return self._extractors[os_type](match)

    def _value_from_file(self, os_type, content, previous):
        if self.source_file(os_type) is None:
            raise ParsingError(f"not available from a file on {os_type.name}")
        return self._meminfo(parse_meminfo(content)), None


def _meminfo_used(info: dict[str, int]) -> int:
    total, free, buffers, cached = _meminfo_value(info, "MemTotal", "MemFree", "Buffers", "Cached")
    return total - free - buffers - cached


def _meminfo_swap_used(info: dict[str, int]) -> int:
    total, free = _meminfo_value(info, "SwapTotal", "SwapFree")
    return total - free


@register_definition
class PhysicalMemoryTotal(MemoryDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            label="Total Physical Memory",
            description="The total amount of physical memory installed on the system.",
            linux_top_pattern=LINUX_TOP_MEM_PATTERN,
            linux_top=lambda m: top_amount(m, "total"),
            meminfo=lambda info: _meminfo_value(info, "MemTotal")[0],
            mac_top=lambda m: top_amount(m, "used", "used_unit") + top_amount(m, "unused", "unused_unit"),
        )


@register_definition
class PhysicalMemoryFree(MemoryDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            label="Free Physical Memory",
            description="The amount of physical memory not used by processes, buffers or caches.",
            linux_top_pattern=LINUX_TOP_MEM_PATTERN,
            linux_top=lambda m: top_amount(m, "free"),
            meminfo=lambda info: _meminfo_value(info, "MemFree")[0],
            mac_top=lambda m: top_amount(m, "unused", "unused_unit"),
        )


@register_definition
class PhysicalMemoryUsed(MemoryDefinition):
    """Physical memory used by processes: MemTotal - MemFree - Buffers - Cached."""

    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            label="Used Physical Memory",
            description="The amount of physical memory used by the processes running on the system.",
            linux_top_pattern=LINUX_TOP_MEM_PATTERN,
            linux_top=lambda m: top_amount(m, "used"),
            meminfo=_meminfo_used,
            mac_top=lambda m: top_amount(m, "used", "used_unit"),
        )


@register_definition
class SwapTotal(MemoryDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            label="Total Swap",
            description="The total amount of swap available.",
            linux_top_pattern=LINUX_TOP_SWAP_PATTERN,
            linux_top=lambda m: top_amount(m, "total"),
            meminfo=lambda info: _meminfo_value(info, "SwapTotal")[0],
        )


@register_definition
class SwapFree(MemoryDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            label="Free Swap",
            description="The total amount of free swap.",
            linux_top_pattern=LINUX_TOP_SWAP_PATTERN,
            linux_top=lambda m: top_amount(m, "free"),
            meminfo=lambda info: _meminfo_value(info, "SwapFree")[0],
        )


@register_definition
class SwapUsed(MemoryDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            label="Used Swap",
            description="The amount of swap in use.",
            linux_top_pattern=LINUX_TOP_SWAP_PATTERN,
            linux_top=lambda m: top_amount(m, "used"),
            meminfo=_meminfo_swap_used,
        )
