"""System load averages over the last 1, 5 and 15 minutes (dimensionless Doubles)."""

from __future__ import annotations

import re

from ..address import LOCAL_ADDRESS, Address
from ..ostype import OSType
from ..property import PropertyType
from .base import Acquisition, OSMetricDefinition
from .cpu import LINUX_TOP_COMMAND, MAC_TOP_COMMAND
from .registry import register_definition

PROC_LOADAVG = "/proc/loadavg"

# top - 11:10:11 up 0 min,  1 user,  load average: 0.15, 0.04, 0.02
LINUX_TOP_LOAD_PATTERN = re.compile(
    r"load average: (?P<m1>[\d.]+), (?P<m5>[\d.]+), (?P<m15>[\d.]+)"
)
# Load Avg: 2.29, 2.02, 1.90
MAC_TOP_LOAD_PATTERN = re.compile(
    r"(?:load average|Load Avg): (?P<m1>[\d.]+), (?P<m5>[\d.]+), (?P<m15>[\d.]+)"
)
# 0.50 0.75 0.80 2/500 12345
PROC_LOADAVG_PATTERN = re.compile(r"^(?P<m1>[\d.]+)[ \t]+(?P<m5>[\d.]+)[ \t]+(?P<m15>[\d.]+)")


class LoadAverageDefinition(OSMetricDefinition):
    def __init__(self, address: Address, *, window: str, label: str, description: str) -> None:
        super().__init__(
            address,
            type=PropertyType.DOUBLE,
            base_unit=None,
            label=label,
            description=description,
            acquisitions={
                OSType.LINUX: Acquisition(
                    command=LINUX_TOP_COMMAND,
                    command_pattern=LINUX_TOP_LOAD_PATTERN,
                    file=PROC_LOADAVG,
                    file_pattern=PROC_LOADAVG_PATTERN,
                ),
                OSType.MAC: Acquisition(
                    command=MAC_TOP_COMMAND,
                    command_pattern=MAC_TOP_LOAD_PATTERN,
                ),
            },
        )
        self._window = window

    def _extract(self, os_type, match):
        return float(match.group(self._window))


@register_definition
class LoadAverageLastMinute(LoadAverageDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            window="m1",
            label="Last Minute Load Average",
            description="The average number of runnable or waiting processes over the last minute.",
        )


@register_definition
class LoadAverageLastFiveMinutes(LoadAverageDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            window="m5",
            label="Last 5 Minutes Load Average",
            description="The average number of runnable or waiting processes over the last five minutes.",
        )


@register_definition
class LoadAverageLastFifteenMinutes(LoadAverageDefinition):
    def __init__(self, address: Address = LOCAL_ADDRESS) -> None:
        super().__init__(
            address,
            window="m15",
            label="Last 15 Minutes Load Average",
            description="The average number of runnable or waiting processes over the last fifteen minutes.",
        )
