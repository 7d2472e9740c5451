"""Tests for the load average metric definitions."""

from fakes import LINUX_TOP_OUTPUT, MAC_TOP_OUTPUT, PROC_LOADAVG_CONTENT
from host_metrics.metric.load import (
    PROC_LOADAVG,
    LoadAverageLastFifteenMinutes,
    LoadAverageLastFiveMinutes,
    LoadAverageLastMinute,
)
from host_metrics.ostype import OSType
from host_metrics.property import PropertyType


def test_slots():
    d = LoadAverageLastMinute()
    assert d.type is PropertyType.DOUBLE
    assert d.base_unit is None
    assert d.source_file(OSType.LINUX) == PROC_LOADAVG


def test_linux_top():
    assert LoadAverageLastMinute().parse_command(OSType.LINUX, LINUX_TOP_OUTPUT).property.value == 0.15
    assert LoadAverageLastFiveMinutes().parse_command(OSType.LINUX, LINUX_TOP_OUTPUT).property.value == 0.04
    assert LoadAverageLastFifteenMinutes().parse_command(OSType.LINUX, LINUX_TOP_OUTPUT).property.value == 0.02


def test_mac_top():
    assert LoadAverageLastMinute().parse_command(OSType.MAC, MAC_TOP_OUTPUT).property.value == 2.29
    assert LoadAverageLastFifteenMinutes().parse_command(OSType.MAC, MAC_TOP_OUTPUT).property.value == 1.90


def test_mac_lowercase_header():
    out = "Processes: 1 total\nload average: 1.00, 2.00, 3.00\n"
    assert LoadAverageLastFiveMinutes().parse_command(OSType.MAC, out).property.value == 2.0


def test_proc_loadavg():
    content = PROC_LOADAVG_CONTENT.encode()
    assert LoadAverageLastMinute().parse_file(OSType.LINUX, content).property.value == 0.5
    assert LoadAverageLastFiveMinutes().parse_file(OSType.LINUX, content).property.value == 0.75
    assert LoadAverageLastFifteenMinutes().parse_file(OSType.LINUX, content).property.value == 0.8


def test_malformed_loadavg_is_null():
    reading = LoadAverageLastMinute().parse_file(OSType.LINUX, b"n/a\n")
    assert reading.property.is_null
    assert reading.property.to_dict()["unit"] is None
