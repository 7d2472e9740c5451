"""Tests for the physical memory and swap metric definitions."""

import logging

import pytest

from fakes import LINUX_TOP_OUTPUT, MAC_TOP_OUTPUT, PROC_MEMINFO_CONTENT
from host_metrics.errors import ParsingError
from host_metrics.measure import MeasureUnit
from host_metrics.metric.memory import (
    PROC_MEMINFO,
    PhysicalMemoryFree,
    PhysicalMemoryTotal,
    PhysicalMemoryUsed,
    SwapFree,
    SwapTotal,
    SwapUsed,
    parse_meminfo,
)
from host_metrics.ostype import OSType
from host_metrics.property import PropertyType

KIB = 1024


def _command_value(cls, os_type, stdout):
    return cls().parse_command(os_type, stdout).property.value


def _file_value(cls, content):
    return cls().parse_file(OSType.LINUX, content.encode()).property.value


class TestLinuxTop:
    def test_physical_memory(self):
        assert _command_value(PhysicalMemoryTotal, OSType.LINUX, LINUX_TOP_OUTPUT) == 999936 * KIB
        assert _command_value(PhysicalMemoryFree, OSType.LINUX, LINUX_TOP_OUTPUT) == 735636 * KIB
        assert _command_value(PhysicalMemoryUsed, OSType.LINUX, LINUX_TOP_OUTPUT) == 117680 * KIB

    def test_parts_add_up_to_total(self):
        total = _command_value(PhysicalMemoryTotal, OSType.LINUX, LINUX_TOP_OUTPUT)
        free = _command_value(PhysicalMemoryFree, OSType.LINUX, LINUX_TOP_OUTPUT)
        used = _command_value(PhysicalMemoryUsed, OSType.LINUX, LINUX_TOP_OUTPUT)
        assert total == free + used + 146620 * KIB

    def test_swap(self):
        assert _command_value(SwapTotal, OSType.LINUX, LINUX_TOP_OUTPUT) == 2097148 * KIB
        assert _command_value(SwapFree, OSType.LINUX, LINUX_TOP_OUTPUT) == 2096124 * KIB
        assert _command_value(SwapUsed, OSType.LINUX, LINUX_TOP_OUTPUT) == 1024 * KIB

    def test_mebibyte_header(self):
        line = "MiB Mem :     3921 total,     1201 free,      900 used,     1820 buff/cache"
        assert _command_value(PhysicalMemoryTotal, OSType.LINUX, line) == 3921 * 2**20

    def test_nonsensical_unit_token_yields_null_and_warns(self, caplog):
        line = "KMG Mem :   999936 total,   735636 free,   117680 used,   146620 buff/cache"
        with caplog.at_level(logging.WARNING):
            reading = PhysicalMemoryUsed().parse_command(OSType.LINUX, line)
        assert reading.property.is_null
        assert reading.property.type is PropertyType.LONG
        assert reading.property.unit is MeasureUnit.BYTE
        assert "unknown memory unit token 'KMG'" in caplog.text


class TestMacTop:
    def test_used(self):
        assert _command_value(PhysicalMemoryUsed, OSType.MAC, MAC_TOP_OUTPUT) == 12 * 2**30

    def test_free_and_total(self):
        assert _command_value(PhysicalMemoryFree, OSType.MAC, MAC_TOP_OUTPUT) == 4305 * 2**20
        assert _command_value(PhysicalMemoryTotal, OSType.MAC, MAC_TOP_OUTPUT) == 12 * 2**30 + 4305 * 2**20

    @pytest.mark.parametrize("cls", [SwapTotal, SwapFree, SwapUsed])
    def test_swap_unavailable(self, cls):
        d = cls()
        assert d.command(OSType.MAC) is None
        assert d.parse_command(OSType.MAC, MAC_TOP_OUTPUT).property.is_null


class TestProcMeminfo:
    def test_parse_meminfo(self):
        info = parse_meminfo(PROC_MEMINFO_CONTENT)
        assert info["MemTotal"] == 1999936 * KIB
        assert info["Active(anon)"] == 12345 * KIB
        # lines without a unit are plain counts
        assert info["HugePages_Total"] == 0

    def test_parse_meminfo_garbage(self):
        with pytest.raises(ParsingError):
            parse_meminfo("nothing here")

    def test_values(self):
        assert _file_value(PhysicalMemoryTotal, PROC_MEMINFO_CONTENT) == 1999936 * KIB
        assert _file_value(PhysicalMemoryFree, PROC_MEMINFO_CONTENT) == 735636 * KIB
        assert _file_value(SwapTotal, PROC_MEMINFO_CONTENT) == 2097148 * KIB
        assert _file_value(SwapFree, PROC_MEMINFO_CONTENT) == 2096124 * KIB
        assert _file_value(SwapUsed, PROC_MEMINFO_CONTENT) == 1024 * KIB

    def test_used_excludes_buffers_and_cache(self):
        expected = (1999936 - 735636 - 46620 - 100000) * KIB
        assert _file_value(PhysicalMemoryUsed, PROC_MEMINFO_CONTENT) == expected

    def test_missing_key_yields_null(self):
        assert PhysicalMemoryUsed().parse_file(OSType.LINUX, b"MemTotal: 10 kB\n").property.is_null

    def test_linux_prefers_file(self):
        assert PhysicalMemoryUsed().source_file(OSType.LINUX) == PROC_MEMINFO
        assert PhysicalMemoryUsed().source_file(OSType.MAC) is None
