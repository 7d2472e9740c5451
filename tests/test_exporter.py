"""Tests for the JSONL property exporter."""

import json
from datetime import datetime, timezone

from host_metrics.address import Address
from host_metrics.config import LocalExporterConfig
from host_metrics.exporter.local import LocalExporter
from host_metrics.measure import MeasureUnit
from host_metrics.property import PropertyType, make_property


def test_export_writes_one_line_per_property(tmp_path):
    exporter = LocalExporter(LocalExporterConfig(enabled=True, output_dir=str(tmp_path / "out")))
    properties = [
        make_property("CpuIdleTime", PropertyType.FLOAT, MeasureUnit.PERCENT, 88.7),
        make_property("SwapFree", PropertyType.LONG, MeasureUnit.BYTE),
    ]
    try:
        exporter.export(properties, Address.parse("ssh://ops@db1:22"), timestamp=1700000000.0)
        exporter.export(properties[:1], Address.parse("local"), timestamp=1700000002.0)
    finally:
        exporter.shutdown()

    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    path = tmp_path / "out" / f"metrics-{today}.jsonl"
    records = [json.loads(line) for line in path.read_text().splitlines()]

    assert len(records) == 3
    assert records[0] == {
        "name": "CpuIdleTime",
        "type": "Float",
        "unit": "percent",
        "value": 88.7,
        "timestamp": 1700000000.0,
        "source": "ssh://ops@db1:22",
    }
    assert records[1]["value"] is None
    assert records[1]["unit"] == "bytes"
    assert records[2]["source"] == "local"


def test_export_appends_across_instances(tmp_path):
    config = LocalExporterConfig(enabled=True, output_dir=str(tmp_path))
    p = make_property("LoadAverageLastMinute", PropertyType.DOUBLE, None, 0.5)
    for _ in range(2):
        exporter = LocalExporter(config)
        exporter.export([p], Address.parse("local"))
        exporter.shutdown()

    [path] = list(tmp_path.glob("metrics-*.jsonl"))
    assert len(path.read_text().splitlines()) == 2


def test_shutdown_twice(tmp_path):
    exporter = LocalExporter(LocalExporterConfig(output_dir=str(tmp_path)))
    exporter.shutdown()
    exporter.shutdown()
