"""Tests for typed properties."""

import pytest

from host_metrics.errors import InvalidArgumentError
from host_metrics.measure import MeasureUnit
from host_metrics.property import Property, PropertyType, make_property


def test_make_property_coerces_value():
    p = make_property("PhysicalMemoryUsed", PropertyType.LONG, MeasureUnit.BYTE, "42")
    assert p.value == 42
    assert isinstance(p.value, int)

    f = make_property("CpuIdleTime", PropertyType.FLOAT, MeasureUnit.PERCENT, 88)
    assert f.value == 88.0
    assert isinstance(f.value, float)


def test_null_property_keeps_type_and_unit():
    p = make_property("SwapFree", PropertyType.LONG, MeasureUnit.BYTE)
    assert p.is_null
    assert p.type is PropertyType.LONG
    assert p.unit is MeasureUnit.BYTE


def test_type_mismatch_rejected():
    with pytest.raises(InvalidArgumentError):
        Property("CpuIdleTime", PropertyType.FLOAT, MeasureUnit.PERCENT, "idle")
    with pytest.raises(InvalidArgumentError):
        Property("SwapFree", PropertyType.LONG, MeasureUnit.BYTE, True)
    with pytest.raises(InvalidArgumentError):
        Property("SwapFree", PropertyType.LONG, MeasureUnit.BYTE, 1.5)


def test_to_dict():
    p = make_property("CpuIdleTime", PropertyType.FLOAT, MeasureUnit.PERCENT, 88.7)
    assert p.to_dict() == {"name": "CpuIdleTime", "type": "Float", "unit": "percent", "value": 88.7}

    load = make_property("LoadAverageLastMinute", PropertyType.DOUBLE, None)
    assert load.to_dict() == {"name": "LoadAverageLastMinute", "type": "Double", "unit": None, "value": None}
