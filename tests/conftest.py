"""Shared fixtures."""

from __future__ import annotations

import pytest

from fakes import FakeOS, RecordingExecutor
from host_metrics import ostype
from host_metrics.metric.registry import get_registry


@pytest.fixture
def recording_executor():
    return RecordingExecutor()


@pytest.fixture
def fake_os():
    source = FakeOS()
    source.start()
    yield source
    source.stop()


@pytest.fixture(autouse=True)
def _isolate_global_state():
    yield
    ostype.reset()
    get_registry().clear()
