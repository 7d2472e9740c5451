"""Configuration loading for host_metrics."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_FILE = "host_metrics.yaml"


@dataclass
class SSHOptions:
    """Options passed to the ``ssh`` client for remote sources."""

    connect_timeout: int = 10
    batch_mode: bool = True
    strict_host_key_checking: str = "accept-new"
    identity_file: str = ""
    multiplex: bool = False


@dataclass
class SourceConfig:
    """Metric source settings."""

    address: str = "local"
    timeout_seconds: float = 10.0
    max_workers: int = 4
    os_type: str = ""
    ssh_options: SSHOptions = field(default_factory=SSHOptions)


@dataclass
class LocalExporterConfig:
    """Local file exporter settings."""

    enabled: bool = False
    output_dir: str = "./metrics_data"


@dataclass
class HostMetricsConfig:
    """Top-level host_metrics configuration."""

    source: SourceConfig = field(default_factory=SourceConfig)
    # empty means every registered metric
    metrics: list[str] = field(default_factory=list)
    exporter: LocalExporterConfig = field(default_factory=LocalExporterConfig)


def _merge_dict(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *source* into *target*."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_dict(target[key], value)
        else:
            target[key] = value
    return target


def _split_ids(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using HOST_METRICS_ prefix."""
    env_map = {
        "HOST_METRICS_ADDRESS": (("source", "address"), str),
        "HOST_METRICS_TIMEOUT": (("source", "timeout_seconds"), float),
        "HOST_METRICS_MAX_WORKERS": (("source", "max_workers"), int),
        "HOST_METRICS_OS_TYPE": (("source", "os_type"), str),
        "HOST_METRICS_METRICS": (("metrics",), _split_ids),
        "HOST_METRICS_OUTPUT_DIR": (("exporter", "output_dir"), str),
    }
    for env_key, (path, convert) in env_map.items():
        value = os.environ.get(env_key)
        if value is not None:
            obj = data
            for part in path[:-1]:
                obj = obj.setdefault(part, {})
            obj[path[-1]] = convert(value)
    return data


def _filter_fields(cls: type, data: dict[str, Any] | None) -> dict[str, Any]:
    return {k: v for k, v in (data or {}).items() if k in cls.__dataclass_fields__}


def _dict_to_config(data: dict[str, Any]) -> HostMetricsConfig:
    """Convert a raw dictionary to a HostMetricsConfig dataclass."""
    source_data = _filter_fields(SourceConfig, data.get("source"))
    ssh_data = source_data.pop("ssh_options", None)
    metrics = data.get("metrics") or []
    if isinstance(metrics, str):
        metrics = _split_ids(metrics)

    return HostMetricsConfig(
        source=SourceConfig(
            **source_data,
            ssh_options=SSHOptions(**_filter_fields(SSHOptions, ssh_data)),
        ),
        metrics=[str(m) for m in metrics],
        exporter=LocalExporterConfig(**_filter_fields(LocalExporterConfig, data.get("exporter"))),
    )


def load_config(path: str | Path | None = None) -> HostMetricsConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``host_metrics.yaml`` in the current directory if *path* is None.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path(DEFAULT_CONFIG_FILE)
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                data = _merge_dict(data, loaded)

    data = _apply_env_overrides(data)
    return _dict_to_config(data)
