"""CLI interface for host_metrics."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time

from . import __version__
from .address import LOCAL_ADDRESS
from .config import HostMetricsConfig, load_config
from .errors import HostMetricsError
from .metric.registry import get_registry, known_metric_ids
from .metric.base import OSMetricDefinition
from .property import Property

logger = logging.getLogger(__name__)


def _format_value(p: Property) -> str:
    if p.is_null:
        return "-"
    if isinstance(p.value, float):
        return f"{p.value:.2f}"
    return str(p.value)


def print_properties(properties: list[Property], definitions: list[OSMetricDefinition], title: str) -> None:
    """Render one collection as a rich table."""
    from rich.console import Console
    from rich.table import Table

    table = Table(title=title)
    table.add_column("Metric", style="green")
    table.add_column("Label")
    table.add_column("Value", justify="right", style="cyan")
    table.add_column("Unit", style="magenta")

    for d, p in zip(definitions, properties):
        table.add_row(p.name, d.label, _format_value(p), str(p.unit) if p.unit else "")

    Console().print(table)


def _apply_cli_overrides(cfg: HostMetricsConfig, args: argparse.Namespace) -> HostMetricsConfig:
    if args.address:
        cfg.source.address = args.address
    if args.os_type:
        cfg.source.os_type = args.os_type
    if args.metric:
        cfg.metrics = list(args.metric)
    if args.output_dir:
        cfg.exporter.enabled = True
        cfg.exporter.output_dir = args.output_dir
    return cfg


def _cmd_collect(args: argparse.Namespace) -> None:
    """Collect metrics from one source, once or a bounded number of times."""
    cfg = _apply_cli_overrides(load_config(args.config), args)

    from .exporter.local import LocalExporter
    from .source import factory

    source = factory.create_source(cfg.source)
    definitions = get_registry().parse_many(cfg.metrics or known_metric_ids(), source.address)
    exporter = LocalExporter(cfg.exporter) if cfg.exporter.enabled else None

    source.start()
    try:
        for i in range(args.samples):
            if i:
                time.sleep(args.interval)
            timestamp = time.time()
            properties = source.collect(definitions)
            if exporter is not None:
                exporter.export(properties, source.address, timestamp)
            if args.json:
                for p in properties:
                    record = p.to_dict()
                    record["timestamp"] = timestamp
                    record["source"] = str(source.address)
                    print(json.dumps(record))
            else:
                title = f"{source.address} ({source.os_type.name.lower()})"
                if args.samples > 1:
                    title += f" sample {i + 1}/{args.samples}"
                print_properties(properties, definitions, title)
    finally:
        source.stop()
        if exporter is not None:
            exporter.shutdown()


def _cmd_list(args: argparse.Namespace) -> None:
    """List the metric ids that can be collected."""
    from rich.console import Console
    from rich.table import Table

    table = Table(title="Known metrics")
    table.add_column("Metric", style="green")
    table.add_column("Type")
    table.add_column("Unit", style="magenta")
    table.add_column("Description")
    for metric_id in known_metric_ids():
        d = get_registry().parse(metric_id, LOCAL_ADDRESS)
        table.add_row(d.id, d.type.value, str(d.base_unit) if d.base_unit else "", d.description)
    Console().print(table)


def _cmd_version(_args: argparse.Namespace) -> None:
    print(f"host_metrics {__version__}")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the host-metrics CLI."""
    parser = argparse.ArgumentParser(
        prog="host-metrics",
        description="Collect CPU, memory and load metrics from local or remote hosts",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to host_metrics.yaml")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at DEBUG level")
    sub = parser.add_subparsers(dest="command")

    # collect
    collect_p = sub.add_parser("collect", help="Collect metrics from a source")
    collect_p.add_argument(
        "--metric", "-m", action="append", default=None,
        help="Metric id to collect (repeatable, default: all)",
    )
    collect_p.add_argument("--address", "-a", default=None, help="'local' or ssh://user@host[:port]")
    collect_p.add_argument("--os-type", default=None, help="Skip OS detection (linux, mac)")
    collect_p.add_argument("--json", action="store_true", help="Print one JSON object per property")
    collect_p.add_argument("--samples", "-n", type=int, default=1, help="Number of collections")
    collect_p.add_argument("--interval", "-i", type=float, default=1.0, help="Seconds between collections")
    collect_p.add_argument("--output-dir", "-o", default=None, help="Also write JSONL files to this directory")
    collect_p.set_defaults(func=_cmd_collect)

    # list
    list_p = sub.add_parser("list", help="List known metric ids")
    list_p.set_defaults(func=_cmd_list)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)
    if getattr(args, "samples", 1) < 1:
        parser.error("--samples must be at least 1")

    try:
        args.func(args)
    except HostMetricsError as e:
        logger.error("%s", e)
        sys.exit(2)


if __name__ == "__main__":
    main()
