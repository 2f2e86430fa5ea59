from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, List, Optional, TextIO

from pydantic import ValidationError

from .config import Settings, resolve_region
from .errors import PluginError
from .log import configure_logging, get_logger
from .metrics.client import CloudWatchClient
from .metrics.elb import build_schema
from .metrics.topology import discover_zones
from .output import PluginOutput
from .services.collector import build_snapshot

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="elb-plugin",
        description="mackerel-agent plugin reporting AWS classic ELB metrics from CloudWatch",
    )
    parser.add_argument("--region", help="AWS region")
    parser.add_argument("--access-key-id", dest="access_key_id", help="AWS access key id")
    parser.add_argument(
        "--secret-access-key", dest="secret_access_key", help="AWS secret access key"
    )
    parser.add_argument("--tempfile", help="state file name")
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    overrides: Dict[str, Any] = {k: v for k, v in vars(args).items() if v}
    return Settings(**overrides)


def run(settings: Settings, stream: Optional[TextIO] = None) -> None:
    stream = stream or sys.stdout
    region = resolve_region(settings.region)
    client = CloudWatchClient.create(
        region,
        access_key_id=settings.access_key_id,
        secret_access_key=settings.secret_access_key,
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
    )
    zones = discover_zones(client)
    output = PluginOutput(settings.tempfile)

    if settings.meta_mode:
        output.write_definitions(build_schema(zones), stream)
        return

    snapshot = build_snapshot(client, zones, max_concurrency=settings.max_concurrency)
    output.write_values(build_schema(zones), snapshot, stream)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        settings = load_settings(args)
    except ValidationError as exc:
        configure_logging()
        logger.error("Invalid configuration: %s", exc)
        return 1

    configure_logging(settings.log_level, json_format=settings.log_json)
    try:
        run(settings)
    except PluginError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
