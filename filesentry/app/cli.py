"""Command-line entry point for a single checksum monitoring pass."""

from __future__ import annotations

import argparse
from typing import Sequence

from .config import load_settings
from .domain.cachestore.gateway import (
    InMemoryCacheStoreGateway,
    build_cache_store_gateway,
)
from .domain.checksum.codec import ABSENT, parse_algorithm
from .domain.monitor.runtime import run_monitor_once
from .domain.resources.file_resource import LinkPolicy
from .infra.events import LoggingEventEmitter
from .infra.logging import configure_logging, get_logger
from .infra.metrics import InMemoryMetricsClient

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filesentry",
        description="Report files whose checksum changed since the last pass.",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Files to check; defaults to the profile's watched list.",
    )
    parser.add_argument("--algorithm", help="Checksum algorithm, e.g. md5 or mtime.")
    parser.add_argument(
        "--links",
        choices=[policy.value for policy in LinkPolicy],
        help="Symlink policy.",
    )
    parser.add_argument("--profile", help="Config profile name.")
    parser.add_argument("--config-dir", help="Directory holding config profiles.")
    parser.add_argument("--cache-url", help="SQLAlchemy URL of the checksum cache.")
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Keep checksums in memory only (nothing is persisted).",
    )
    parser.add_argument("--log-level", help="Logging level, e.g. debug.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.profile, args.config_dir)
    configure_logging(args.log_level or settings.logging.get("level"))

    algorithm = parse_algorithm(
        args.algorithm or settings.checksum.default_algorithm
    ).value
    links = args.links or settings.checksum.links
    watched = args.paths or settings.checksum.watched
    if args.memory:
        gateway = InMemoryCacheStoreGateway()
    else:
        gateway = build_cache_store_gateway(args.cache_url or settings.cache_store_url)
    logger.info(
        "monitor_pass_started",
        extra={
            "environment": settings.environment,
            "algorithm": algorithm,
            "links": links,
            "persistent": not args.memory,
        },
    )

    outcomes = run_monitor_once(
        watched,
        cache_gateway=gateway,
        emitter=LoggingEventEmitter(topic_prefix=settings.events.topic_prefix),
        metrics=InMemoryMetricsClient(),
        default_algorithm=algorithm,
        default_links=links,
    )
    for outcome in outcomes:
        if outcome.changed:
            print(f"changed {outcome.path}: {outcome.description}")
        elif outcome.fingerprint == ABSENT:
            print(f"missing {outcome.path}")
        elif outcome.first_sight:
            print(f"recorded {outcome.path}: {outcome.fingerprint}")
        else:
            print(f"unchanged {outcome.path}: {outcome.fingerprint}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
