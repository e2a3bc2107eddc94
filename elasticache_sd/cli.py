"""Argument parsing, configuration loading, and discovery bootstrap."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import signal
import sys
import threading
from types import FrameType

from .config import AppConfig, load_config, validate
from .discovery.aws_client import AWSProvider
from .discovery.service import ElastiCacheDiscovery
from .exceptions import ConfigError, DiscoveryError, ResolutionCancelled
from .file_sd import FileSDAdapter
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="elasticache-sd",
        description="Tool to generate file_sd target files for AWS ElastiCache SD.",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to the YAML configuration file (defaults apply when omitted)",
    )
    parser.add_argument(
        "--output.file",
        dest="output_file",
        help="Output file for file_sd compatible file",
    )
    parser.add_argument(
        "--refresh.interval",
        dest="refresh_interval",
        type=int,
        help="Refresh interval in seconds to re-read the instance list",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single discovery cycle, write the output file and exit",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the configuration and exit",
    )
    return parser


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return a config with command-line flags taking precedence over the file."""
    if args.output_file is not None:
        config = dataclasses.replace(
            config, output=dataclasses.replace(config.output, file=args.output_file),
        )
    if args.refresh_interval is not None:
        config = dataclasses.replace(
            config,
            discovery=dataclasses.replace(config.discovery, refresh_interval_seconds=args.refresh_interval),
        )
    validate(config)
    return config


def _install_signal_handlers(stop: threading.Event) -> None:
    def _handle_shutdown(signum: int, frame: FrameType | None) -> None:
        logger.info("Received %s, shutting down", signal.Signals(signum).name)
        stop.set()

    signal.signal(signal.SIGTERM, _handle_shutdown)
    signal.signal(signal.SIGINT, _handle_shutdown)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Load config (minimal logging until config is loaded)
    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    configure_logging(config.logging)

    if args.validate:
        logger.info("Configuration is valid")
        return 0

    stop = threading.Event()
    _install_signal_handlers(stop)

    try:
        discovery = ElastiCacheDiscovery(
            AWSProvider(config.aws),
            config.discovery,
            config.resolver,
            stop=stop,
            region=config.aws.region,
        )
        adapter = FileSDAdapter(discovery, config.output.file, config.output.sd_name)

        if args.once:
            logger.info("Running single discovery cycle (--once)")
            adapter.write_once(discovery.refresh())
        else:
            adapter.run(stop)
    except ResolutionCancelled:
        logger.info("Shutdown requested before discovery started")
        return 0
    except DiscoveryError as exc:
        logger.error("Fatal error: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0

    return 0
