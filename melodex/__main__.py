"""
Melodex - Entry Point

Run with: python -m melodex
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from melodex import __version__
from melodex.app import MelodexApp
from melodex.config import MelodexConfig, load_config
from melodex.core import ConfigError


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="melodex",
        description="Melodex - search a music catalog and browse popular tracks",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to a TOML config file (overrides packaged defaults)",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host address to bind to (default: 0.0.0.0)",
    )

    parser.add_argument(
        "--web-port",
        type=int,
        default=None,
        help="Web port (default: 9000)",
    )

    parser.add_argument(
        "--storage",
        type=Path,
        default=None,
        help="Local storage file (default: cache/local_storage.json)",
    )

    parser.add_argument(
        "--poll-interval",
        type=int,
        default=None,
        metavar="MS",
        help="Popular-tracks refresh interval in milliseconds (default: 20000)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> MelodexConfig:
    """Load the config file and apply command-line overrides."""
    config = load_config(args.config)

    if args.host is not None:
        config.web.host = args.host
    if args.web_port is not None:
        config.web.port = args.web_port
    if args.storage is not None:
        config.storage.path = str(args.storage)
    if args.poll_interval is not None:
        if args.poll_interval <= 0:
            raise ConfigError("--poll-interval must be positive")
        config.search.poll_interval_ms = args.poll_interval

    return config


async def run_app(config: MelodexConfig) -> None:
    """Start and run Melodex."""
    app = MelodexApp(config)
    await app.run()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    logger = logging.getLogger(__name__)

    try:
        config = build_config(args)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 2

    logger.info("Starting Melodex on %s:%d...", config.web.host, config.web.port)

    try:
        asyncio.run(run_app(config))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        return 1

    logger.info("Melodex stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
