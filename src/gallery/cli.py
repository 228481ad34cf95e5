"""CLI entry point for the gallery service."""

import argparse
import logging
import sys
from pathlib import Path

import uvicorn

from gallery.config import apply_env_overrides, load_config
from gallery.logging_config import configure_logging
from gallery.server import create_app


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="gallery",
        description="Gallery - presigned S3 uploads with DynamoDB metadata",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("gallery.yaml"),
        help="Path to YAML configuration file (default: gallery.yaml, optional)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host address to bind to (overrides config)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (overrides config and PORT)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config, default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["text", "json"],
        help="Log format: 'text' (human-readable) or 'json' (structured)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the gallery CLI.

    Loads configuration (file, then environment, then flags), configures
    logging, and starts the server using uvicorn.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].
    """
    args = parse_args(argv)

    # Basic stderr logger for config-loading errors
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    logger = logging.getLogger("gallery")

    try:
        config = apply_env_overrides(load_config(args.config))
    except Exception as exc:
        logger.error("Failed to load config: %s", exc)
        sys.exit(1)

    if args.host is not None:
        config.server.host = args.host
    if args.port is not None:
        config.server.port = args.port
    if args.log_level is not None:
        config.server.log_level = args.log_level
    if args.log_format is not None:
        config.server.log_format = args.log_format

    configure_logging(
        level=config.server.log_level,
        fmt=config.server.log_format,
    )

    logger.info("Starting gallery on %s:%d", config.server.host, config.server.port)
    logger.info(
        "Config: bucket=%s s3_region=%s upload_prefix=%s table=%s region=%s",
        config.storage.bucket,
        config.storage.region,
        config.storage.upload_prefix,
        config.metadata.table,
        config.service_region,
    )

    app = create_app(config)

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level.lower(),
        timeout_graceful_shutdown=config.server.shutdown_timeout,
    )


if __name__ == "__main__":
    main()
