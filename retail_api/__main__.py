"""
Run the back-office API or prepare its database.

Usage:
    python -m retail_api serve [--config config.yaml] [--host H] [--port P]
    python -m retail_api create-tables [--config config.yaml]

Without --config, settings come from RETAIL_* environment variables layered
over the defaults.
"""

import argparse
import os
import sys

import uvicorn

from retail_api.app import create_app
from retail_kernel.config import BackofficeConfig
from retail_kernel.db.engine import Database
from retail_kernel.logging_config import configure_logging, get_logger

logger = get_logger("api.cli")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m retail_api",
        description="Retail back-office API",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML configuration file (default: RETAIL_* environment variables)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default: api_host)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: api_port)")

    sub.add_parser("create-tables", help="Create all tables in the configured database")
    return parser.parse_args(argv)


def load_config(path: str | None) -> BackofficeConfig:
    if path:
        return BackofficeConfig.from_yaml_file(path)
    return BackofficeConfig.from_env(os.environ)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    config = load_config(args.config)
    configure_logging(level=config.log_level)
    database = Database(config)

    if args.command == "create-tables":
        database.create_tables()
        database.dispose()
        return 0

    host = args.host or config.api_host
    port = args.port or config.api_port
    logger.info("api_starting", extra={"host": host, "port": port})
    uvicorn.run(create_app(database, config), host=host, port=port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
