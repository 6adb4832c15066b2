"""
Inkwell CLI.

Usage:
    inkwell serve [--config PATH] [--db PATH] [--name NAME] [--watermark TEXT] [--key KEY]
    inkwell migrate [--config PATH] [--db PATH]
    inkwell tools

Commands:
    serve      Run the MCP server over stdio. stdout carries protocol frames
               only; logs and status lines go to stderr.
    migrate    Apply pending schema migrations and exit.
    tools      Print the tool catalog as JSON.
"""

import argparse
import json
import logging
import os
import signal
import sys
from typing import Any, Dict, List, Optional

from inkwell.core.auth import resolve_auth
from inkwell.core.config import InkwellConfig, load_config
from inkwell.core.errors import ConfigError, StorageError
from inkwell.mcp.dispatcher import Dispatcher
from inkwell.mcp.registry import Env
from inkwell.mcp.server import StdioServer
from inkwell.store.sqlite_store import SQLiteStore
from inkwell.tools import build_registry
from inkwell.version import __version__

logger = logging.getLogger("Inkwell")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    level_name = (level or os.environ.get("INKWELL_LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def _status(message: str) -> None:
    print(message, file=sys.stderr)


def _resolve_config(args: argparse.Namespace) -> InkwellConfig:
    overrides: Dict[str, Any] = {
        "name": getattr(args, "name", None),
        "watermark": getattr(args, "watermark", None),
    }
    if args.db:
        overrides["database"] = {"type": "sqlite", "path": args.db}
    return load_config(args.config, **overrides)


def _open_store(config: InkwellConfig) -> SQLiteStore:
    if config.database.type != "sqlite":
        raise ConfigError(
            f"Database type {config.database.type!r} is not served over stdio; use a sqlite database"
        )
    store = SQLiteStore(config.database.path)
    store.migrate()
    return store


def _make_shutdown(server: StdioServer, store: SQLiteStore):
    """Signal handler: close the transport, release the store, exit without flushing."""

    def _shutdown(signum, frame):
        logger.info("Received signal %s, shutting down", signum)
        server.stop()
        store.close()
        sys.exit(0)

    return _shutdown


def cmd_serve(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    store = _open_store(config)

    presented = args.key or os.environ.get("INKWELL_KEY")
    auth = resolve_auth(config.auth.enabled, config.auth.owner_key, presented)

    registry = build_registry()
    dispatcher = Dispatcher(registry, Env(store=store, config=config), auth)
    server = StdioServer(dispatcher)

    _shutdown = _make_shutdown(server, store)
    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    _status(f"Inkwell MCP server v{__version__} running (stdio): {config.name}")
    _status(f"  Database: {config.database.path}")
    _status(f"  Role: {auth.role.value}")
    _status(f"  Tools: {len(registry)}")

    try:
        server.serve_forever()
    finally:
        store.close()
    return 0


def cmd_migrate(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    store = _open_store(config)
    try:
        applied = store.applied_migrations()
    finally:
        store.close()
    _status(f"Database at {config.database.path} is up to date ({len(applied)} migrations applied)")
    return 0


def cmd_tools(args: argparse.Namespace) -> int:
    print(json.dumps(build_registry().definitions(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inkwell",
        description="Inkwell: editorial intelligence MCP server for newsletters.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:\n"
               "  inkwell serve --db ./data/inkwell.db\n"
               "  inkwell serve --config inkwell.yaml --key $OWNER_KEY\n"
               "  inkwell migrate --db ./data/inkwell.db\n"
               "  inkwell tools\n",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the MCP server over stdio.")
    serve.add_argument("--config", default=None, metavar="PATH", help="YAML config file (or INKWELL_CONFIG).")
    serve.add_argument("--db", default=None, metavar="PATH", help="SQLite database file.")
    serve.add_argument("--name", default=None, help="Newsletter name reported in serverInfo.")
    serve.add_argument("--watermark", default=None, metavar="TEXT", help="Attribution appended to markdown output.")
    serve.add_argument("--key", default=None, help="Owner key presented by this session (or INKWELL_KEY).")
    serve.add_argument("--log-level", default=None, metavar="LEVEL", help="Logging level (or INKWELL_LOG_LEVEL).")
    serve.set_defaults(func=cmd_serve)

    migrate = subparsers.add_parser("migrate", help="Apply pending schema migrations.")
    migrate.add_argument("--config", default=None, metavar="PATH", help="YAML config file (or INKWELL_CONFIG).")
    migrate.add_argument("--db", default=None, metavar="PATH", help="SQLite database file.")
    migrate.set_defaults(func=cmd_migrate)

    tools = subparsers.add_parser("tools", help="Print the tool catalog as JSON.")
    tools.set_defaults(func=cmd_tools)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(getattr(args, "log_level", None))

    try:
        return args.func(args)
    except (ConfigError, StorageError) as e:
        _status(f"Error: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
