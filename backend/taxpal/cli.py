from __future__ import annotations

import argparse

from .auth import TokenVerifier
from .bootstrap import Bootstrap
from .config import Settings, load_environment
from .db import Database
from .errors import DependencyLoadError, PersistenceConnectError
from .logging_setup import configure_logging, get_logger


logger = get_logger("taxpal.cli")


def serve() -> int:
    try:
        Bootstrap().run()
    except DependencyLoadError as exc:
        logger.error("[startup] %s", exc)
        logger.error("To fix, run (from project root):")
        logger.error("  pip install -e .")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="TaxPal personal-finance API")
    parser.add_argument("--log-level", default=None, help="logging level (default: LOG_LEVEL or INFO)")

    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("serve", help="start the HTTP server")
    sub.add_parser("init-db", help="create database tables")

    token_cmd = sub.add_parser("issue-token", help="print a bearer token for a user id")
    token_cmd.add_argument("--user", required=True, help="user id")

    args = parser.parse_args(argv)
    load_environment()
    configure_logging(args.log_level)

    if args.cmd == "serve":
        return serve()

    settings = Settings()
    if args.cmd == "init-db":
        try:
            Database(settings.database_path, settings.db_timeout_seconds).connect()
        except PersistenceConnectError as exc:
            logger.error("[db] %s", exc)
            return 1
        print("ok")
    elif args.cmd == "issue-token":
        print(TokenVerifier(settings.auth_secret).issue(args.user))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
