# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Maintenance commands.

    python -m userauth.manage init-db
    python -m userauth.manage purge-users alice@example.com bob@example.com
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from userauth.infrastructure.container import Container
from userauth.shared.config import load_config
from userauth.shared.logging import logger, setup_logging


def _init_db(container: Container, _: argparse.Namespace) -> int:
    container.database.init_schema()
    print("Database schema is up to date")
    return 0


def _purge_users(container: Container, args: argparse.Namespace) -> int:
    container.database.init_schema()
    deleted = container.user_repository.delete_by_emails(args.emails)
    logger.info(f"manage.purge_users: deleted={deleted} requested={len(args.emails)}")
    print(f"Deleted {deleted} user(s)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m userauth.manage")
    sub = parser.add_subparsers(dest="command", required=True)

    init_db = sub.add_parser("init-db", help="create missing tables")
    init_db.set_defaults(handler=_init_db)

    purge = sub.add_parser("purge-users", help="delete accounts by email")
    purge.add_argument("emails", nargs="+", metavar="EMAIL")
    purge.set_defaults(handler=_purge_users)
    return parser


def main(argv: Sequence[str] | None = None, *, container: Container | None = None) -> int:
    args = build_parser().parse_args(argv)
    if container is None:
        config = load_config()
        setup_logging(debug_mode=config.debug_logging)
        container = Container(config)
    try:
        return args.handler(container, args)
    finally:
        container.database.dispose()


if __name__ == "__main__":
    sys.exit(main())
