from __future__ import annotations

import argparse
from collections.abc import Sequence

from taskapi.core.config import get_settings, normalize_database_url
from taskapi.db.bootstrap import initialize_database


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskapi-db",
        description="Task tracker database management commands.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Create the database directory and apply the schema script.",
    )
    init_parser.add_argument("--database-url", default=None)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "init":
        database_url = (
            normalize_database_url(args.database_url)
            if args.database_url is not None
            else get_settings().database_url
        )
        initialize_database(database_url)
        print("Database initialized.")
        return 0

    parser.error(f"Unsupported command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
