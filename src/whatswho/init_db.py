# src/whatswho/init_db.py
"""Create the chat tables directly, bypassing Alembic (local development only)."""

import argparse
import logging

from whatswho.db.session import create_tables, drop_tables

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--reset",
        action="store_true",
        help="drop every table before creating it again",
    )
    args = parser.parse_args(argv)

    if args.reset:
        drop_tables()
        logger.info("Dropped existing tables")
    create_tables()
    print("Database initialized.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
