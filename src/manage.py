"""OrderDesk database management CLI.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys

import structlog

logger = structlog.get_logger(__name__)


def setup_database():
    """Create the database schema for the OrderDesk domain."""
    from orderdesk.domain import orderdesk
    from orderdesk.utils.db import setup_db

    orderdesk.init()
    logger.info("Creating database schema", domain=orderdesk.name)
    setup_db(orderdesk)
    logger.info("Database schema ready", domain=orderdesk.name)


def drop_database():
    """Drop the database schema for the OrderDesk domain."""
    from orderdesk.domain import orderdesk
    from orderdesk.utils.db import drop_db

    orderdesk.init()
    logger.info("Dropping database schema", domain=orderdesk.name)
    drop_db(orderdesk)
    logger.info("Database schema dropped", domain=orderdesk.name)


def main():
    from orderdesk.utils.logging import configure_logging

    parser = argparse.ArgumentParser(description="OrderDesk database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()
    configure_logging()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
