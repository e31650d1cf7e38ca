#!/usr/bin/env python3

from logger import get_logger

logger = get_logger()


def cmd_status(args, db_manager):
    """Show which schema migrations the database has."""
    available = db_manager.available_migrations()
    if not available:
        logger.info("No migrations found.")
        return

    if db_manager.get_db_path().exists():
        with db_manager.connect() as conn:
            applied = db_manager.applied_migrations(conn)
    else:
        logger.info(f"No database at {db_manager.get_db_path()} yet; every migration is pending.")
        applied = set()

    pending = [m for m in available if m not in applied]

    logger.info(f"Database: {db_manager.get_db_path()}")
    for migration in available:
        logger.info(f"  {'applied' if migration in applied else 'PENDING':<8} {migration}")
    logger.info(f"{len(available) - len(pending)} applied, {len(pending)} pending")


def cmd_apply(args, db_manager):
    """Bring the database schema up to date."""
    applied = db_manager.apply_pending_migrations()

    if applied:
        logger.info(f"Applied {len(applied)} migration(s): {', '.join(applied)}")
    else:
        logger.info("Schema is up to date.")


def setup_parser(subparsers):
    """Setup migrate subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "migrate",
        help="Database migrations",
        description="Inspect and apply the bot's SQLite schema migrations",
    )

    migrate_subparsers = parser.add_subparsers(
        title="subcommands",
        dest="subcommand",
        required=True,
    )

    migrate_subparsers.add_parser("status", help="Show migration status").set_defaults(
        func=cmd_status
    )
    migrate_subparsers.add_parser("apply", help="Apply pending migrations").set_defaults(
        func=cmd_apply
    )
