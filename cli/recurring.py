#!/usr/bin/env python3

import sys
from tools.recurring import track_recurring_expenses
from tools.summaries import get_recurring_summary
from logger import get_logger

logger = get_logger()


def cmd_list(args, services):
    """List a user's active recurring expenses with totals."""
    summary = get_recurring_summary(services, args.user_id)

    if not summary["groups"]:
        logger.info(f"No recurring expenses found for user {args.user_id}.")
        return

    logger.info(f"\nRecurring expenses for user {args.user_id}:")
    logger.info("=" * 80)
    for frequency, members in summary["groups"].items():
        logger.info(f"\n{frequency.capitalize()}:")
        for recurring in members:
            logger.info(
                f"{recurring.id:>6}  {recurring.amount:>10.2f}  "
                f"{recurring.category_path:<40}  {recurring.description}  "
                f"(next: {recurring.next_due():%Y-%m-%d})"
            )
        logger.info(f"  Total: {summary['totals'][frequency]:.2f}")

    logger.info(f"\nEstimated monthly: {summary['estimated_monthly']:.2f}")


def cmd_track(args, services):
    """Materialize due recurring expense occurrences."""
    created = track_recurring_expenses(services)
    logger.info(f"Created {len(created)} expense(s) from recurring expenses.")


def cmd_stop(args, services):
    """Deactivate a recurring expense."""
    if not services.recurring_expenses.deactivate(args.id, args.user_id):
        logger.error(f"Recurring expense {args.id} not found or already stopped.")
        sys.exit(1)

    logger.info(f"✓ Recurring expense {args.id} stopped.")


def setup_parser(subparsers):
    """Setup recurring subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "recurring",
        help="Manage recurring expenses",
        description="List, track and stop recurring expenses",
    )

    recurring_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available recurring expense commands",
        dest="subcommand",
        required=True,
    )

    # recurring list
    list_parser = recurring_subparsers.add_parser("list", help="List active recurring expenses")
    list_parser.add_argument("--user-id", required=True, help="Telegram user id")
    list_parser.set_defaults(func=cmd_list)

    # recurring track
    track_parser = recurring_subparsers.add_parser(
        "track", help="Create expenses for due recurring occurrences"
    )
    track_parser.set_defaults(func=cmd_track)

    # recurring stop
    stop_parser = recurring_subparsers.add_parser("stop", help="Stop a recurring expense")
    stop_parser.add_argument("id", type=int, help="Recurring expense id")
    stop_parser.add_argument("--user-id", required=True, help="Telegram user id")
    stop_parser.set_defaults(func=cmd_stop)
