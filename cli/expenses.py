#!/usr/bin/env python3

from tools.summaries import get_expense_stats
from logger import get_logger

logger = get_logger()


def cmd_list(args, services):
    """List a user's most recent expenses."""
    expenses = services.expenses.find_recent(args.user_id, limit=args.limit)

    if not expenses:
        logger.info(f"No expenses found for user {args.user_id}.")
        return

    logger.info(f"\nExpenses for user {args.user_id}:")
    logger.info("=" * 80)
    for expense in expenses:
        logger.info(
            f"{expense.id:>6}  {expense.timestamp:%Y-%m-%d %H:%M}  "
            f"{expense.amount:>10.2f}  {expense.category_path:<40}  {expense.description}"
        )

    logger.info(f"\nShown: {len(expenses)}")


def cmd_stats(args, services):
    """Show a user's spending totals."""
    totals = get_expense_stats(services, args.user_id)

    logger.info(f"\nExpense statistics for user {args.user_id}:")
    logger.info("=" * 80)
    logger.info(f"Total:      ${totals['total']:,.2f}")
    logger.info(f"Today:      ${totals['today']:,.2f}")
    logger.info(f"This month: ${totals['month']:,.2f}")


def setup_parser(subparsers):
    """Setup expenses subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "expenses",
        help="Inspect expenses",
        description="List a user's expenses and spending totals",
    )

    expenses_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available expense commands",
        dest="subcommand",
        required=True,
    )

    # expenses list
    list_parser = expenses_subparsers.add_parser("list", help="List recent expenses")
    list_parser.add_argument("--user-id", required=True, help="Telegram user id")
    list_parser.add_argument(
        "--limit", type=int, default=20, help="Number of expenses to show (default: 20)"
    )
    list_parser.set_defaults(func=cmd_list)

    # expenses stats
    stats_parser = expenses_subparsers.add_parser("stats", help="Show spending totals")
    stats_parser.add_argument("--user-id", required=True, help="Telegram user id")
    stats_parser.set_defaults(func=cmd_stats)
