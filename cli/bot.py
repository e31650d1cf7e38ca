#!/usr/bin/env python3


def cmd_run(args, config):
    """Run the Telegram bot until interrupted."""
    # Imported here so other commands work without the Telegram stack loaded
    from bot.telegram_bot import run_bot

    run_bot(config)


def setup_parser(subparsers):
    """Setup bot subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "bot",
        help="Run the Telegram bot",
        description="Apply pending migrations and start polling Telegram for updates",
    )

    bot_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available bot commands",
        dest="subcommand",
        required=True,
    )

    # bot run
    run_parser = bot_subparsers.add_parser("run", help="Start the bot")
    run_parser.set_defaults(func=cmd_run)
