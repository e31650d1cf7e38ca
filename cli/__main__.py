#!/usr/bin/env python3
"""
Hornerito CLI - run the expense bot and look after its database.

Usage:
    python -m cli <command> <subcommand> [options]

Examples:
    python -m cli bot run
    python -m cli migrate status
    python -m cli migrate apply
    python -m cli expenses list --user-id 12345
    python -m cli expenses stats --user-id 12345
    python -m cli recurring list --user-id 12345
    python -m cli recurring track
    python -m cli recurring stop 3 --user-id 12345
"""

import sys
import argparse
from cli import bot, expenses, migrate, recurring
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import get_logger, setup_logging

# What each command's handler receives as its second argument
_DEPENDENCIES = {
    "bot": lambda config: config,
    "migrate": DatabaseManager,
    "expenses": Services,
    "recurring": Services,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hornerito",
        description="Hornerito - Telegram expense tracking bot",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        required=True,
    )
    for command in (bot, migrate, expenses, recurring):
        command.setup_parser(subparsers)
    return parser


def main():
    """Main CLI entry point with subcommands."""
    args = build_parser().parse_args()

    config = load_config()
    setup_logging(config)

    try:
        args.func(args, _DEPENDENCIES[args.command](config))
    except KeyboardInterrupt:
        get_logger().info("Interrupted")
    except Exception as e:
        get_logger().error(f"{args.command} {args.subcommand} failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
