#!/usr/bin/env python3
"""
Spendwatch CLI - Command-line interface for budgets, expenses and receipts.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    categories   Manage categories and their monthly budgets
    expenses     Record and manage expenses
    receipts     Submit receipt images for extraction
    jobs         Run and inspect background jobs
    migrate      Database migrations

Examples:
    python -m cli migrate apply
    python -m cli categories create --name Groceries --description Food --budget 400
    python -m cli expenses add "Weekly shop" 85.50 --category Groceries --notes "Market"
    python -m cli receipts submit ~/Downloads/receipt.jpg
    python -m cli jobs work
"""

import sys
import argparse
from cli import categories, expenses, receipts, jobs, migrate
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import setup_logging


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Spendwatch - Expense tracking against monthly budgets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    categories.setup_parser(subparsers)
    expenses.setup_parser(subparsers)
    receipts.setup_parser(subparsers)
    jobs.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    args = parser.parse_args()

    if hasattr(args, "func"):
        try:
            config = load_config()
            setup_logging(config)

            if args.command == "migrate":
                # Migrate commands need db_manager for raw database operations
                args.func(args, DatabaseManager(config))
            else:
                with Services(config) as services:
                    args.func(args, services)
        except Exception as e:
            print(f"Error: {e}")
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
