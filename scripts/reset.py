#!/usr/bin/env python3
"""Wipe local Spendwatch data and recreate an empty database.

Only the directories Spendwatch writes to (database, logs, stored receipt
images) are removed; anything else under base_dir is left alone. Guarded by
``enable_reset`` in the config file.

Usage:
    python -m scripts.reset [--yes]
"""

import argparse
import shutil
import sys

from cli.migrate import apply_pending_migrations
from config import Config, get_config_path, load_config
from db.manager import DatabaseManager


def data_dirs(config: Config):
    """Directories removed by a reset, in display order."""
    return [
        ("Database", config.db_data_dir),
        ("Logs", config.log_dir),
        ("Receipts", config.receipts_dir),
    ]


def reset(config: Config) -> int:
    """Delete the data directories and re-run all migrations.

    Returns:
        Number of migrations applied to the fresh database.
    """
    for label, path in data_dirs(config):
        if path.exists():
            shutil.rmtree(path)
            print(f"✓ {label}: deleted {path}")
        else:
            print(f"✓ {label}: nothing at {path}")

    return len(apply_pending_migrations(DatabaseManager(config)))


def main():
    parser = argparse.ArgumentParser(description="Reset all Spendwatch data")
    parser.add_argument(
        "--yes", action="store_true", help="Skip the confirmation prompt"
    )
    args = parser.parse_args()

    config = load_config()

    if not config.enable_reset:
        print("Reset is disabled in configuration (enable_reset=false).")
        print(f"To enable reset, set enable_reset=true in {get_config_path()}")
        sys.exit(1)

    print("Spendwatch Reset")
    print("=" * 50)
    for label, path in data_dirs(config):
        print(f"{label}: {path}")

    if not args.yes:
        response = input("\nThis will delete ALL data. Continue? (yes/no): ")
        if response.strip().lower() != "yes":
            print("Reset cancelled.")
            sys.exit(0)

    print()
    applied = reset(config)

    print("\n" + "=" * 50)
    print(f"Reset complete, applied {applied} migration(s).")
    print(f"Database location: {config.db_path}")


if __name__ == "__main__":
    main()
