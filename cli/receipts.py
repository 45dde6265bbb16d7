#!/usr/bin/env python3

import sys
import shutil
import uuid
from pathlib import Path

from errors import SpendwatchError
from logger import get_logger
from money import format_money

logger = get_logger()

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


def cmd_submit(args, services):
    """Copy a receipt image into the receipts directory and queue it."""
    source = Path(args.image_file)

    if not source.exists():
        logger.error(f"File not found: {args.image_file}")
        sys.exit(1)

    suffix = source.suffix.lower()
    if suffix not in ALLOWED_EXTENSIONS:
        logger.error(
            f"Unsupported file type '{suffix}'. "
            f"Use one of: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )
        sys.exit(1)

    receipts_dir = services.config.receipts_dir
    receipts_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{uuid.uuid4().hex}{suffix}"
    shutil.copy2(source, receipts_dir / filename)

    try:
        receipt = services.receipts.submit(filename)
    except SpendwatchError as e:
        (receipts_dir / filename).unlink(missing_ok=True)
        logger.error(f"Error submitting receipt: {e}")
        sys.exit(1)

    logger.info(f"✓ Receipt queued for processing (ID: {receipt.id})")
    logger.info(f"  Stored as: {receipts_dir / filename}")
    logger.info("Run 'python -m cli jobs work' to process it.")


def cmd_list(args, services):
    """List receipts and their processing status."""
    receipts = services.receipts.find_all()

    if not receipts:
        logger.info("No receipts found.")
        return

    logger.info("\nReceipts:")
    logger.info("=" * 80)
    for receipt in receipts:
        logger.info(f"ID: {receipt.id}")
        logger.info(f"File: {receipt.filename}")
        logger.info(f"Status: {receipt.processing_status}")
        if receipt.ai_amount_suggestion is not None:
            logger.info(
                f"Extracted: {format_money(receipt.ai_amount_suggestion)} "
                f"'{receipt.ai_description_suggestion}' "
                f"as {receipt.ai_category_suggestion}"
            )
        if receipt.confidence_score is not None:
            review = " (needs review)" if receipt.needs_review else ""
            logger.info(f"Confidence: {receipt.confidence_score:.2f}{review}")
        if receipt.expense_id:
            logger.info(f"Expense: {receipt.expense_id}")
        if receipt.extracted_data and "error" in receipt.extracted_data:
            logger.info(f"Error: {receipt.extracted_data['error']}")
        logger.info("-" * 80)

    logger.info(f"\nTotal receipts: {len(receipts)}")


def setup_parser(subparsers):
    """Setup receipts subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "receipts",
        help="Upload and inspect receipts",
        description="Submit receipt images for automatic expense extraction",
    )

    receipts_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available receipt commands",
        dest="subcommand",
        required=True,
    )

    # receipts submit
    submit_parser = receipts_subparsers.add_parser(
        "submit", help="Queue a receipt image for processing"
    )
    submit_parser.add_argument("image_file", help="Path to the receipt image")
    submit_parser.set_defaults(func=cmd_submit)

    # receipts list
    list_parser = receipts_subparsers.add_parser("list", help="List receipts")
    list_parser.set_defaults(func=cmd_list)
