"""Background processing of uploaded receipts.

Each step commits on its own: the receipt status update, the (optional)
category creation and the expense creation are separate transactions, and the
slow call to the extraction service happens outside all of them.
"""

from typing import Optional

from categorization import match_category
from errors import SpendwatchError, ValidationError
from llm.providers.base import DEFAULT_CATEGORY, LLMProvider, ReceiptExtraction
from logger import get_logger
from models.category import Category
from models.expense import Expense, ExpenseAttrs
from models.receipt import STATUS_COMPLETED, Receipt

logger = get_logger()

AUTO_CATEGORY_DESCRIPTION = "Auto-created from receipt processing"
FALLBACK_CATEGORY_DESCRIPTION = "Miscellaneous expenses"


class ReceiptProcessingError(SpendwatchError):
    """Processing a receipt failed; the job queue may retry it."""


def process_receipt(services, receipt_id: str, extractor: LLMProvider) -> Expense:
    """Turn a pending receipt into an expense.

    Args:
        services: Services container.
        receipt_id: ID of the receipt to process.
        extractor: Provider that reads the receipt image.

    Returns:
        The Expense created from the receipt. A retry reuses the expense an
        earlier attempt already created.

    Raises:
        ReceiptProcessingError: On any failure, after marking the receipt
                                failed, so the job can be retried.
    """
    logger.info(f"Processing receipt {receipt_id}")

    receipt = services.receipts.find(receipt_id)
    if receipt is None:
        raise ReceiptProcessingError(f"Receipt {receipt_id} not found")

    if receipt.processing_status == STATUS_COMPLETED and receipt.expense_id:
        expense = services.expenses.find(receipt.expense_id)
        if expense is not None:
            logger.info(f"Receipt {receipt_id} already processed as expense {expense.id}")
            return expense

    try:
        services.receipts.mark_processing(receipt)
        extraction = extractor.extract_receipt(
            services.config.receipts_dir / receipt.filename
        )
        category = find_or_create_category(services, extraction.category)
        expense = _find_or_create_expense(services, receipt, extraction, category)
        services.receipts.mark_completed(receipt, extraction, expense)
    except Exception as e:
        reason = str(e) or e.__class__.__name__
        logger.error(f"Failed to process receipt {receipt_id}: {reason}")
        _mark_failed(services, receipt, reason)
        raise ReceiptProcessingError(reason) from e

    logger.info(f"Processed receipt {receipt_id} as expense {expense.id}")
    return expense


def find_or_create_category(services, guess: Optional[str]) -> Category:
    """Map the extractor's category guess onto a category, creating one if needed.

    Tries an exact (case-insensitive) match, then a fuzzy match. Otherwise a
    new category is created with the default budget; if that fails, the
    expense goes to "Other".
    """
    match = match_category(guess, services.categories.find_all())
    if match.matched:
        logger.info(
            f"Matched category guess '{guess}' to '{match.category.name}' "
            f"({match.kind}, score {match.score:.2f})"
        )
        return match.category

    try:
        category = services.categories.create(
            {
                "name": guess,
                "description": AUTO_CATEGORY_DESCRIPTION,
                "monthly_budget": services.config.default_category_budget,
            }
        )
        logger.info(f"Created category '{category.name}' from receipt")
        return category
    except ValidationError as e:
        logger.warning(f"Could not create category '{guess}': {e.errors}")
        return _get_or_create_fallback_category(services)


def _get_or_create_fallback_category(services) -> Category:
    category = services.categories.find_by_name(DEFAULT_CATEGORY)
    if category is not None:
        return category
    try:
        return services.categories.create(
            {
                "name": DEFAULT_CATEGORY,
                "description": FALLBACK_CATEGORY_DESCRIPTION,
                "monthly_budget": services.config.default_category_budget,
            }
        )
    except ValidationError:
        # Created concurrently by another worker
        category = services.categories.find_by_name(DEFAULT_CATEGORY)
        if category is None:
            raise
        return category


def receipt_notes(receipt: Receipt) -> str:
    return f"Auto-generated from receipt: {receipt.filename}"


def _find_or_create_expense(
    services, receipt: Receipt, extraction: ReceiptExtraction, category: Category
) -> Expense:
    # The expense commits before the receipt is linked to it, so an attempt
    # that failed in between has already left one behind
    existing = services.expenses.find_by_notes(receipt_notes(receipt))
    if existing is not None:
        logger.warning(f"Reusing expense {existing.id} from an earlier attempt")
        return existing

    attrs = ExpenseAttrs(
        description=extraction.description,
        amount=extraction.amount,
        date=extraction.date,
        notes=receipt_notes(receipt),
        category_id=category.id,
    )
    return services.expenses.create(attrs)


def _mark_failed(services, receipt: Receipt, reason: str) -> None:
    try:
        services.receipts.mark_failed(receipt, reason)
    except SpendwatchError as e:
        logger.error(f"Could not mark receipt {receipt.id} as failed: {e}")


def receipt_job_handler(services, extractor: LLMProvider):
    """Build the job-queue handler for process_receipt jobs."""

    def handle(payload: dict) -> None:
        process_receipt(services, payload["receipt_id"], extractor)

    return handle
