"""Receipt model recording where an imported expense came from."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

STATUS_PENDING = "pending"
STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

PROCESSING_STATUSES = (STATUS_PENDING, STATUS_PROCESSING, STATUS_COMPLETED, STATUS_FAILED)


@dataclass
class Receipt:
    """An uploaded receipt image and the result of processing it.

    Attributes:
        id: UUID string.
        filename: Name of the stored image under the receipts directory.
        processing_status: pending, processing, completed or failed.
        original_text: Raw text returned by the extraction service.
        extracted_data: Parsed extraction (or {"error": ...} on failure).
        confidence_score: Extraction confidence, 0.0 to 1.0.
        ai_category_suggestion: Category name guessed by the extractor.
        ai_amount_suggestion: Amount guessed by the extractor.
        ai_description_suggestion: Description guessed by the extractor.
        needs_review: True when confidence was below the review threshold.
        processed_at: When processing completed.
        expense_id: The expense created from this receipt.
    """

    id: str
    filename: str
    processing_status: str = STATUS_PENDING
    original_text: Optional[str] = None
    extracted_data: Optional[dict] = None
    confidence_score: Optional[float] = None
    ai_category_suggestion: Optional[str] = None
    ai_amount_suggestion: Optional[Decimal] = None
    ai_description_suggestion: Optional[str] = None
    needs_review: bool = False
    processed_at: Optional[datetime] = None
    expense_id: Optional[str] = None
    inserted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
