"""Receipt service for database operations."""

import json
import uuid
from typing import List, Optional

from db.manager import parse_timestamp, translate_errors, utc_now
from errors import NotFoundError
from logger import get_logger
from models.receipt import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_PROCESSING,
    Receipt,
)
from money import to_decimal, to_storage

logger = get_logger()

PROCESS_RECEIPT_JOB = "process_receipt"

_RECEIPT_FIELDS = """id, filename, processing_status, original_text, extracted_data,
       confidence_score, ai_category_suggestion, ai_amount_suggestion,
       ai_description_suggestion, needs_review, processed_at, expense_id,
       inserted_at, updated_at"""


class ReceiptService:
    """Service for managing receipt records.

    Receipt bookkeeping happens in its own short transactions, separate from
    the expense created for it.
    """

    def __init__(self, db_manager, jobs=None, max_attempts: int = 3):
        """Initialize the receipt service.

        Args:
            db_manager: Database manager instance for database operations.
            jobs: JobService used by submit() to queue processing.
            max_attempts: Attempts allowed for each processing job.
        """
        self.db_manager = db_manager
        self.jobs = jobs
        self.max_attempts = max_attempts

    def create(self, filename: str) -> Receipt:
        """Record a newly uploaded receipt in pending state."""
        now = utc_now()
        receipt = Receipt(
            id=str(uuid.uuid4()), filename=filename, inserted_at=now, updated_at=now
        )
        with translate_errors():
            with self.db_manager.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO receipts (id, filename, processing_status,
                                          inserted_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (receipt.id, filename, STATUS_PENDING, now.isoformat(), now.isoformat()),
                )
        logger.info(f"Created receipt {receipt.id} for {filename}")
        return receipt

    def submit(self, filename: str) -> Receipt:
        """Create a receipt and queue it for background processing."""
        if self.jobs is None:
            raise RuntimeError("ReceiptService.submit needs a job queue")
        receipt = self.create(filename)
        self.jobs.enqueue(
            PROCESS_RECEIPT_JOB, {"receipt_id": receipt.id}, max_attempts=self.max_attempts
        )
        return receipt

    def find(self, receipt_id: str) -> Optional[Receipt]:
        """Get a single receipt by ID."""
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"SELECT {_RECEIPT_FIELDS} FROM receipts WHERE id = ?", (receipt_id,)
            ).fetchone()
            return self._row_to_receipt(row) if row else None

    def get(self, receipt_id: str) -> Receipt:
        receipt = self.find(receipt_id)
        if receipt is None:
            raise NotFoundError("Receipt", receipt_id)
        return receipt

    def find_all(self) -> List[Receipt]:
        """Get all receipts, newest first."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_RECEIPT_FIELDS} FROM receipts ORDER BY inserted_at DESC"
            )
            return [self._row_to_receipt(row) for row in cursor.fetchall()]

    def mark_processing(self, receipt: Receipt) -> Receipt:
        receipt.processing_status = STATUS_PROCESSING
        return self._save(receipt)

    def mark_completed(self, receipt: Receipt, extraction, expense) -> Receipt:
        """Store the extraction result and link the created expense.

        Args:
            receipt: The receipt being processed.
            extraction: ReceiptExtraction returned by the provider.
            expense: The Expense created from it.
        """
        receipt.processing_status = STATUS_COMPLETED
        receipt.original_text = extraction.raw_text
        receipt.extracted_data = extraction.to_dict()
        receipt.confidence_score = extraction.confidence
        receipt.ai_category_suggestion = extraction.category
        receipt.ai_amount_suggestion = extraction.amount
        receipt.ai_description_suggestion = extraction.description
        receipt.needs_review = extraction.needs_review
        receipt.processed_at = utc_now()
        receipt.expense_id = expense.id
        return self._save(receipt)

    def mark_failed(self, receipt: Receipt, reason: str) -> Receipt:
        receipt.processing_status = STATUS_FAILED
        receipt.extracted_data = {"error": reason}
        return self._save(receipt)

    def _save(self, receipt: Receipt) -> Receipt:
        receipt.updated_at = utc_now()
        with translate_errors():
            with self.db_manager.transaction() as conn:
                cursor = conn.execute(
                    """
                    UPDATE receipts
                    SET processing_status = ?, original_text = ?, extracted_data = ?,
                        confidence_score = ?, ai_category_suggestion = ?,
                        ai_amount_suggestion = ?, ai_description_suggestion = ?,
                        needs_review = ?, processed_at = ?, expense_id = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        receipt.processing_status,
                        receipt.original_text,
                        (
                            json.dumps(receipt.extracted_data)
                            if receipt.extracted_data is not None
                            else None
                        ),
                        receipt.confidence_score,
                        receipt.ai_category_suggestion,
                        (
                            to_storage(receipt.ai_amount_suggestion)
                            if receipt.ai_amount_suggestion is not None
                            else None
                        ),
                        receipt.ai_description_suggestion,
                        int(receipt.needs_review),
                        receipt.processed_at.isoformat() if receipt.processed_at else None,
                        receipt.expense_id,
                        receipt.updated_at.isoformat(),
                        receipt.id,
                    ),
                )
                if cursor.rowcount == 0:
                    raise NotFoundError("Receipt", receipt.id)
        return receipt

    def _row_to_receipt(self, row: tuple) -> Receipt:
        """Convert a database row to a Receipt object."""
        return Receipt(
            id=row[0],
            filename=row[1],
            processing_status=row[2],
            original_text=row[3],
            extracted_data=json.loads(row[4]) if row[4] else None,
            confidence_score=row[5],
            ai_category_suggestion=row[6],
            ai_amount_suggestion=to_decimal(row[7]) if row[7] is not None else None,
            ai_description_suggestion=row[8],
            needs_review=bool(row[9]),
            processed_at=parse_timestamp(row[10]),
            expense_id=row[11],
            inserted_at=parse_timestamp(row[12]),
            updated_at=parse_timestamp(row[13]),
        )
