"""Base provider interface for receipt extraction."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

from models.attrs import parse_date_value
from money import to_decimal

# Extractions below this confidence are flagged for manual review
REVIEW_CONFIDENCE_THRESHOLD = 0.7
DEFAULT_CONFIDENCE = 0.1
DEFAULT_CATEGORY = "Other"


@dataclass
class ReceiptExtraction:
    """Expense data read off a receipt image."""

    amount: Decimal
    description: str
    merchant: str
    category: str
    date: date
    confidence: float
    needs_review: bool
    raw_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": format(self.amount, "f"),
            "description": self.description,
            "merchant": self.merchant,
            "category": self.category,
            "date": self.date.isoformat(),
            "confidence": self.confidence,
            "needs_review": self.needs_review,
        }


def parse_extraction(
    data: Dict[str, Any], raw_text: Optional[str] = None, today: Optional[date] = None
) -> ReceiptExtraction:
    """Normalize a provider's raw answer into a ReceiptExtraction.

    Missing or unparseable dates fall back to today, a missing category to
    "Other" and a missing confidence to 0.1. Amounts that do not parse
    become 0, which expense validation then rejects.
    """
    confidence = data.get("confidence")
    confidence = DEFAULT_CONFIDENCE if confidence is None else float(confidence)

    parsed_date = parse_date_value(data.get("date"))
    if not isinstance(parsed_date, date):
        parsed_date = today or date.today()

    return ReceiptExtraction(
        amount=to_decimal(data.get("amount")),
        description=data.get("description") or "Unknown expense",
        merchant=data.get("merchant") or "Unknown merchant",
        category=data.get("category") or DEFAULT_CATEGORY,
        date=parsed_date,
        confidence=confidence,
        needs_review=confidence < REVIEW_CONFIDENCE_THRESHOLD,
        raw_text=raw_text,
    )


class LLMProvider(ABC):
    """Abstract base class for receipt extraction providers."""

    @abstractmethod
    def extract_receipt(self, image_path: Path) -> ReceiptExtraction:
        """Read expense data from a receipt image.

        Args:
            image_path: Path to the image file.

        Returns:
            ReceiptExtraction for the receipt.

        Raises:
            Exception: If the image cannot be read or the API call fails.
        """
        pass
