"""Helpers shared by the candidate-attribute structures.

Candidate attributes are the loosely-typed payloads that arrive from forms,
the CLI or the receipt pipeline. Every field starts out as ``UNSET`` so that
an update can tell "not provided" (keep the stored value) from "provided as
blank" (fails validation).
"""

from datetime import date, datetime
from typing import Any


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def is_set(value: Any) -> bool:
    return value is not UNSET


def blank_to_none(value: Any) -> Any:
    """Empty and whitespace-only strings become None."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def parse_date_value(value: Any) -> Any:
    """Parse an ISO date string, leaving unparseable input as-is.

    Validation reports anything that is still not a ``date`` as invalid.
    """
    value = blank_to_none(value)
    if value is None or isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return value
    return value
