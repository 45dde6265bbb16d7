"""Category service for database operations."""

import uuid
from dataclasses import replace
from typing import Any, List, Mapping, Optional, Union

from db.manager import parse_timestamp, translate_errors, utc_now
from errors import NotFoundError, ValidationError
from events import (
    CATEGORY_CREATED,
    CATEGORY_DELETED,
    CATEGORY_UPDATED,
    EXPENSE_UPDATES_TOPIC,
    Event,
)
from logger import get_logger
from models.category import Category, CategoryAttrs
from money import to_decimal, to_storage
from validation import NAME_TAKEN, validate_category

logger = get_logger()

_CATEGORY_SELECT_FIELDS = "id, name, description, monthly_budget, inserted_at, updated_at"

HAS_EXPENSES = "category has expenses and cannot be deleted"

_INTEGRITY_FIELDS = {"categories.name": ("name", NAME_TAKEN)}


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db_manager, events=None):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
            events: Optional EventBus notified after each committed change.
        """
        self.db_manager = db_manager
        self.events = events

    def find_all(self) -> List[Category]:
        """Get all categories from the database.

        Returns:
            List of Category objects, ordered by name.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories ORDER BY name"
            )
            return [self._row_to_category(row) for row in cursor.fetchall()]

    def find(self, category_id: str) -> Optional[Category]:
        """Get a single category by ID.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            return self.find_with(conn, category_id)

    def get(self, category_id: str) -> Category:
        """Like find, but raises NotFoundError when the category is missing."""
        category = self.find(category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    def find_by_name(self, name: str) -> Optional[Category]:
        """Get a single category by name (case-sensitive).

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE name = ?",
                (name,),
            )
            row = cursor.fetchone()
            return self._row_to_category(row) if row else None

    def find_with(self, conn, category_id: str) -> Optional[Category]:
        """Look up a category on an existing connection (inside a transaction)."""
        cursor = conn.execute(
            f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE id = ?",
            (str(category_id),),
        )
        row = cursor.fetchone()
        return self._row_to_category(row) if row else None

    def create(self, attrs: Union[CategoryAttrs, Mapping[str, Any]]) -> Category:
        """Validate and create a new category.

        Args:
            attrs: Candidate attributes (name, description, monthly_budget).

        Returns:
            The created Category.

        Raises:
            ValidationError: On invalid fields or a duplicate name.
            StorageError: If the insert fails for any other reason.
        """
        result = validate_category(attrs)
        if not result.is_valid:
            raise ValidationError(result.errors)

        now = utc_now()
        category = Category(
            id=str(uuid.uuid4()),
            name=result.value["name"],
            description=result.value["description"],
            monthly_budget=to_decimal(to_storage(result.value["monthly_budget"])),
            inserted_at=now,
            updated_at=now,
        )

        with translate_errors(_INTEGRITY_FIELDS):
            with self.db_manager.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO categories (id, name, description, monthly_budget,
                                            inserted_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        category.id,
                        category.name,
                        category.description,
                        to_storage(category.monthly_budget),
                        now.isoformat(),
                        now.isoformat(),
                    ),
                )

        logger.info(f"Created category '{category.name}' ({category.id})")
        self._publish(CATEGORY_CREATED, category)
        return category

    def update(
        self, category: Category, attrs: Union[CategoryAttrs, Mapping[str, Any]]
    ) -> Category:
        """Validate and apply changes to a category.

        Fields missing from attrs keep their current values.

        Raises:
            ValidationError: On invalid fields or a duplicate name.
            NotFoundError: If the category was deleted in the meantime.
        """
        result = validate_category(attrs, previous=category)
        if not result.is_valid:
            raise ValidationError(result.errors)

        updated = replace(
            category,
            name=result.value["name"],
            description=result.value["description"],
            monthly_budget=to_decimal(to_storage(result.value["monthly_budget"])),
            updated_at=utc_now(),
        )

        with translate_errors(_INTEGRITY_FIELDS):
            with self.db_manager.transaction() as conn:
                cursor = conn.execute(
                    """
                    UPDATE categories
                    SET name = ?, description = ?, monthly_budget = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        updated.name,
                        updated.description,
                        to_storage(updated.monthly_budget),
                        updated.updated_at.isoformat(),
                        updated.id,
                    ),
                )
                if cursor.rowcount == 0:
                    raise NotFoundError("Category", category.id)

        logger.info(f"Updated category '{updated.name}' ({updated.id})")
        self._publish(CATEGORY_UPDATED, updated)
        return updated

    def delete(self, category: Category) -> bool:
        """Delete a category that has no expenses.

        Categories with expenses cannot be deleted; move or delete the
        expenses first.

        Returns:
            True once the category is deleted.

        Raises:
            ValidationError: If the category still has expenses.
            NotFoundError: If the category does not exist.
        """
        with translate_errors({"FOREIGN KEY": ("expenses", HAS_EXPENSES)}):
            with self.db_manager.transaction() as conn:
                count = conn.execute(
                    "SELECT COUNT(*) FROM expenses WHERE category_id = ?",
                    (category.id,),
                ).fetchone()[0]
                if count:
                    raise ValidationError({"expenses": [HAS_EXPENSES]})
                cursor = conn.execute(
                    "DELETE FROM categories WHERE id = ?", (category.id,)
                )
                if cursor.rowcount == 0:
                    raise NotFoundError("Category", category.id)

        logger.info(f"Deleted category '{category.name}' ({category.id})")
        self._publish(CATEGORY_DELETED, category)
        return True

    def _publish(self, name: str, category: Category) -> None:
        if self.events is not None:
            self.events.publish(
                EXPENSE_UPDATES_TOPIC,
                Event(name=name, payload=category, category_id=category.id),
            )

    def _row_to_category(self, row: tuple) -> Category:
        """Convert a database row to a Category object."""
        return Category(
            id=row[0],
            name=row[1],
            description=row[2],
            monthly_budget=to_decimal(row[3]),
            inserted_at=parse_timestamp(row[4]),
            updated_at=parse_timestamp(row[5]),
        )
