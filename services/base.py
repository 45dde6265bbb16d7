"""Base services container for dependency injection."""

from config import Config
from db.manager import DatabaseManager
from events import EventBus


class Services:
    """Container for all application services.

    The container owns the application's EventBus: it is created here at
    startup and closed by close() at shutdown. Mutating services publish to
    it; sessions subscribe through ``services.events``.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, config is
                    only used for non-database settings.
        events: Optional EventBus to use instead of a fresh one.
    """

    def __init__(self, config: Config, db_manager=None, events=None):
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)
        self.events = events or EventBus()

        # Lazy import to avoid circular dependencies
        from services.budgets import BudgetService
        from services.categories import CategoryService
        from services.expenses import ExpenseService
        from services.jobs import JobService
        from services.receipts import ReceiptService

        self.categories = CategoryService(self.db_manager, self.events)
        self.budgets = BudgetService(self.db_manager)
        self.expenses = ExpenseService(self.db_manager, self.budgets, self.events)
        self.jobs = JobService(self.db_manager, lease_seconds=config.job_lease_seconds)
        self.receipts = ReceiptService(
            self.db_manager, self.jobs, max_attempts=config.receipt_max_attempts
        )

    def close(self) -> None:
        """Tear down the event bus, cancelling every subscription."""
        self.events.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
