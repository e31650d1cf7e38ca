"""Base services container for dependency injection."""

from config import Config
from db.manager import DatabaseManager


class Services:
    """Container for all application services.

    This class provides a centralized way to access all services and makes
    it easy to inject mock services for testing.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, config is ignored.
    """

    def __init__(self, config: Config, db_manager=None):
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)

        # Lazy import to avoid circular dependencies
        from services.expenses import ExpenseService
        from services.recurring_expenses import RecurringExpenseService
        from services.sessions import SessionService
        from services.learned_examples import LearnedExampleService

        self.expenses = ExpenseService(self.db_manager)
        self.recurring_expenses = RecurringExpenseService(self.db_manager)
        self.sessions = SessionService(self.db_manager)
        self.learned_examples = LearnedExampleService(self.db_manager)
