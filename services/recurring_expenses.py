"""Recurring expense service for database operations."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from models.recurring_expense import FREQUENCIES, RecurringExpense

_RECURRING_SELECT_FIELDS = """id, user_id, amount, category, subcategory, description,
       frequency, start_date, end_date, last_tracked, active, created_at"""


class RecurringExpenseService:
    """Service for managing recurring expenses.

    Recurring expenses are never deleted; deactivate() flips the active flag
    so history stays available to the dashboard.
    """

    def __init__(self, db_manager):
        self.db_manager = db_manager

    def create(
        self,
        user_id: str,
        amount: Decimal,
        category: str,
        subcategory: Optional[str],
        description: str,
        frequency: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> RecurringExpense:
        """Create an active recurring expense tracked from start_date.

        last_tracked starts equal to start_date, so the first materialized
        occurrence is one interval after creation.

        Raises:
            ValueError: If amount is not positive or frequency is unknown.
            sqlite3.Error: If the insert fails.
        """
        if amount <= 0:
            raise ValueError(f"Recurring amount must be positive, got {amount}")
        if frequency not in FREQUENCIES:
            raise ValueError(f"Unknown frequency: {frequency}")

        start_date = start_date or datetime.now()

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO recurring_expenses
                    (user_id, amount, category, subcategory, description, frequency,
                     start_date, end_date, last_tracked, active)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 1)
                """,
                (
                    user_id,
                    float(amount),
                    category,
                    subcategory,
                    description,
                    frequency,
                    start_date.isoformat(),
                    end_date.isoformat() if end_date else None,
                    start_date.isoformat(),
                ),
            )
            conn.commit()
            recurring_id = cursor.lastrowid

        return RecurringExpense(
            id=recurring_id,
            user_id=user_id,
            amount=amount,
            category=category,
            subcategory=subcategory,
            description=description,
            frequency=frequency,
            start_date=start_date,
            last_tracked=start_date,
            end_date=end_date,
            active=True,
            created_at=datetime.now(),
        )

    def find(self, recurring_id: int, user_id: str) -> Optional[RecurringExpense]:
        """Get a single recurring expense owned by user_id, active or not."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_RECURRING_SELECT_FIELDS}
                FROM recurring_expenses
                WHERE id = ? AND user_id = ?
                """,
                (recurring_id, user_id),
            )
            row = cursor.fetchone()
            return self._row_to_recurring(row) if row else None

    def find_active_by_user(self, user_id: str) -> List[RecurringExpense]:
        """Get a user's active recurring expenses ordered by frequency, then amount."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_RECURRING_SELECT_FIELDS}
                FROM recurring_expenses
                WHERE user_id = ? AND active = 1
                ORDER BY frequency, amount, id
                """,
                (user_id,),
            )
            return [self._row_to_recurring(row) for row in cursor.fetchall()]

    def find_active(self) -> List[RecurringExpense]:
        """Get every active recurring expense across all users."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_RECURRING_SELECT_FIELDS}
                FROM recurring_expenses
                WHERE active = 1
                ORDER BY user_id, id
                """
            )
            return [self._row_to_recurring(row) for row in cursor.fetchall()]

    def deactivate(self, recurring_id: int, user_id: str) -> int:
        """Stop a user's recurring expense.

        Returns:
            Number of rows changed (0 if not found, not owned, or already stopped).
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                UPDATE recurring_expenses SET active = 0
                WHERE id = ? AND user_id = ? AND active = 1
                """,
                (recurring_id, user_id),
            )
            conn.commit()
            return cursor.rowcount

    def update_last_tracked(
        self, recurring_id: int, user_id: str, last_tracked: datetime
    ) -> int:
        """Record the latest materialized occurrence.

        Returns:
            Number of rows changed.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                UPDATE recurring_expenses SET last_tracked = ?
                WHERE id = ? AND user_id = ?
                """,
                (last_tracked.isoformat(), recurring_id, user_id),
            )
            conn.commit()
            return cursor.rowcount

    def _row_to_recurring(self, row: tuple) -> RecurringExpense:
        return RecurringExpense(
            id=row[0],
            user_id=row[1],
            amount=Decimal(str(row[2])),
            category=row[3],
            subcategory=row[4],
            description=row[5] or "",
            frequency=row[6],
            start_date=datetime.fromisoformat(row[7]),
            end_date=datetime.fromisoformat(row[8]) if row[8] else None,
            last_tracked=datetime.fromisoformat(row[9]),
            active=bool(row[10]),
            created_at=datetime.fromisoformat(row[11]) if row[11] else None,
        )
