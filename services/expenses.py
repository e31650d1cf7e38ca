"""Expense service for database operations.

Every query that reads or mutates a single row is scoped by user_id, so an
expense id from another user behaves exactly like a missing id.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from models.category import CategoryResult
from models.expense import Expense

_EXPENSE_SELECT_FIELDS = """id, user_id, amount, category, subcategory, description,
       timestamp, created_at"""


class ExpenseService:
    """Service for managing expenses."""

    def __init__(self, db_manager):
        """Initialize the expense service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def create(
        self,
        user_id: str,
        amount: Decimal,
        category: str,
        subcategory: Optional[str],
        description: str,
        timestamp: Optional[datetime] = None,
    ) -> Expense:
        """Insert a new expense.

        Args:
            user_id: Owner of the expense.
            amount: Positive amount.
            category: Main category.
            subcategory: Subcategory, or None.
            description: What the money was spent on.
            timestamp: When the expense happened. Defaults to now.

        Returns:
            The created Expense with id populated.

        Raises:
            ValueError: If amount is not positive.
            sqlite3.Error: If the insert fails.
        """
        if amount <= 0:
            raise ValueError(f"Expense amount must be positive, got {amount}")

        timestamp = timestamp or datetime.now()

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO expenses (user_id, amount, category, subcategory, description, timestamp)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    float(amount),
                    category,
                    subcategory,
                    description,
                    timestamp.isoformat(),
                ),
            )
            conn.commit()
            expense_id = cursor.lastrowid

        return Expense(
            id=expense_id,
            user_id=user_id,
            amount=amount,
            category=category,
            subcategory=subcategory,
            description=description,
            timestamp=timestamp,
            created_at=datetime.now(),
        )

    def update_amount(self, expense_id: int, user_id: str, amount: Decimal) -> int:
        """Replace the amount of a user's expense.

        Returns:
            Number of rows changed (0 if the expense does not exist or belongs
            to another user).

        Raises:
            ValueError: If amount is not positive.
        """
        if amount <= 0:
            raise ValueError(f"Expense amount must be positive, got {amount}")

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "UPDATE expenses SET amount = ? WHERE id = ? AND user_id = ?",
                (float(amount), expense_id, user_id),
            )
            conn.commit()
            return cursor.rowcount

    def update_category(
        self,
        expense_id: int,
        user_id: str,
        category: str,
        subcategory: Optional[str],
    ) -> int:
        """Replace the category of a user's expense.

        Returns:
            Number of rows changed.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                UPDATE expenses SET category = ?, subcategory = ?
                WHERE id = ? AND user_id = ?
                """,
                (category, subcategory, expense_id, user_id),
            )
            conn.commit()
            return cursor.rowcount

    def delete(self, expense_id: int, user_id: str) -> int:
        """Delete a user's expense.

        Returns:
            Number of rows deleted. Deleting twice returns 0 the second time.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM expenses WHERE id = ? AND user_id = ?",
                (expense_id, user_id),
            )
            conn.commit()
            return cursor.rowcount

    def find(self, expense_id: int, user_id: str) -> Optional[Expense]:
        """Get a single expense owned by user_id.

        Returns:
            Expense object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_EXPENSE_SELECT_FIELDS}
                FROM expenses
                WHERE id = ? AND user_id = ?
                """,
                (expense_id, user_id),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_expense(row)
            return None

    def find_recent(self, user_id: str, limit: int = 5) -> List[Expense]:
        """Get a user's most recent expenses, newest first."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_EXPENSE_SELECT_FIELDS}
                FROM expenses
                WHERE user_id = ?
                ORDER BY timestamp DESC, id DESC
                LIMIT ?
                """,
                (user_id, limit),
            )
            return [self._row_to_expense(row) for row in cursor.fetchall()]

    def find_latest(self, user_id: str) -> Optional[Expense]:
        """Get a user's most recent expense, or None if they have none."""
        recent = self.find_recent(user_id, limit=1)
        return recent[0] if recent else None

    def total_between(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Decimal:
        """Sum a user's expenses with start <= timestamp < end.

        Args:
            user_id: Owner of the expenses.
            start: Inclusive lower bound, or None for no bound.
            end: Exclusive upper bound, or None for no bound.

        Returns:
            Total amount, rounded to 2 decimals.
        """
        query = "SELECT COALESCE(SUM(amount), 0) FROM expenses WHERE user_id = ?"
        params = [user_id]

        if start is not None:
            query += " AND timestamp >= ?"
            params.append(start.isoformat())

        if end is not None:
            query += " AND timestamp < ?"
            params.append(end.isoformat())

        with self.db_manager.connect() as conn:
            total = conn.execute(query, params).fetchone()[0]

        return round(Decimal(str(total)), 2)

    def _row_to_expense(self, row: tuple) -> Expense:
        """Convert a database row to an Expense object.

        Rows written before category and subcategory were split store the
        whole "Main > Sub" path in category; those are normalized here.
        """
        category, subcategory = row[3], row[4]
        if subcategory is None and ">" in category:
            normalized = CategoryResult.from_path(category)
            category, subcategory = normalized.category, normalized.subcategory

        return Expense(
            id=row[0],
            user_id=row[1],
            amount=Decimal(str(row[2])),
            category=category,
            subcategory=subcategory,
            description=row[5] or "",
            timestamp=datetime.fromisoformat(row[6]),
            created_at=datetime.fromisoformat(row[7]) if row[7] else None,
        )
