"""RecurringExpense model for expenses repeated on a schedule."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from models.category import CategoryResult

FREQUENCIES = ("daily", "weekly", "monthly")

# Average occurrences per month, used for the estimated monthly total.
MONTHLY_MULTIPLIERS = {"daily": 30, "weekly": 4, "monthly": 1}


def frequency_delta(frequency: str) -> relativedelta:
    """Get the interval between two occurrences of a frequency.

    Raises:
        ValueError: If frequency is not one of FREQUENCIES.
    """
    if frequency == "daily":
        return relativedelta(days=1)
    if frequency == "weekly":
        return relativedelta(weeks=1)
    if frequency == "monthly":
        return relativedelta(months=1)
    raise ValueError(f"Unknown frequency: {frequency}")


@dataclass
class RecurringExpense:
    """Represents an expense that repeats daily, weekly or monthly.

    Attributes:
        id: Unique identifier (auto-generated).
        user_id: Owner of the recurring expense.
        amount: Amount charged per occurrence (always positive).
        category: Main category.
        subcategory: Subcategory, or None.
        description: What the expense is for.
        frequency: One of "daily", "weekly", "monthly".
        start_date: When the schedule began.
        last_tracked: Last occurrence materialized as an Expense.
        end_date: Optional last day of the schedule.
        active: False once the user removed it. Rows are never deleted.
    """

    id: int
    user_id: str
    amount: Decimal
    category: str
    subcategory: Optional[str]
    description: str
    frequency: str
    start_date: datetime
    last_tracked: datetime
    end_date: Optional[datetime] = None
    active: bool = True
    created_at: Optional[datetime] = None

    @property
    def classification(self) -> CategoryResult:
        return CategoryResult(self.category, self.subcategory)

    @property
    def category_path(self) -> str:
        return self.classification.path

    def next_due(self) -> datetime:
        """Get the date of the next occurrence after last_tracked."""
        return self.last_tracked + frequency_delta(self.frequency)

    def to_dict(self) -> dict:
        """Convert recurring expense to the row shape read by the dashboard."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "amount": float(self.amount),
            "category": self.category_path,
            "subcategory": self.subcategory,
            "description": self.description,
            "frequency": self.frequency,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "last_tracked": self.last_tracked.isoformat(),
            "active": self.active,
        }
