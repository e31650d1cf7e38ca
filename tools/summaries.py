"""Expense summary tools."""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from models.recurring_expense import FREQUENCIES, MONTHLY_MULTIPLIERS, RecurringExpense


def get_recurring_summary(services, user_id: str) -> Dict:
    """Summarize a user's active recurring expenses.

    Args:
        services: Services container with recurring expense service.
        user_id: Owner of the recurring expenses.

    Returns:
        Dictionary with:
        - "groups": frequency -> list of RecurringExpense, only for
          frequencies that have expenses, in daily/weekly/monthly order
        - "totals": frequency -> total amount per occurrence (Decimal)
        - "estimated_monthly": monthly + 4 * weekly + 30 * daily (Decimal)

    Example:
        {
            "groups": {"monthly": [RecurringExpense(...)]},
            "totals": {"monthly": Decimal("15.99")},
            "estimated_monthly": Decimal("15.99"),
        }
    """
    recurring = services.recurring_expenses.find_active_by_user(user_id)
    return summarize_recurring(recurring)


def summarize_recurring(recurring: List[RecurringExpense]) -> Dict:
    """Group recurring expenses by frequency and compute totals."""
    groups: Dict[str, List[RecurringExpense]] = {}
    for frequency in FREQUENCIES:
        members = [r for r in recurring if r.frequency == frequency]
        if members:
            groups[frequency] = members

    totals = {
        frequency: sum((r.amount for r in members), Decimal("0"))
        for frequency, members in groups.items()
    }

    estimated_monthly = sum(
        (total * MONTHLY_MULTIPLIERS[frequency] for frequency, total in totals.items()),
        Decimal("0"),
    )

    return {
        "groups": groups,
        "totals": totals,
        "estimated_monthly": estimated_monthly,
    }


def get_expense_stats(services, user_id: str, now: Optional[datetime] = None) -> Dict[str, Decimal]:
    """Get a user's spending totals.

    Args:
        services: Services container with expense service.
        user_id: Owner of the expenses.
        now: Reference time, defaults to the current time.

    Returns:
        Dictionary with "total" (all time), "today" and "month" (since the
        first day of the current month) amounts.
    """
    now = now or datetime.now()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    start_of_month = start_of_day.replace(day=1)
    # Expenses dated later today still count as today
    end_of_day = start_of_day + timedelta(days=1)

    return {
        "total": services.expenses.total_between(user_id),
        "today": services.expenses.total_between(user_id, start_of_day, end_of_day),
        "month": services.expenses.total_between(user_id, start_of_month, end_of_day),
    }
