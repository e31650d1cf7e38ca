"""Recurring expense tracking.

Materializes the occurrences of active recurring expenses that fell due since
they were last tracked, as regular expenses.
"""

from datetime import datetime
from typing import List, Optional

from models.expense import Expense
from models.recurring_expense import RecurringExpense, frequency_delta
from logger import get_logger

logger = get_logger()


def due_occurrences(recurring: RecurringExpense, now: datetime) -> List[datetime]:
    """List the occurrence dates of a recurring expense that are due by now.

    Occurrences start one interval after last_tracked and stop at end_date.
    """
    delta = frequency_delta(recurring.frequency)
    occurrences = []
    # Occurrence n is start_date + n intervals: "Jan 31" -> "Feb 28" -> "Mar 31"
    step = 1
    occurrence = recurring.start_date + delta
    while occurrence <= now:
        if recurring.end_date is not None and occurrence > recurring.end_date:
            break
        if occurrence > recurring.last_tracked:
            occurrences.append(occurrence)
        step += 1
        occurrence = recurring.start_date + delta * step
    return occurrences


def track_recurring_expenses(services, now: Optional[datetime] = None) -> List[Expense]:
    """Insert an expense for every due occurrence of every active recurring expense.

    A failure on one recurring expense is logged and does not stop the others.

    Args:
        services: Services container.
        now: Reference time, defaults to the current time.

    Returns:
        The expenses created.
    """
    now = now or datetime.now()
    created = []

    for recurring in services.recurring_expenses.find_active():
        try:
            occurrences = due_occurrences(recurring, now)
            for occurrence in occurrences:
                created.append(
                    services.expenses.create(
                        user_id=recurring.user_id,
                        amount=recurring.amount,
                        category=recurring.category,
                        subcategory=recurring.subcategory,
                        description=recurring.description,
                        timestamp=occurrence,
                    )
                )
                services.recurring_expenses.update_last_tracked(
                    recurring.id, recurring.user_id, occurrence
                )
        except Exception as e:
            logger.error(f"Failed to track recurring expense {recurring.id}: {e}")
            continue

        if occurrences:
            logger.info(
                f"Tracked {len(occurrences)} occurrence(s) of recurring expense "
                f"{recurring.id} for user {recurring.user_id}"
            )

    return created
