"""Short-lived snapshots of deleted expenses for one-shot undo."""

import secrets
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from models.expense import Expense


@dataclass(frozen=True)
class DeletedExpense:
    user_id: str
    amount: Decimal
    category: str
    subcategory: Optional[str]
    description: str


class UndoCache:
    """Bounded in-memory map of undo token -> deleted expense.

    Tokens are scoped to the user who deleted the expense. The oldest entries
    are evicted once max_entries is reached, after which their Undo buttons
    report that there is nothing to restore.
    """

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, DeletedExpense]" = OrderedDict()

    def put(self, expense: Expense) -> str:
        """Remember a deleted expense and return its undo token."""
        token = secrets.token_urlsafe(12)
        self._entries[token] = DeletedExpense(
            user_id=expense.user_id,
            amount=expense.amount,
            category=expense.category,
            subcategory=expense.subcategory,
            description=expense.description,
        )
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
        return token

    def get(self, token: str, user_id: str) -> Optional[DeletedExpense]:
        """Look up a snapshot, or None if unknown, used or owned by someone else."""
        snapshot = self._entries.get(token)
        if snapshot is None or snapshot.user_id != user_id:
            return None
        return snapshot

    def discard(self, token: str) -> None:
        self._entries.pop(token, None)

    def __len__(self) -> int:
        return len(self._entries)
