"""Expense model for expenses logged through the bot."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from models.category import CategoryResult


@dataclass
class Expense:
    id: int
    user_id: str
    amount: Decimal  # always positive
    category: str  # main category, e.g. "Food & Drinks"
    subcategory: Optional[str]
    description: str
    timestamp: datetime
    created_at: Optional[datetime] = None

    @property
    def classification(self) -> CategoryResult:
        return CategoryResult(self.category, self.subcategory)

    @property
    def category_path(self) -> str:
        return self.classification.path

    def to_dict(self) -> dict:
        """Convert expense to the row shape read by the dashboard."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "amount": float(self.amount),
            "category": self.category_path,
            "subcategory": self.subcategory,
            "description": self.description,
            "timestamp": self.timestamp.isoformat(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
