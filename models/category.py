"""Category classification result."""

from dataclasses import dataclass
from typing import Optional

# Canonical separator between main category and subcategory, e.g. "Transport>Fuel".
SEPARATOR = ">"


@dataclass(frozen=True)
class CategoryResult:
    """A resolved (category, subcategory) pair.

    Attributes:
        category: Main category, e.g. "Food & Drinks".
        subcategory: Taxonomy subcategory or free text supplied by the user.
            None when only a main category is known.
    """

    category: str
    subcategory: Optional[str] = None

    @property
    def path(self) -> str:
        """Canonical "Main>Sub" string stored for the dashboard."""
        if self.subcategory:
            return f"{self.category}{SEPARATOR}{self.subcategory}"
        return self.category

    @classmethod
    def from_path(cls, path: str) -> "CategoryResult":
        """Parse a category string, tolerating the legacy "Main > Sub" form.

        Only the first separator splits; deeper levels stay in the subcategory,
        so "Food & Drinks > Drinks / Sodas > Coffee" becomes
        ("Food & Drinks", "Drinks / Sodas>Coffee").
        """
        parts = [part.strip() for part in path.split(SEPARATOR)]
        parts = [part for part in parts if part]
        if not parts:
            raise ValueError(f"Empty category path: {path!r}")
        if len(parts) == 1:
            return cls(parts[0])
        return cls(parts[0], SEPARATOR.join(parts[1:]))

    def same_main_category(self, other: "CategoryResult") -> bool:
        return self.category.casefold() == other.category.casefold()

    def __str__(self) -> str:
        return self.path
