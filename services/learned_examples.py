"""Learned example service: texts the classifier has been taught."""

from typing import List, Optional, Tuple
from models.category import CategoryResult


class LearnedExampleService:
    """Service for storing (text, category) pairs learned at runtime.

    Texts are stored lower-cased and trimmed so lookups match the classifier's
    exact-match normalization.
    """

    def __init__(self, db_manager):
        self.db_manager = db_manager

    def record(self, text: str, result: CategoryResult, source: str) -> None:
        """Store or replace the category learned for a text.

        Args:
            text: The classified text.
            result: The category it should resolve to.
            source: Where the example came from ("llm" or "user").
        """
        with self.db_manager.connect() as conn:
            conn.execute(
                """
                INSERT INTO learned_examples (text, category, subcategory, source)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(text) DO UPDATE SET
                    category = excluded.category,
                    subcategory = excluded.subcategory,
                    source = excluded.source
                """,
                (_normalize(text), result.category, result.subcategory, source),
            )
            conn.commit()

    def find(self, text: str) -> Optional[CategoryResult]:
        """Get the category learned for a text, if any."""
        with self.db_manager.connect() as conn:
            row = conn.execute(
                "SELECT category, subcategory FROM learned_examples WHERE text = ?",
                (_normalize(text),),
            ).fetchone()

        if row:
            return CategoryResult(row[0], row[1])
        return None

    def find_all(self) -> List[Tuple[str, CategoryResult]]:
        """Get every learned example, most recent first."""
        with self.db_manager.connect() as conn:
            rows = conn.execute(
                """
                SELECT text, category, subcategory FROM learned_examples
                ORDER BY created_at DESC, rowid DESC
                """
            ).fetchall()

        return [(row[0], CategoryResult(row[1], row[2])) for row in rows]


def _normalize(text: str) -> str:
    return text.strip().lower()
