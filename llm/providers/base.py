"""Base provider interface for LLM implementations."""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
from dataclasses import dataclass


@dataclass
class ClassificationSuggestion:
    """Represents a category suggestion for an expense description."""

    category: str
    subcategory: Optional[str] = None
    reasoning: Optional[str] = None  # Why this category was chosen


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Every method may raise if the API call fails or times out. Callers are
    expected to fall back to local behavior.
    """

    @abstractmethod
    def classify_expense(
        self,
        text: str,
        taxonomy: str,
        examples: List[Tuple[str, str]],
    ) -> Optional[ClassificationSuggestion]:
        """Classify a free-text expense description.

        Args:
            text: The expense description, e.g. "empanadas at the corner".
            taxonomy: Rendered category/subcategory list to choose from.
            examples: (text, "Main>Sub") pairs learned from earlier requests.

        Returns:
            ClassificationSuggestion, or None if the model gave no usable answer.

        Raises:
            Exception: If the LLM API call fails.
        """
        pass

    @abstractmethod
    def refine_description(self, text: str) -> Optional[str]:
        """Clean up a mechanically extracted description.

        Returns:
            The cleaned description, or None if the model gave no usable answer.

        Raises:
            Exception: If the LLM API call fails.
        """
        pass

    @abstractmethod
    def chat_reply(self, text: str) -> Optional[str]:
        """Write a short friendly reply to a conversational message.

        Raises:
            Exception: If the LLM API call fails.
        """
        pass
