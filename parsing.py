"""Extraction of amounts and descriptions from free-text expense messages."""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from llm.providers.base import LLMProvider
from logger import get_logger

logger = get_logger()

# A signed or unsigned integer, or a decimal with up to two fractional digits,
# not glued to other digits or dots ("12.345" is not an amount). A "$" on
# either side belongs to the token.
_AMOUNT_TOKEN_RE = re.compile(
    r"\$?(?<![\d.])(?P<number>[-+]?\d+(?:\.\d{1,2})?)(?![\d.])\$?"
)

# A message that is nothing but an amount, e.g. "25.99" or "$100".
_AMOUNT_ONLY_RE = re.compile(r"^\$?\s*(\d+(?:\.\d{1,2})?)\s*\$?$")

CONNECTOR_WORDS = frozenset({"on", "in", "for"})


@dataclass
class ParsedExpense:
    amount: Decimal
    description: str


def parse_amount(text: str) -> Optional[Decimal]:
    """Parse a message that should contain only a positive amount.

    Args:
        text: Message text, e.g. "25.99", "$100", " 7 ".

    Returns:
        The amount, or None if the text is not a positive decimal.
    """
    match = _AMOUNT_ONLY_RE.match((text or "").strip())
    if not match:
        return None

    try:
        amount = Decimal(match.group(1))
    except InvalidOperation:
        return None

    return amount if amount > 0 else None


def title_case(text: str) -> str:
    """Upper-case the first letter of each word and lower-case the rest."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split())


def _strip_connectors(words):
    start, end = 0, len(words)
    while start < end and words[start].lower() in CONNECTOR_WORDS:
        start += 1
    while end > start and words[end - 1].lower() in CONNECTOR_WORDS:
        end -= 1
    return words[start:end]


class ExpenseParser:
    """Parses messages like "30 on food" into an amount and a description.

    Args:
        provider: Optional LLM provider used to clean up descriptions.
    """

    def __init__(self, provider: Optional[LLMProvider] = None):
        self.provider = provider

    def parse(self, text: str) -> Optional[ParsedExpense]:
        """Extract the amount and description from a message.

        The first numeric token is the amount. Removing it and any leading or
        trailing connector words ("on", "in", "for") leaves the description.

        Returns:
            ParsedExpense, or None when there is no positive amount or no
            description.
        """
        text = (text or "").strip()
        match = _AMOUNT_TOKEN_RE.search(text)
        if not match:
            return None

        try:
            amount = Decimal(match.group("number"))
        except InvalidOperation:
            return None
        if amount <= 0:
            return None

        remainder = f"{text[:match.start()]} {text[match.end():]}"
        words = _strip_connectors(remainder.split())
        description = " ".join(words)
        if not description:
            return None

        if self.provider is not None:
            description = self._refine(description)

        return ParsedExpense(amount=amount, description=description)

    def _refine(self, description: str) -> str:
        """Ask the LLM to clean up a description, keeping the original on failure."""
        try:
            refined = self.provider.refine_description(description)
        except Exception as e:
            logger.warning(f"Description refinement failed for {description!r}: {e}")
            return description

        if not refined or not refined.strip():
            return description
        return refined.strip()
