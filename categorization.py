"""Expense classification into the category taxonomy.

The classifier resolves free text to a (category, subcategory) pair with a
layered strategy, the first layer that answers wins:

1. Exact phrase (static shortcuts, then examples learned at runtime)
2. Keyword containment, walking the taxonomy in declaration order
3. Food heuristics (dish names, cuisines, cooking words, common endings)
4. Transport heuristics
5. An LLM provider, when one is configured

Layers 1-4 are local and deterministic, so common expenses never wait on the
network. Results from layer 5 are learned, so the next identical text is
answered by layer 1.
"""

import re
import threading
from typing import Dict, List, Optional, Tuple

import taxonomy
from models.category import CategoryResult
from llm.providers.base import LLMProvider
from logger import get_logger

logger = get_logger()

_WORD_RE = re.compile(r"[^\W\d_]+")

FALLBACK = CategoryResult(taxonomy.MISCELLANEOUS, taxonomy.OTHER)


class Classifier:
    """Resolves expense descriptions to categories.

    Args:
        provider: Optional LLM provider for the last-resort layer.
        learned_examples: Optional LearnedExampleService persisting learned texts.
    """

    def __init__(
        self,
        provider: Optional[LLMProvider] = None,
        learned_examples=None,
    ):
        self.provider = provider
        self.learned_examples = learned_examples
        self._learned: Optional[Dict[str, CategoryResult]] = None
        # Single writer for the learned-example cache and table
        self._lock = threading.Lock()

    def classify(self, text: str) -> CategoryResult:
        """Classify an expense description. Never raises.

        Args:
            text: Free text such as "pizza" or "uber to the airport".

        Returns:
            The best-effort CategoryResult. When nothing matches and no LLM is
            configured, ("Miscellaneous", "Other: <text>").
        """
        normalized = (text or "").strip().lower()
        if not normalized:
            return FALLBACK

        try:
            result = (
                self._exact_match(normalized)
                or self._keyword_match(normalized)
                or self._food_match(normalized)
                or self._transport_match(normalized)
            )
        except Exception as e:
            logger.error(f"Local classification failed for {text!r}: {e}")
            result = None

        if result is not None:
            logger.debug(f"Classified {text!r} locally as {result.path}")
            return result

        if self.provider is None:
            return CategoryResult(taxonomy.MISCELLANEOUS, f"{taxonomy.OTHER}: {text.strip()}")

        return self._external_match(text.strip())

    def learn(self, text: str, result: CategoryResult, source: str = "user") -> None:
        """Record a labeled example for future exact lookups.

        Best-effort: failures are logged and never raised.
        """
        normalized = (text or "").strip().lower()
        if not normalized:
            return

        with self._lock:
            try:
                if self.learned_examples is not None:
                    self.learned_examples.record(normalized, result, source)
                if self._learned is not None:
                    self._learned[normalized] = result
                logger.info(f"Learned {normalized!r} -> {result.path} ({source})")
            except Exception as e:
                logger.warning(f"Could not record learned example {normalized!r}: {e}")

    def _exact_match(self, text: str) -> Optional[CategoryResult]:
        result = taxonomy.exact_phrase(text)
        if result is not None:
            return result
        return self._learned_cache().get(text)

    def _keyword_match(self, text: str) -> Optional[CategoryResult]:
        for main, subs in taxonomy.TAXONOMY.items():
            for sub, keywords in subs.items():
                for keyword in keywords:
                    if keyword in text or text in keyword:
                        return CategoryResult(main, sub)
        return None

    def _food_match(self, text: str) -> Optional[CategoryResult]:
        words = _WORD_RE.findall(text)
        if any(
            indicator in text or text in indicator
            for indicator in taxonomy.FOOD_INDICATORS
        ) or any(
            word.endswith(suffix)
            for word in words
            for suffix in taxonomy.FOOD_SUFFIXES
        ):
            return CategoryResult("Food & Drinks", "Meals")
        return None

    def _transport_match(self, text: str) -> Optional[CategoryResult]:
        if not any(
            word in text or text in word for word in taxonomy.TRANSPORT_WORDS
        ):
            return None
        if any(word in text for word in taxonomy.FUEL_WORDS):
            return CategoryResult("Transport", "Fuel")
        return CategoryResult("Transport", taxonomy.OTHER)

    def _external_match(self, text: str) -> CategoryResult:
        try:
            suggestion = self.provider.classify_expense(
                text, taxonomy.format_taxonomy(), self._examples()
            )
        except Exception as e:
            logger.warning(f"LLM classification failed for {text!r}: {e}")
            return FALLBACK

        result = self._validate_suggestion(suggestion)
        if result is None:
            logger.warning(f"Unusable LLM classification for {text!r}: {suggestion}")
            return FALLBACK

        logger.info(f"LLM classified {text!r} as {result.path}")
        self.learn(text, result, source="llm")
        return result

    def _validate_suggestion(self, suggestion) -> Optional[CategoryResult]:
        """Map a provider suggestion onto the taxonomy.

        The main category must exist; an unknown subcategory becomes "Other".
        A "Main>Sub" string in the category field is split.
        """
        if suggestion is None or not suggestion.category:
            return None

        category, subcategory = suggestion.category, suggestion.subcategory
        if ">" in category:
            try:
                split = CategoryResult.from_path(category)
            except ValueError:
                return None
            category, subcategory = split.category, subcategory or split.subcategory

        main = taxonomy.find_main_category(category)
        if main is None or main.casefold() != category.strip().casefold():
            return None

        for sub in taxonomy.subcategories(main):
            if subcategory and sub.casefold() == subcategory.strip().casefold():
                return CategoryResult(main, sub)
        return CategoryResult(main, taxonomy.OTHER)

    def _learned_cache(self) -> Dict[str, CategoryResult]:
        if self._learned is None:
            with self._lock:
                if self._learned is None:
                    self._learned = self._load_learned()
        return self._learned

    def _load_learned(self) -> Dict[str, CategoryResult]:
        if self.learned_examples is None:
            return {}
        try:
            return dict(self.learned_examples.find_all())
        except Exception as e:
            logger.warning(f"Could not load learned examples: {e}")
            return {}

    def _examples(self) -> List[Tuple[str, str]]:
        return [(text, result.path) for text, result in self._learned_cache().items()]
