"""OpenAI provider implementation using structured outputs."""

from typing import List, Optional, Tuple
from pydantic import BaseModel
from openai import OpenAI
from llm.providers.base import LLMProvider, ClassificationSuggestion
from llm.prompts.loader import PromptManager
from logger import get_logger

logger = get_logger()

DEFAULT_MODEL = "gpt-4o-mini"


# Pydantic models for structured output
class ExpenseClassification(BaseModel):
    """Single expense classification result."""

    category: str
    subcategory: Optional[str] = None
    reasoning: Optional[str] = None


class RefinedDescription(BaseModel):
    description: str


class OpenAIProvider(LLMProvider):
    """OpenAI implementation using structured outputs for reliable JSON parsing."""

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[OpenAI] = None,
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key.
            model: Model to use (e.g., "gpt-4o-mini"). If None, uses prompt default.
            timeout: Seconds before a request is abandoned.
            client: Preconfigured client, used by tests.
        """
        self.client = client or OpenAI(api_key=api_key, timeout=timeout, max_retries=1)
        self.model = model
        self.prompt_manager = PromptManager()

    def classify_expense(
        self,
        text: str,
        taxonomy: str,
        examples: List[Tuple[str, str]],
    ) -> Optional[ClassificationSuggestion]:
        """Classify an expense description using OpenAI with structured outputs.

        Raises:
            Exception: If OpenAI API call fails.
        """
        rendered_prompt = self.prompt_manager.render_prompt(
            "classification",
            {
                "taxonomy": taxonomy,
                "examples": self._format_examples(examples),
                "text": text,
            },
        )

        logger.info(
            f"Calling OpenAI to classify {text!r}, prompt version: {rendered_prompt['version']}"
        )

        try:
            result = self._parse(rendered_prompt, ExpenseClassification)
        except Exception as e:
            logger.error(f"OpenAI API error: {e}")
            raise

        if result is None:
            logger.warning("OpenAI returned null parsed response")
            return None

        return ClassificationSuggestion(
            category=result.category,
            subcategory=result.subcategory,
            reasoning=result.reasoning,
        )

    def refine_description(self, text: str) -> Optional[str]:
        """Ask OpenAI for a cleaned-up description.

        Raises:
            Exception: If OpenAI API call fails.
        """
        rendered_prompt = self.prompt_manager.render_prompt("refinement", {"text": text})

        try:
            result = self._parse(rendered_prompt, RefinedDescription)
        except Exception as e:
            logger.error(f"OpenAI API error: {e}")
            raise

        if result is None or not result.description.strip():
            return None
        return result.description.strip()

    def chat_reply(self, text: str) -> Optional[str]:
        """Ask OpenAI for a short conversational reply.

        Raises:
            Exception: If OpenAI API call fails.
        """
        rendered_prompt = self.prompt_manager.render_prompt("conversation", {"text": text})
        parameters = rendered_prompt["parameters"]

        try:
            response = self.client.chat.completions.create(
                model=self.model or parameters.get("model", DEFAULT_MODEL),
                messages=[
                    {"role": "system", "content": rendered_prompt["system_prompt"]},
                    {"role": "user", "content": rendered_prompt["user_prompt"]},
                ],
                temperature=parameters.get("temperature", 0.7),
                max_tokens=parameters.get("max_tokens", 150),
            )
        except Exception as e:
            logger.error(f"OpenAI API error: {e}")
            raise

        content = response.choices[0].message.content
        return content.strip() if content else None

    def _parse(self, rendered_prompt, response_format):
        parameters = rendered_prompt["parameters"]
        response = self.client.beta.chat.completions.parse(
            model=self.model or parameters.get("model", DEFAULT_MODEL),
            messages=[
                {"role": "system", "content": rendered_prompt["system_prompt"]},
                {"role": "user", "content": rendered_prompt["user_prompt"]},
            ],
            temperature=parameters.get("temperature", 0.1),
            max_tokens=parameters.get("max_tokens", 100),
            response_format=response_format,
        )
        return response.choices[0].message.parsed

    def _format_examples(self, examples: List[Tuple[str, str]]) -> str:
        """Format learned examples for the prompt."""
        if not examples:
            return "No examples available."

        # Limit to 50 examples to avoid token limits
        return "\n".join(
            f"- '{text}' -> {path}" for text, path in examples[:50]
        )
