"""Factory for creating the LLM provider shared by classification,
description refinement and chat replies."""

from typing import Callable, Dict, Optional
from config import Config
from llm.providers.base import LLMProvider
from llm.providers.openai import OpenAIProvider
from logger import get_logger

logger = get_logger()


def _openai(config: Config) -> LLMProvider:
    if not config.llm_openai_api_key:
        raise ValueError(
            "OpenAI provider selected but llm.openai_api_key (or OPENAI_API_KEY) not configured"
        )

    logger.info(
        f"Initializing OpenAI provider (model: {config.llm_openai_model or 'prompt default'}, "
        f"timeout: {config.llm_timeout}s)"
    )
    return OpenAIProvider(
        api_key=config.llm_openai_api_key,
        model=config.llm_openai_model,
        timeout=config.llm_timeout,
    )


_PROVIDERS: Dict[str, Callable[[Config], LLMProvider]] = {
    "openai": _openai,
}


def get_llm_provider(config: Config) -> Optional[LLMProvider]:
    """Create the configured LLM provider.

    Returns:
        LLMProvider instance, or None when the LLM is disabled or no provider
        is named. The bot then classifies with local layers only.

    Raises:
        ValueError: If the provider is unknown or its settings are incomplete.
    """
    if not config.llm_enabled:
        logger.info("LLM is disabled; using local classification only")
        return None

    if not config.llm_provider:
        logger.info("No LLM provider configured")
        return None

    build = _PROVIDERS.get(config.llm_provider)
    if build is None:
        raise ValueError(
            f"Unknown LLM provider: {config.llm_provider} "
            f"(expected one of: {', '.join(sorted(_PROVIDERS))})"
        )
    return build(config)
