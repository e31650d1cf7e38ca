"""LLM integration for expense classification, description cleanup and chat replies."""

from llm.factory import get_llm_provider

__all__ = ["get_llm_provider"]
