"""Factory for creating receipt extraction providers."""

from typing import Optional
from config import Config
from llm.providers.base import LLMProvider
from llm.providers.openai import OpenAIProvider
from logger import get_logger

logger = get_logger()


def get_llm_provider(config: Config) -> Optional[LLMProvider]:
    """Create an extraction provider based on configuration.

    Args:
        config: Application configuration.

    Returns:
        LLMProvider instance, or None if receipt extraction is disabled.

    Raises:
        ValueError: If a provider is configured but its settings are invalid.
    """
    if not config.llm_enabled:
        logger.info("Receipt extraction is disabled")
        return None

    if config.llm_provider == "openai":
        if not config.llm_openai_api_key:
            raise ValueError(
                "OpenAI provider selected but no API key configured "
                "(set llm.openai_api_key or OPENAI_API_KEY)"
            )
        logger.info(f"Initializing OpenAI provider (model: {config.llm_openai_model})")
        return OpenAIProvider(
            api_key=config.llm_openai_api_key, model=config.llm_openai_model
        )

    raise ValueError(f"Unknown LLM provider: {config.llm_provider}")
