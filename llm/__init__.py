"""Receipt extraction through external AI providers."""

from llm.factory import get_llm_provider
from llm.providers.base import LLMProvider, ReceiptExtraction

__all__ = ["get_llm_provider", "LLMProvider", "ReceiptExtraction"]
