"""LLM provider implementations."""

from .base import LLMProvider, ErrorClass, ProviderError, RetryConfig
from .ollama import OllamaProvider
from .openai_provider import OpenAIProvider

__all__ = ["LLMProvider", "ErrorClass", "ProviderError", "RetryConfig", "OllamaProvider", "OpenAIProvider"]
