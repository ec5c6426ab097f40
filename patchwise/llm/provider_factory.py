"""Provider factory for creating LLM provider instances."""

from typing import Dict, Optional

from patchwise import config
from patchwise.llm.providers.base import LLMProvider
from patchwise.llm.providers.ollama import OllamaProvider
from patchwise.llm.providers.openai_provider import OpenAIProvider


_provider_cache: Dict[str, LLMProvider] = {}


def get_provider(provider_name: Optional[str] = None, force_new: bool = False) -> LLMProvider:
    """Get a provider instance by name.

    Args:
        provider_name: ollama or openai. Defaults to PATCHWISE_LLM_PROVIDER.
            Unknown names fall back to ollama so local proxies work.
        force_new: Create a fresh instance instead of the cached one.
    """
    provider_name = (provider_name or config.LLM_PROVIDER).lower().strip()

    if not force_new and provider_name in _provider_cache:
        return _provider_cache[provider_name]

    if provider_name == "openai":
        provider = OpenAIProvider()
    else:
        provider = OllamaProvider()

    _provider_cache[provider_name] = provider
    return provider


def detect_provider_from_model(model: str) -> str:
    model = model.lower().strip()
    if model.startswith("gpt-oss"):
        return "ollama"
    if model.startswith(("gpt-", "o1-", "o3-", "o4-")):
        return "openai"
    return "ollama"


def clear_provider_cache():
    _provider_cache.clear()
