"""Chat entry point shared by the reasoning service."""

import threading
from typing import Any, Dict, List, Optional

from patchwise import config
from patchwise.llm.provider_factory import detect_provider_from_model, get_provider


_token_lock = threading.Lock()
_token_usage = {"prompt": 0, "completion": 0, "total": 0}


def get_token_usage() -> Dict[str, int]:
    with _token_lock:
        return dict(_token_usage)


def reset_token_usage() -> None:
    with _token_lock:
        for key in _token_usage:
            _token_usage[key] = 0


def _record_usage(response: Dict[str, Any]) -> None:
    usage = response.get("usage") or {}
    with _token_lock:
        for key in _token_usage:
            _token_usage[key] += int(usage.get(key, 0) or 0)


def chat(
    messages: List[Dict[str, Any]],
    model: Optional[str] = None,
    provider: Optional[str] = None,
    **kwargs
) -> Dict[str, Any]:
    """Route a chat request to the configured provider.

    Returns the provider's response dict; failures come back as ``{"error": ...}``.
    """
    if provider is None:
        provider = detect_provider_from_model(model) if model else config.LLM_PROVIDER

    response = get_provider(provider).chat(messages, model=model, **kwargs)
    if "error" not in response:
        _record_usage(response)
    return response
