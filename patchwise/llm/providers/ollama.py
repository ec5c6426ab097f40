"""Ollama LLM provider implementation."""

import time
from typing import Any, Dict, List, Optional

import requests

from patchwise import config
from patchwise.debug_logger import get_logger
from .base import LLMProvider, ErrorClass, ProviderError, RetryConfig


class OllamaProvider(LLMProvider):
    """Ollama chat API over HTTP."""

    def __init__(self, base_url: Optional[str] = None):
        super().__init__()
        self.name = "ollama"
        self.base_url = (base_url or config.OLLAMA_BASE_URL).rstrip("/")

    def chat(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """Send a non-streaming chat request, retrying transient failures."""
        debug_logger = get_logger()
        model_name = model or config.OLLAMA_MODEL
        url = f"{self.base_url}/api/chat"
        payload = {
            "model": model_name,
            "messages": messages,
            "stream": False,
            "options": {
                "temperature": kwargs.get("temperature", config.OLLAMA_TEMPERATURE),
                "num_ctx": config.OLLAMA_NUM_CTX,
            },
        }
        if kwargs.get("json_mode"):
            payload["format"] = "json"

        debug_logger.log_llm_request(model_name, messages)

        retry = self.get_retry_config()
        attempt = 0
        while True:
            try:
                resp = requests.post(url, json=payload, timeout=config.OLLAMA_TIMEOUT)
                resp.raise_for_status()
                response = resp.json()

                if "prompt_eval_count" in response and "eval_count" in response:
                    response["usage"] = {
                        "prompt": response["prompt_eval_count"],
                        "completion": response["eval_count"],
                        "total": response["prompt_eval_count"] + response["eval_count"],
                    }

                debug_logger.log_llm_response(model_name, response)
                return response

            except requests.exceptions.RequestException as e:
                classified = self.classify_error(e)
                if retry.should_retry(classified, attempt):
                    time.sleep(classified.retry_after or retry.backoff(attempt))
                    attempt += 1
                    continue
                debug_logger.log("llm", "OLLAMA_ERROR", {"error": str(e), "attempts": attempt + 1}, "ERROR")
                return {"error": f"Ollama API error: {e}"}
            except ValueError as e:
                return {"error": f"Ollama API returned invalid JSON: {e}"}

    def validate_config(self) -> bool:
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=5)
            return response.status_code == 200
        except requests.exceptions.RequestException:
            return False

    def classify_error(self, error: Exception) -> ProviderError:
        error_str = str(error).lower()

        if isinstance(error, requests.exceptions.Timeout) or "timeout" in error_str:
            return ProviderError(ErrorClass.TIMEOUT, str(error), True, original_error=error)

        if isinstance(error, requests.exceptions.ConnectionError) or "connection" in error_str:
            return ProviderError(ErrorClass.NETWORK_ERROR, str(error), True, original_error=error)

        status = None
        if isinstance(error, requests.exceptions.HTTPError) and error.response is not None:
            status = error.response.status_code

        if status == 429 or "too many requests" in error_str:
            return ProviderError(ErrorClass.RATE_LIMIT, str(error), True, retry_after=10.0, original_error=error)
        if status == 401 or "unauthorized" in error_str:
            return ProviderError(ErrorClass.AUTH_ERROR, str(error), False, original_error=error)
        if status == 404 or "not found" in error_str:
            return ProviderError(ErrorClass.MODEL_NOT_FOUND, str(error), False, original_error=error)
        if status == 400 or "bad request" in error_str:
            return ProviderError(ErrorClass.INVALID_REQUEST, str(error), False, original_error=error)
        if (status is not None and status >= 500) or "server error" in error_str:
            return ProviderError(ErrorClass.SERVER_ERROR, str(error), True, original_error=error)

        return ProviderError(ErrorClass.UNKNOWN, str(error), False, original_error=error)

    def get_retry_config(self) -> RetryConfig:
        return RetryConfig(max_retries=config.LLM_MAX_RETRIES, base_backoff=2.0, max_backoff=30.0)
