"""OpenAI LLM provider implementation."""

from typing import Any, Dict, List, Optional

from patchwise import config
from patchwise.debug_logger import get_logger
from .base import LLMProvider, ErrorClass, ProviderError, RetryConfig


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions provider."""

    def __init__(self, api_key: Optional[str] = None):
        super().__init__()
        self.name = "openai"
        self.api_key = api_key or config.OPENAI_API_KEY
        self._client = None

    def _get_client(self):
        """Lazy initialization of the OpenAI client."""
        if self._client is None:
            import openai
            self._client = openai.OpenAI(api_key=self.api_key, max_retries=config.LLM_MAX_RETRIES)
        return self._client

    def chat(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        **kwargs
    ) -> Dict[str, Any]:
        debug_logger = get_logger()
        model_name = model or config.OPENAI_MODEL

        request_params = {
            "model": model_name,
            "messages": messages,
            "temperature": kwargs.get("temperature", config.OPENAI_TEMPERATURE),
        }
        if kwargs.get("json_mode"):
            request_params["response_format"] = {"type": "json_object"}

        debug_logger.log_llm_request(model_name, messages)

        try:
            response = self._get_client().chat.completions.create(**request_params)
        except Exception as e:
            classified = self.classify_error(e)
            debug_logger.log("llm", "OPENAI_ERROR", {
                "error": str(e),
                "error_class": classified.error_class.value,
            }, "ERROR")
            return {"error": f"OpenAI API error: {e}"}

        usage = response.usage
        result = {
            "message": {
                "role": "assistant",
                "content": response.choices[0].message.content or "",
            },
            "done": True,
            "usage": {
                "prompt": usage.prompt_tokens if usage else 0,
                "completion": usage.completion_tokens if usage else 0,
                "total": usage.total_tokens if usage else 0,
            },
        }
        debug_logger.log_llm_response(model_name, result)
        return result

    def validate_config(self) -> bool:
        return bool(self.api_key)

    def classify_error(self, error: Exception) -> ProviderError:
        error_str = str(error).lower()
        error_type = type(error).__name__

        if error_type == "RateLimitError" or "rate limit" in error_str:
            return ProviderError(ErrorClass.RATE_LIMIT, str(error), True, retry_after=30.0, original_error=error)
        if error_type == "APITimeoutError" or "timeout" in error_str:
            return ProviderError(ErrorClass.TIMEOUT, str(error), True, original_error=error)
        if error_type == "APIConnectionError":
            return ProviderError(ErrorClass.NETWORK_ERROR, str(error), True, original_error=error)
        if error_type == "AuthenticationError":
            return ProviderError(ErrorClass.AUTH_ERROR, str(error), False, original_error=error)
        if error_type == "NotFoundError":
            return ProviderError(ErrorClass.MODEL_NOT_FOUND, str(error), False, original_error=error)
        if error_type == "BadRequestError":
            return ProviderError(ErrorClass.INVALID_REQUEST, str(error), False, original_error=error)
        if error_type == "InternalServerError":
            return ProviderError(ErrorClass.SERVER_ERROR, str(error), True, original_error=error)
        return ProviderError(ErrorClass.UNKNOWN, str(error), False, original_error=error)

    def get_retry_config(self) -> RetryConfig:
        # the SDK retries internally
        return RetryConfig(max_retries=config.LLM_MAX_RETRIES, base_backoff=1.0, max_backoff=30.0)
