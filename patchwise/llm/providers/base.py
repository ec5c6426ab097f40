"""Base interface for LLM providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorClass(Enum):
    """Standardized error categories across all providers."""
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    INVALID_REQUEST = "invalid_request"
    AUTH_ERROR = "auth_error"
    MODEL_NOT_FOUND = "model_not_found"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


@dataclass
class ProviderError:
    """Standardized error representation."""
    error_class: ErrorClass
    message: str
    retryable: bool
    retry_after: Optional[float] = None
    original_error: Optional[Exception] = None


@dataclass
class RetryConfig:
    max_retries: int
    base_backoff: float  # seconds
    max_backoff: float  # seconds
    retry_on: List[ErrorClass] = field(default_factory=lambda: [
        ErrorClass.RATE_LIMIT,
        ErrorClass.TIMEOUT,
        ErrorClass.SERVER_ERROR,
        ErrorClass.NETWORK_ERROR,
    ])

    def backoff(self, attempt: int) -> float:
        return min(self.max_backoff, self.base_backoff * (2 ** attempt))

    def should_retry(self, error: ProviderError, attempt: int) -> bool:
        """Retry only retryable errors of a listed class, up to max_retries."""
        return error.retryable and error.error_class in self.retry_on and attempt < self.max_retries


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Providers return ``{"message": {"role", "content"}, "usage": {...}}`` on
    success and ``{"error": "..."}`` on failure; they do not raise for API errors.
    """

    def __init__(self):
        self.name = "base"

    @abstractmethod
    def chat(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """Make a chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content' keys
            model: Model name to use (provider-specific)
            **kwargs: Additional provider-specific parameters

        Returns:
            Dict with 'message' and optional 'usage' keys, or 'error'
        """

    @abstractmethod
    def validate_config(self) -> bool:
        """Return True if the provider looks usable with the current settings."""

    @abstractmethod
    def classify_error(self, error: Exception) -> ProviderError:
        """Classify an error into a standard ErrorClass."""

    @abstractmethod
    def get_retry_config(self) -> RetryConfig:
        pass

    def __str__(self) -> str:
        return f"{self.__class__.__name__}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
