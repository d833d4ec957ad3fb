"""
Shared kernel: exception hierarchy and async helpers.
"""

from .async_utils import (
    CircuitBreaker,
    bounded_gather,
    timeout_with_fallback,
)
from .exceptions import (
    APIError,
    ConfigurationError,
    DataError,
    EmbeddingError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    InvalidParameterError,
    InvalidQueryError,
    NetworkError,
    ParseError,
    RateLimitError,
    ResearchDiscoveryError,
    ServiceUnavailableError,
    ValidationError,
    get_retry_delay,
    is_retryable_error,
)

__all__ = [
    # Exceptions
    "ResearchDiscoveryError",
    "ErrorContext",
    "ErrorSeverity",
    "ErrorCategory",
    "APIError",
    "RateLimitError",
    "NetworkError",
    "ServiceUnavailableError",
    "ValidationError",
    "InvalidQueryError",
    "InvalidParameterError",
    "DataError",
    "ParseError",
    "EmbeddingError",
    "ConfigurationError",
    "is_retryable_error",
    "get_retry_delay",
    # Async utilities
    "bounded_gather",
    "timeout_with_fallback",
    "CircuitBreaker",
]
