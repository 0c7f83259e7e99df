"""Resilience patterns for storage and naming requests using hyx.

Writes (notebook/entry create, update, delete) are never retried: a
rejected write is reported and the local change reverted. Only idempotent
reads go through ``store_read_retry``.

Usage:
    from sql_notebook.core.resilience import store_read_retry, wrap_httpx_errors

    @store_read_retry
    @wrap_httpx_errors
    async def list_entries(...):
        ...
"""

from functools import wraps
from typing import Any, Callable, TypeVar

import httpx
from hyx.retry.api import retry
from hyx.retry.backoffs import expo
from hyx.retry.exceptions import MaxAttemptsExceeded
from hyx.timeout.exceptions import MaxDurationExceeded

# Alias for clarity
MaxTimeoutExceeded = MaxDurationExceeded

__all__ = [
    "ClientRequestError",
    "MaxAttemptsExceeded",
    "MaxTimeoutExceeded",
    "TransientError",
    "RateLimitError",
    "ResilienceConfig",
    "classify_http_error",
    "store_read_retry",
    "title_timeout",
    "wrap_httpx_errors",
]


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class TransientError(Exception):
    """Error that is likely to succeed on retry (network issues, timeouts)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(TransientError):
    """Error indicating rate limiting (HTTP 429)."""


class ClientRequestError(Exception):
    """Non-retryable 4xx response."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


# =============================================================================
# CONFIGURATION
# =============================================================================


class ResilienceConfig:
    """Centralized configuration for resilience patterns."""

    STORE_READ_RETRY_ATTEMPTS: int = 3
    STORE_READ_BACKOFF_BASE: float = 0.5  # seconds
    STORE_READ_BACKOFF_MAX: float = 5.0  # seconds

    TITLE_TIMEOUT: float = 30.0  # seconds


# =============================================================================
# PATTERNS
# =============================================================================


store_read_retry = retry(
    on=(TransientError, ConnectionError, TimeoutError),
    attempts=ResilienceConfig.STORE_READ_RETRY_ATTEMPTS,
    backoff=expo(
        min_delay_secs=ResilienceConfig.STORE_READ_BACKOFF_BASE,
        max_delay_secs=ResilienceConfig.STORE_READ_BACKOFF_MAX,
    ),
)

F = TypeVar("F", bound=Callable[..., Any])


def title_timeout(func: F) -> F:
    """
    Bound the title naming request.

    Deferred to call time so no timeout manager is created at import,
    before an event loop exists.
    """
    import asyncio

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.wait_for(
                func(*args, **kwargs),
                timeout=ResilienceConfig.TITLE_TIMEOUT,
            )
        except asyncio.TimeoutError:
            raise MaxTimeoutExceeded(
                f"Title request timed out after {ResilienceConfig.TITLE_TIMEOUT}s"
            )

    return wrapper  # type: ignore


# =============================================================================
# HELPERS
# =============================================================================


def classify_http_error(status_code: int) -> Exception:
    """
    Classify HTTP status codes into appropriate exceptions.

    Returns:
        RateLimitError for 429, TransientError for 5xx,
        ClientRequestError for anything else.
    """
    if status_code == 429:
        return RateLimitError(f"Rate limited (HTTP {status_code})", status_code)
    elif status_code >= 500:
        return TransientError(f"Server error (HTTP {status_code})", status_code)
    return ClientRequestError(f"Client error (HTTP {status_code})", status_code)


def wrap_httpx_errors(func: F) -> F:
    """
    Decorator to convert httpx exceptions to resilience-aware exceptions.

    This lets the retry pattern tell transient from permanent errors.
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except httpx.TimeoutException as e:
            raise TransientError(f"Request timeout: {e}") from e
        except httpx.ConnectError as e:
            raise TransientError(f"Connection error: {e}") from e
        except httpx.TransportError as e:
            raise TransientError(f"Transport error: {e}") from e
        except httpx.HTTPStatusError as e:
            raise classify_http_error(e.response.status_code) from e

    return wrapper  # type: ignore
