"""
Exceptions raised by the JSON-RPC batcher, plus the rate-limit check the
limiter uses to decide whether a failure earns a backoff.
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429
RATE_LIMIT_MARKERS = ("rate limit", "too many requests")


class BatchError(Exception):
    """Base exception for batch operations."""
    pass


class RateLimitError(BatchError):
    """Raised when the RPC endpoint answers with a rate-limit response."""

    def __init__(
        self,
        message: str,
        status_code: int = RATE_LIMIT_STATUS,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.retry_after = retry_after


class NetworkError(BatchError):
    """Raised when the transport fails (connection, timeout, HTTP status, bad JSON)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(BatchError):
    """Raised when a call result cannot be decoded with its ABI."""
    pass


class ValidationError(BatchError):
    """Raised when call input validation or encoding fails."""
    pass


def _status_of(error: Exception) -> Optional[int]:
    for attr in ("status_code", "status", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


def is_rate_limit_error(error: Exception) -> bool:
    """
    Check whether an error signals rate limiting.

    Matches RateLimitError, any error carrying a 429 status/code, or a message
    mentioning "rate limit" / "Too Many Requests".
    """
    if isinstance(error, RateLimitError):
        return True

    if _status_of(error) == RATE_LIMIT_STATUS:
        return True

    message = str(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


# Checked in order after the typed matches; first hit wins.
ERROR_CATEGORIES = (
    (NetworkError, "network", ("connection", "timeout", "network", "dns")),
    (DecodeError, "contract", ("revert", "out of gas", "decode")),
    (ValidationError, "validation", ("invalid", "bad request", "400")),
)

LOG_LEVELS = {
    "rate_limit": logging.INFO,
    "validation": logging.WARNING,
    "contract": logging.ERROR,
}


class ErrorHandler:
    """Classifies chunk failures and logs them with structured context."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def classify_error(self, error: Exception) -> str:
        """
        Returns:
            One of 'rate_limit', 'network', 'contract', 'validation', 'unknown'
        """
        if is_rate_limit_error(error):
            return "rate_limit"

        for error_type, category, _ in ERROR_CATEGORIES:
            if isinstance(error, error_type):
                return category

        message = str(error).lower()
        for _, category, keywords in ERROR_CATEGORIES:
            if any(keyword in message for keyword in keywords):
                return category

        return "unknown"

    def log_error(self, error: Exception, context: Dict[str, Any]):
        """Log at a level chosen by category; context lands on the record."""
        category = self.classify_error(error)
        extra = {
            "error_type": type(error).__name__,
            "error_category": category,
            "error_message": str(error),
            **context,
        }
        level = LOG_LEVELS.get(category, logging.WARNING)
        self.logger.log(level, "⚠️ RPC chunk failed (%s): %s", category, error, extra=extra)
