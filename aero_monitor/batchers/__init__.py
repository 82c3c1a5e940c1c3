"""
Batched contract reads over JSON-RPC.

This package provides the contract ABI helper, the JSON-RPC batch executor,
the shared rate limiter and the error taxonomy they use.
"""

from .abi import ContractInterface
from .base import BatchCall, BatchConfig, CallResult, JsonRpcBatcher
from .errors import (
    BatchError,
    DecodeError,
    ErrorHandler,
    NetworkError,
    RateLimitError,
    ValidationError,
    is_rate_limit_error,
)
from .rate_limiter import RateLimiter

__all__ = [
    'ContractInterface',
    'BatchCall',
    'BatchConfig',
    'CallResult',
    'JsonRpcBatcher',
    'BatchError',
    'DecodeError',
    'ErrorHandler',
    'NetworkError',
    'RateLimitError',
    'ValidationError',
    'is_rate_limit_error',
    'RateLimiter',
]
