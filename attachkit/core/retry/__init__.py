"""Retry strategies using Strategy Pattern."""
from .retry_strategy import RetryStrategy, ConnectivityRetryStrategy, FixedDelayStrategy

__all__ = [
    'RetryStrategy',
    'ConnectivityRetryStrategy',
    'FixedDelayStrategy',
]
