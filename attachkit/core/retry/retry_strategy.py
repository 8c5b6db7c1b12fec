"""Retry strategies using Strategy Pattern."""
import asyncio
from abc import ABC, abstractmethod

from ..exceptions import is_connectivity_failure


class RetryStrategy(ABC):
    """Abstract retry strategy."""
    
    @abstractmethod
    def should_retry(self, error: BaseException, attempt: int, max_attempts: int) -> bool:
        """Determines if a failed attempt should be retried."""
        pass
    
    @abstractmethod
    async def wait_async(self, attempt: int):
        """Waits before the next attempt."""
        pass


class ConnectivityRetryStrategy(RetryStrategy):
    """Retries connectivity failures only, without waiting."""
    
    def should_retry(self, error: BaseException, attempt: int, max_attempts: int) -> bool:
        """Retries transport failures while attempts remain."""
        return is_connectivity_failure(error) and attempt < max_attempts
    
    async def wait_async(self, attempt: int):
        """Retries immediately."""
        return None


class FixedDelayStrategy(ConnectivityRetryStrategy):
    """Retries connectivity failures after a constant delay."""
    
    def __init__(self, delay: float):
        self.delay = delay
    
    async def wait_async(self, attempt: int):
        """Waits the fixed delay (async)."""
        await asyncio.sleep(self.delay)
