"""Retry decorator with exponential backoff for external service calls."""

import asyncio
import logging
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)
T = TypeVar("T")


def backoff_delay(attempt: int, base_delay: float, max_delay: Optional[float] = None) -> float:
    """Delay before retry number ``attempt`` (0-based): base_delay * 2^attempt, capped."""
    delay = base_delay * (2**attempt)
    if max_delay is not None:
        delay = min(delay, max_delay)
    return delay


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    max_delay: Optional[float] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator for exponential backoff retry logic on async callables.

    Args:
        max_attempts: Maximum number of attempts, including the first call
        base_delay: Base delay in seconds (doubles each attempt)
        exceptions: Tuple of exception types that trigger a retry
        max_delay: Optional upper bound for a single delay

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            last_exception: Exception | None = None

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    if attempt < max_attempts - 1:
                        delay = backoff_delay(attempt, base_delay, max_delay)
                        logger.warning(
                            f"{func.__qualname__} attempt {attempt + 1}/{max_attempts} "
                            f"failed: {e}. Retrying in {delay}s..."
                        )
                        await asyncio.sleep(delay)
                    else:
                        logger.error(f"{func.__qualname__}: all {max_attempts} attempts failed: {e}")

            raise last_exception  # type: ignore

        return wrapper  # type: ignore

    return decorator
