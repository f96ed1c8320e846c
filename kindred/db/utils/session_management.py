"""
Utilities for bounding store calls and retrying read-only operations.
"""
import asyncio
import functools
import random
from typing import Any, Awaitable, Callable, Optional, TypeVar

from loguru import logger
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.core.config import get_settings
from kindred.core.exceptions import TransientStoreError

T = TypeVar('T')

# Failures that mean "the store could not be reached", as opposed to bad data
TRANSIENT_ERRORS = (OperationalError, InterfaceError, asyncio.TimeoutError)


def is_transient(error: BaseException) -> bool:
    if isinstance(error, TRANSIENT_ERRORS):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated


def _find_session(args: tuple, kwargs: dict) -> Optional[AsyncSession]:
    session = kwargs.get('session')
    if session is not None:
        return session
    for arg in args:
        if isinstance(arg, AsyncSession):
            return arg
    return None


async def _rollback_quietly(session: Optional[AsyncSession]) -> None:
    if session is None:
        return
    try:
        await session.rollback()
    except Exception as e:
        logger.warning(f"Rollback after store failure also failed: {e}")


def store_operation(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """
    Bound a service operation by STORE_TIMEOUT_SECONDS and translate store failures.

    Timeouts and connectivity errors are re-raised as TransientStoreError after the
    session is rolled back, so the caller can leave its state unchanged and retry.
    """
    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        timeout = get_settings().STORE_TIMEOUT_SECONDS
        try:
            return await asyncio.wait_for(func(*args, **kwargs), timeout=timeout)
        except (DBAPIError, asyncio.TimeoutError) as e:
            if not is_transient(e):
                raise
            logger.error(f"Store failure in {func.__name__}: {e!r}")
            await _rollback_quietly(_find_session(args, kwargs))
            raise TransientStoreError(f"{func.__name__} failed: {e}") from e

    return wrapper


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 5.0
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator to retry read-only async operations with exponential backoff.

    Only TransientStoreError is retried, so stack it above store_operation.

    Args:
        max_attempts: Maximum number of attempts
        base_delay: Base delay between retries in seconds
        max_delay: Maximum delay between retries in seconds
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except TransientStoreError as e:
                    if attempt >= max_attempts:
                        logger.error(f"{func.__name__} failed after {max_attempts} attempts: {e}")
                        raise

                    delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
                    # Add some jitter (±10%)
                    delay += 0.1 * delay * (2 * random.random() - 1)

                    logger.warning(f"{func.__name__} failed (attempt {attempt}/{max_attempts}): {e}. Retrying in {delay:.2f}s")
                    await asyncio.sleep(delay)

            raise RuntimeError("Unexpected error in retry logic")

        return wrapper
    return decorator
