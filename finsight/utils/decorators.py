"""
Utility decorators for Finsight.

Timing and error-wrapping decorators for collaborator calls.
"""

import time
import functools
from typing import Callable, Optional, Type
from finsight.utils.logging import get_logger
from finsight.utils.exceptions import FinsightException


def async_timing_decorator(func: Callable) -> Callable:
    """
    Decorator to measure coroutine execution time.

    Args:
        func: Coroutine function to be timed

    Returns:
        Wrapped coroutine function with timing
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.perf_counter()

        try:
            result = await func(*args, **kwargs)
            logger.info(f"⏱️ {func.__name__} executed in {time.perf_counter() - start_time:.3f}s")
            return result
        except Exception as e:
            logger.error(f"❌ {func.__name__} failed after {time.perf_counter() - start_time:.3f}s: {str(e)}")
            raise

    return wrapper


def wrap_errors(exception_type: Type[FinsightException], message: Optional[str] = None):
    """
    Decorator translating unexpected exceptions of a coroutine into a typed error.

    Typed Finsight exceptions pass through untouched.

    Args:
        exception_type: Exception raised in place of foreign errors
        message: Prefix of the raised error, ``<function> failed`` by default

    Returns:
        Decorator function
    """
    def decorator(func: Callable) -> Callable:
        prefix = message or f"{func.__name__} failed"

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except FinsightException:
                raise
            except Exception as e:
                logger = get_logger(func.__module__)
                logger.error(f"❌ Unexpected error in {func.__name__}: {str(e)}")
                raise exception_type(f"{prefix}: {str(e)}") from e

        return wrapper
    return decorator
