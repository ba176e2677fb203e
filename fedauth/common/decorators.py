"""
Common decorators for fedauth.
"""

import asyncio
import functools
import logging
import time
from typing import Any, Callable, Optional, TypeVar

from ..types.errors import FederationError, normalize_error

F = TypeVar('F', bound=Callable[..., Any])

logger = logging.getLogger(__name__)


def log_execution_time(logger_instance: Optional[logging.Logger] = None):
    """
    Decorator to log function execution time.

    Args:
        logger_instance: Optional logger instance to use
    """
    def decorator(func: F) -> F:
        log = logger_instance or logger

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            start_time = time.monotonic()
            try:
                result = await func(*args, **kwargs)
                log.debug(f"{func.__qualname__} executed in {time.monotonic() - start_time:.3f}s")
                return result
            except Exception as e:
                log.debug(f"{func.__qualname__} failed after {time.monotonic() - start_time:.3f}s: {e}")
                raise

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            start_time = time.monotonic()
            try:
                result = func(*args, **kwargs)
                log.debug(f"{func.__qualname__} executed in {time.monotonic() - start_time:.3f}s")
                return result
            except Exception as e:
                log.debug(f"{func.__qualname__} failed after {time.monotonic() - start_time:.3f}s: {e}")
                raise

        return async_wrapper if asyncio.iscoroutinefunction(func) else sync_wrapper

    return decorator


def federation_boundary(func: F) -> F:
    """
    Decorator marking the outer edge of a federation flow.

    Any exception other than cancellation is normalized into a
    FederationError and re-raised with the original as its cause.
    """
    @functools.wraps(func)
    async def async_wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except FederationError as e:
            _log_for(self).error(f"{type(self).__name__} failed: {e}")
            raise
        except Exception as e:
            error = normalize_error(e)
            _log_for(self).error(f"{type(self).__name__} failed: {error}")
            raise error from e

    @functools.wraps(func)
    def sync_wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except FederationError:
            raise
        except Exception as e:
            raise normalize_error(e) from e

    return async_wrapper if asyncio.iscoroutinefunction(func) else sync_wrapper


def _log_for(instance: Any) -> logging.Logger:
    return getattr(instance, 'logger', None) or logger
