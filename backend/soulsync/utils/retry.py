"""
Retry with backoff at the storage boundary.

Storage calls that hit a transient ``OperationalError`` (lock timeout,
dropped connection) are retried after rolling back the session. When the
retries are spent the failure surfaces as ``StorageUnavailable`` so it can
never be mistaken for an empty result.
"""

import functools
import time
from typing import Callable, Tuple, Type

from sqlalchemy.exc import OperationalError

from soulsync.config import settings
from soulsync.errors import StorageUnavailable
from soulsync.utils.logger import logger


def storage_retry(
    max_retries: int = None,
    base_delay: float = None,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (OperationalError,),
):
    """
    Decorator for component methods that own a ``self.db`` session.

    Args:
        max_retries: Retry attempts after the first failure (default from settings)
        base_delay: Initial delay in seconds (default from settings)
        exponential_base: Multiplier applied to the delay after each retry
        exceptions: Exception types treated as transient

    Example:
        @storage_retry()
        def consume(self, identity_id, tier):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            retries = settings.STORAGE_RETRY_ATTEMPTS if max_retries is None else max_retries
            delay = settings.STORAGE_RETRY_BASE_DELAY if base_delay is None else base_delay

            for attempt in range(retries + 1):
                try:
                    return func(self, *args, **kwargs)
                except exceptions as e:
                    self.db.rollback()
                    if attempt >= retries:
                        logger.error(
                            f"Storage call {func.__qualname__} failed after {attempt + 1} attempts",
                            extra={"action": func.__name__},
                        )
                        raise StorageUnavailable(str(e)) from e

                    logger.warning(
                        f"Transient storage error in {func.__qualname__}, retrying in {delay:.2f}s",
                        extra={"action": func.__name__},
                    )
                    time.sleep(delay)
                    delay *= exponential_base

        return wrapper
    return decorator
