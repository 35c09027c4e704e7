"""Retry decorator with exponential backoff for network calls outside the processing core."""
from __future__ import annotations

import functools
import random
import time
from typing import Any, Callable, Tuple, Type

from autoapply.log import get_logger

log = get_logger(__name__)


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable:
    """Retry the wrapped function on ``retryable`` exceptions, re-raising the last one."""

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(1, max_attempts + 1):
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    if attempt == max_attempts:
                        log.error("%s failed after %d attempts: %s", fn.__qualname__, max_attempts, exc)
                        raise
                    delay = _backoff(attempt, base_delay, backoff_factor, max_delay, jitter)
                    log.warning(
                        "%s attempt %d/%d failed (%s), retrying in %.1fs",
                        fn.__qualname__, attempt, max_attempts, exc, delay,
                    )
                    time.sleep(delay)
            raise AssertionError("unreachable")

        return wrapper

    return decorator


def _backoff(attempt: int, base: float, factor: float, ceiling: float, jitter: bool) -> float:
    delay = min(base * (factor ** (attempt - 1)), ceiling)
    if jitter:
        delay *= 0.5 + random.random()
    return delay
