"""Decorator utilities for cross-cutting concerns."""
import time
import logging
import functools
from typing import Any, Callable, Optional, TypeVar, cast

logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])


def log_execution_time(describe: Optional[Callable[..., str]] = None) -> Callable[[F], F]:
    """Log how long each call of the decorated function takes.

    Args:
        describe: Builds the log label from the call's arguments, e.g. the
            article and image a publish is working on. Defaults to the
            function's qualified name.

    Returns:
        Decorator that logs the duration on success and on failure
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            label = describe(*args, **kwargs) if describe else func.__qualname__
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                reason = getattr(e, "reason", type(e).__name__)
                logger.error(f"{label} failed ({reason}) after {duration_ms:.0f}ms")
                raise
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(f"{label} finished in {duration_ms:.0f}ms")
            return result
        return cast(F, wrapper)
    return decorator
