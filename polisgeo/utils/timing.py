"""Elapsed-time logging for index builds, gazetteer loads and batch runs."""
import inspect
import time
from functools import wraps
from typing import Any, Callable, Optional

from polisgeo.utils.logging import log_structured


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def time_function(func: Callable) -> Callable:
    """Log how long each call of `func` takes. Works on sync and async functions."""
    if inspect.iscoroutinefunction(func):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                log_structured("info", "Function timed", function=func.__qualname__, elapsed_ms=_elapsed_ms(start))
        return async_wrapper

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            log_structured("info", "Function timed", function=func.__qualname__, elapsed_ms=_elapsed_ms(start))
    return wrapper


class Timer:
    """Times a block and logs it with any extra fields attached along the way."""

    def __init__(self, operation: str, level: str = "info", **fields: Any):
        """
        Args:
            operation: Name of the operation being timed
            level: Log level for the completion message
            **fields: Context logged with the timing (sizes, counts)
        """
        self.operation = operation
        self.level = level
        self.fields = dict(fields)
        self.start: Optional[float] = None
        self.elapsed_ms: Optional[float] = None

    def add(self, **fields: Any):
        """Attach fields known only once the block has run."""
        self.fields.update(fields)

    def __enter__(self) -> "Timer":
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.elapsed_ms = _elapsed_ms(self.start)
        log_structured(
            self.level,
            f"{self.operation} finished" if exc_type is None else f"{self.operation} failed",
            operation=self.operation,
            elapsed_ms=self.elapsed_ms,
            **self.fields
        )
