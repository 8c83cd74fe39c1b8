"""Decorator utilities for cross-cutting concerns."""
import time
import logging
import functools
from typing import Any, Callable, Optional, TypeVar, cast

# Setup logging
logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])

def log_execution_time(func: F) -> F:
    """Decorator to log function execution time.

    Args:
        func: The function to decorate

    Returns:
        Decorated function that logs execution time
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            result = func(*args, **kwargs)
            duration = time.time() - start_time
            logger.info(f"{func.__name__} completed in {duration:.2f}s")
            return result
        except Exception as e:
            duration = time.time() - start_time
            logger.error(f"{func.__name__} failed after {duration:.2f}s: {str(e)}")
            raise
    return cast(F, wrapper)

def retry(max_attempts: int = 3, delay: float = 1.0,
          should_retry: Callable[[BaseException], bool] = lambda e: True,
          on_exhausted: Optional[Callable[[BaseException, int], BaseException]] = None,
          sleep: Callable[[float], None] = time.sleep,
          logger_name: Optional[str] = None):
    """Decorator for retrying functions with linearly increasing delay.

    Attempt N that fails waits ``N * delay`` seconds before attempt N + 1.
    Errors rejected by ``should_retry`` propagate immediately.

    Args:
        max_attempts: Total number of attempts, including the first
        delay: Base delay between retries in seconds
        should_retry: Predicate deciding whether an error is worth retrying
        on_exhausted: Optional factory for the error raised once every attempt
            failed; it receives the last error and the attempt count. Without it
            the last error is re-raised.
        sleep: Sleep function, replaceable in tests
        logger_name: Optional logger name (defaults to module logger)

    Returns:
        Decorator function
    """
    retry_logger = logging.getLogger(logger_name) if logger_name else logger

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempt = 1

            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not should_retry(e):
                        raise

                    if attempt >= max_attempts:
                        retry_logger.error(f"All {max_attempts} attempts failed for {func.__name__}: {str(e)}")
                        if on_exhausted is not None:
                            raise on_exhausted(e, attempt) from e
                        raise

                    current_delay = attempt * delay
                    retry_logger.warning(
                        f"Attempt {attempt}/{max_attempts} for {func.__name__} failed: {str(e)}. "
                        f"Retrying in {current_delay:.2f}s"
                    )

                    sleep(current_delay)
                    attempt += 1

        return cast(F, wrapper)

    return decorator
