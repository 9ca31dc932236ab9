"""Logger utilities and helpers.

Provides convenience functions for logging throughout the application.
"""

from functools import wraps
from time import perf_counter
from typing import Any, Callable, TypeVar

import structlog

F = TypeVar("F", bound=Callable[..., Any])


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger instance.

    Args:
        name: Logger name (defaults to calling module)

    Returns:
        Configured structlog logger

    Example:
        >>> from opswatch_metric_stream_cdk.logger import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("param_file_loaded", path="params.yaml")
    """
    return structlog.get_logger(name)


def log_function_call(logger: Any | None = None) -> Callable[[F], F]:
    """Decorator to log a call's start, outcome and duration.

    Only the number of positional arguments and the keyword names are
    logged, never their values.

    Args:
        logger: Optional logger instance (creates one if not provided)

    Returns:
        Decorated function
    """

    def decorator(func: F) -> F:
        nonlocal logger
        if logger is None:
            logger = get_logger(func.__module__)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start = perf_counter()
            logger.debug(
                "function_call_start",
                function=func.__name__,
                args_count=len(args),
                kwargs_keys=list(kwargs.keys()),
            )

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    "function_call_error",
                    function=func.__name__,
                    error=str(e),
                    error_type=type(e).__name__,
                    duration_ms=round((perf_counter() - start) * 1000, 2),
                )
                raise

            logger.debug(
                "function_call_success",
                function=func.__name__,
                duration_ms=round((perf_counter() - start) * 1000, 2),
            )
            return result

        return wrapper  # type: ignore

    return decorator


class LogContext:
    """Context manager binding structured context to a logger.

    Example:
        >>> logger = get_logger(__name__)
        >>> with LogContext(logger, stack="CdkOpswatchMetricStreamStack") as log:
        ...     log.info("resource_declared", resource="ErrorBucket")
    """

    def __init__(self, logger: Any, **context: Any) -> None:
        """Initialize log context.

        Args:
            logger: Logger instance
            **context: Context key-value pairs to add
        """
        self.logger = logger
        self.context = context
        self.bound_logger: Any = None

    def __enter__(self) -> Any:
        """Enter context and bind logger."""
        self.bound_logger = self.logger.bind(**self.context)
        return self.bound_logger

    def __exit__(self, *args: Any) -> None:
        """Exit context."""
        self.bound_logger = None


__all__ = ["get_logger", "log_function_call", "LogContext"]
