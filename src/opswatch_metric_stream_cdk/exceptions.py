"""Exception hierarchy for the metric stream CDK app.

Every error raised while composing the stack carries a message plus
keyword context (file paths, profile names) rendered into ``str()``.
"""

from typing import Any


class OpswatchMetricStreamCdkError(Exception):
    """Base exception for Opswatch Metric Stream CDK.

    All custom exceptions should inherit from this class.
    Supports additional context via keyword arguments.
    """

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize exception with message and context.

        Args:
            message: Error message
            **context: Additional context as key-value pairs
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """String representation including context."""
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message


class ValidationError(OpswatchMetricStreamCdkError):
    """Raised when a parameter file does not match the endpoint schema."""

    pass


class ConfigurationError(OpswatchMetricStreamCdkError):
    """Raised when configuration is invalid or the profiles are mixed."""

    pass


class ResourceNotFoundError(OpswatchMetricStreamCdkError):
    """Raised when a parameter file does not exist."""

    pass
