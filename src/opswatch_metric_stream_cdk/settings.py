"""Settings and configuration access.

Settings are automatically loaded from .env file via pydantic-settings.

Usage:
    Basic usage:
        >>> from opswatch_metric_stream_cdk.settings import get_settings
        >>> settings = get_settings()
        >>> print(settings.stack_name)
        CdkOpswatchMetricStreamStack

    Access nested config:
        >>> settings = get_settings()
        >>> print(settings.delivery.retry_duration_seconds)
        100

    Testing with custom settings:
        >>> def test_example(monkeypatch):
        ...     monkeypatch.setenv("DELIVERY__RETRY_DURATION_SECONDS", "300")
        ...     get_settings.cache_clear()  # Clear cache
        ...     assert get_settings().delivery.retry_duration_seconds == 300
"""

from functools import lru_cache

from .config import Settings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Priority order (highest to lowest):
        1. Environment variables
        2. .env file in project root
        3. Default values from config.py

    Returns:
        Settings: Cached settings instance with validated configuration

    Note:
        In tests, call get_settings.cache_clear() after changing environment
        variables to force reload of settings.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
