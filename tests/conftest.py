"""Shared pytest fixtures for Opswatch Metric Stream CDK."""

import os
from pathlib import Path
from typing import Callable, Iterator

import pytest

SETTINGS_ENV_VARS = ("ENVIRONMENT", "LOG_LEVEL", "STACK_NAME", "OUTPUT_FORMAT", "TAGS")


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test files."""
    return tmp_path


@pytest.fixture
def env_file(tmp_path: Path) -> Path:
    """Path of a .env file that doesn't exist unless a test writes it."""
    return tmp_path / "settings" / ".env"


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch, env_file: Path) -> Iterator[None]:
    """Isolate settings from the developer's environment and project .env file."""
    from opswatch_metric_stream_cdk.config import Settings
    from opswatch_metric_stream_cdk.settings import get_settings

    get_settings.cache_clear()
    for var in SETTINGS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    for var in list(os.environ):
        if var.upper().startswith("DELIVERY__"):
            monkeypatch.delenv(var)
    monkeypatch.setitem(Settings.model_config, "env_file", str(env_file))
    yield
    get_settings.cache_clear()


@pytest.fixture
def write_param_file(temp_dir: Path) -> Callable[..., Path]:
    """Write a parameter file into the temp dir and return its path."""

    def _write(content: str, name: str = "params.yaml") -> Path:
        path = temp_dir / name
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def sample_params() -> dict:
    """Parameter file contents with a single include filter."""
    return {
        "url": "https://example.test/ingest",
        "includeFilters": ["AWS/EC2"],
        "excludeFilters": [],
    }
