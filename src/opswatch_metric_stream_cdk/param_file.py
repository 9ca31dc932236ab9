"""Parameter file loading and configuration source resolution.

The static-file profile reads its endpoint URL and namespace filters from a
YAML or JSON file named by the ``ParamFile`` context key. Everything here
runs at synth time, so every failure aborts the build.
"""
from pathlib import Path
from typing import Any

import pydantic
import yaml

from .config import EndpointConfig
from .exceptions import ConfigurationError, ResourceNotFoundError, ValidationError
from .logger import get_logger, log_function_call
from .project_settings import (
    CONFIG_SOURCE_CONTEXT_KEY,
    PARAM_FILE_CONTEXT_KEY,
    ConfigSource,
)

logger = get_logger(__name__)


@log_function_call(logger)
def load_param_file(path: str | Path) -> EndpointConfig:
    """Load and validate an endpoint parameter file.

    Args:
        path: Path to a YAML or JSON parameter file

    Returns:
        Validated endpoint configuration

    Raises:
        ResourceNotFoundError: If the file doesn't exist
        ConfigurationError: If the file is empty or not valid YAML/JSON
        ValidationError: If the contents don't match the endpoint schema
    """
    param_path = Path(path).expanduser()
    if not param_path.is_file():
        raise ResourceNotFoundError("Parameter file not found", path=str(param_path))

    try:
        with open(param_path, encoding="utf-8") as f:
            content: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML/JSON in parameter file: {e}", path=str(param_path)) from e

    if not content:
        raise ConfigurationError("Parameter file is empty", path=str(param_path))
    if not isinstance(content, dict):
        raise ConfigurationError(
            "Parameter file must contain a mapping",
            path=str(param_path),
            found=type(content).__name__,
        )

    try:
        endpoint = EndpointConfig.model_validate(content)
    except pydantic.ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid parameter file: {errors}", path=str(param_path)) from e

    logger.info(
        "param_file_loaded",
        path=str(param_path),
        include_filters=len(endpoint.include_filters),
        exclude_filters=len(endpoint.exclude_filters),
    )
    return endpoint


def resolve_config_source(requested: str | None, param_file: str | None) -> ConfigSource:
    """Decide which configuration profile a synth run uses.

    An explicit ``ConfigSource`` context value wins. Otherwise the presence of
    ``ParamFile`` selects the static-file profile, and its absence selects the
    deployment-parameter profile. The two profiles are never combined.

    Args:
        requested: Value of the ``ConfigSource`` context key, if any
        param_file: Value of the ``ParamFile`` context key, if any

    Returns:
        The configuration source to build the stack with

    Raises:
        ConfigurationError: If the requested source is unknown or contradicts
            the presence of a parameter file
    """
    if requested is None:
        return ConfigSource.STATIC_FILE if param_file else ConfigSource.DEPLOYMENT_PARAMETER

    try:
        source = ConfigSource(str(requested).lower())
    except ValueError:
        valid = ", ".join(s.value for s in ConfigSource)
        raise ConfigurationError(
            f"Invalid {CONFIG_SOURCE_CONTEXT_KEY}: '{requested}'. Valid sources: {valid}"
        ) from None

    if source is ConfigSource.STATIC_FILE and not param_file:
        raise ConfigurationError(
            f"{CONFIG_SOURCE_CONTEXT_KEY}=file requires the {PARAM_FILE_CONTEXT_KEY} context value"
        )
    if source is ConfigSource.DEPLOYMENT_PARAMETER and param_file:
        raise ConfigurationError(
            f"{CONFIG_SOURCE_CONTEXT_KEY}=parameter cannot be combined with {PARAM_FILE_CONTEXT_KEY}",
            param_file=param_file,
        )
    return source


__all__ = ["load_param_file", "resolve_config_source"]
