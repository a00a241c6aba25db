"""
Configuration models for the view engine and for individual render calls.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..error.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER = "content"
SIZE_ALIASES = ("size", "max")


def resolve_size_aliases(values: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fold the ``size`` and ``max`` aliases of one configuration layer into ``max_size``.

    Aliases are resolved per layer so that a later layer's alias replaces an
    earlier layer's ``max_size`` when the layers are merged.
    """
    values = dict(values)
    for alias in SIZE_ALIASES:
        if alias in values:
            size = values.pop(alias)
            if values.get("max_size") is None:
                values["max_size"] = size
    return values


def _validate_layout(value: Any) -> Any:
    if value is None or value is False:
        return False
    if value is True:
        raise ValueError("layout must be a URL, a request mapping, a compiled template or False")
    if isinstance(value, (str, dict)) or callable(value) or hasattr(value, "url"):
        return value
    raise ValueError(f"Unsupported layout value: {value!r}")


def _validate_partials_dir(value: Any) -> Optional[Union[str, List[str]]]:
    if value is None or value is False or value == "" or value == []:
        return None
    if isinstance(value, (str, Path)):
        return os.fspath(value)
    if isinstance(value, (list, tuple)):
        return [os.fspath(v) for v in value]
    raise ValueError(f"Invalid partials directory: {value!r}")


class EngineConfiguration(BaseModel):
    """Instance-level configuration for a RemoteViews engine."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, arbitrary_types_allowed=True)

    # Composition settings
    layout: Any = Field(default=False, description="Default layout URL, request mapping or compiled template")
    placeholder: str = Field(default=DEFAULT_PLACEHOLDER, min_length=1, description="Context key receiving the view output")
    helpers: Dict[str, Any] = Field(default_factory=dict, description="Template helpers")
    partials_dir: Optional[Union[str, List[str]]] = Field(
        default=None, description="Partials directory or ordered list of directories"
    )
    extensions: List[str] = Field(default_factory=lambda: [".handlebars", ".hbs"], description="Template file extensions")

    # Remote cache settings
    max_age: float = Field(default=60, ge=0, description="Default freshness lifetime in seconds")
    stale_while_revalidate: float = Field(default=0, ge=0, description="Default stale window in seconds")
    max_size: Optional[int] = Field(default=None, ge=1, description="Maximum cached remote templates")
    single_flight: bool = Field(default=True, description="Share one fetch between concurrent misses")
    transport_timeout: Optional[float] = Field(default=None, gt=0, description="HTTP timeout in seconds")

    # Logging settings
    log_level: str = "INFO"
    log_file: Optional[str] = None
    json_logging: bool = False
    log_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0, description="Log file size that triggers rotation")
    log_backup_count: int = Field(default=5, ge=0, description="Rotated log files to keep")

    @model_validator(mode="before")
    @classmethod
    def accept_size_aliases(cls, values: Any) -> Any:
        """Accept ``size`` and ``max`` as aliases for ``max_size``."""
        if not isinstance(values, dict):
            return values
        return resolve_size_aliases(values)

    @field_validator("layout")
    @classmethod
    def validate_layout(cls, value: Any) -> Any:
        return _validate_layout(value)

    @field_validator("partials_dir", mode="before")
    @classmethod
    def validate_partials_dir(cls, value: Any) -> Optional[Union[str, List[str]]]:
        return _validate_partials_dir(value)

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, value: List[str]) -> List[str]:
        """Ensure every extension starts with a dot."""
        if not value:
            raise ValueError("At least one template extension is required")
        return [v if v.startswith(".") else f".{v}" for v in value]

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        value_upper = value.upper()
        if value_upper not in valid_levels:
            raise ValueError(f"Invalid log level '{value}'. Must be one of: {valid_levels}")
        return value_upper


class RenderOptions(BaseModel):
    """
    Options for a single render call.

    Only fields that were explicitly passed override the engine configuration,
    so ``layout=False`` disables the layout while omitting it keeps the default.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    layout: Any = None
    placeholder: Optional[str] = Field(default=None, min_length=1)
    helpers: Optional[Dict[str, Any]] = None
    partials_dir: Optional[Union[str, List[str]]] = None
    cache: bool = True
    data: Optional[Dict[str, Any]] = None

    @field_validator("layout")
    @classmethod
    def validate_layout(cls, value: Any) -> Any:
        return _validate_layout(value)

    @field_validator("partials_dir", mode="before")
    @classmethod
    def validate_partials_dir(cls, value: Any) -> Optional[Union[str, List[str]]]:
        return _validate_partials_dir(value)

    def resolve(self, config: EngineConfiguration) -> Dict[str, Any]:
        """
        Merge these options over the engine configuration.

        Returns:
            Keyword arguments for RenderPipeline.render
        """
        explicit = self.model_fields_set
        return {
            "layout": self.layout if "layout" in explicit else config.layout,
            "placeholder": self.placeholder or config.placeholder,
            "helpers": self.helpers if self.helpers is not None else config.helpers,
            "partials_dir": self.partials_dir if "partials_dir" in explicit else config.partials_dir,
            "cache": self.cache,
            "data": self.data,
        }


def ensure_engine_config(config: Optional[Union[EngineConfiguration, Dict[str, Any]]] = None,
                         **overrides) -> EngineConfiguration:
    """
    Build a validated engine configuration.

    Args:
        config: Existing configuration or mapping of options
        **overrides: Options taking precedence over ``config``

    Returns:
        EngineConfiguration

    Raises:
        ConfigurationError: If the options are invalid
    """
    if isinstance(config, EngineConfiguration):
        if not overrides:
            return config
        config = {name: getattr(config, name) for name in EngineConfiguration.model_fields}

    merged = {**resolve_size_aliases(config or {}), **resolve_size_aliases(overrides)}
    try:
        return EngineConfiguration(**merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def ensure_render_options(options: Optional[Union[RenderOptions, Dict[str, Any]]] = None) -> RenderOptions:
    """Validate per-call render options."""
    if isinstance(options, RenderOptions):
        return options
    try:
        return RenderOptions(**(options or {}))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid render options: {e}") from e


def load_config_file(file_path: str) -> Dict[str, Any]:
    """
    Load configuration from a file (YAML or JSON).

    Args:
        file_path: Path to the configuration file

    Returns:
        Dictionary with configuration

    Raises:
        ConfigurationError: If the file is not found or cannot be parsed
    """
    path = Path(file_path).expanduser()

    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {file_path}")

    try:
        content = path.read_text(encoding='utf-8')

        if path.suffix in (".yaml", ".yml"):
            loaded_config = yaml.safe_load(content) or {}
        elif path.suffix == ".json":
            loaded_config = json.loads(content) or {}
        else:
            raise ConfigurationError(f"Unsupported config file format: {file_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML format in {file_path}: {str(e)}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON format in {file_path}: {str(e)}") from e
    except OSError as e:
        raise ConfigurationError(f"Error reading config file {file_path}: {str(e)}") from e

    if not isinstance(loaded_config, dict):
        raise ConfigurationError(f"Configuration in {file_path} must be a mapping")

    logger.debug(f"Loaded configuration from {file_path}")
    return loaded_config


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two configuration dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(value, dict) and key in result and isinstance(result[key], dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result
