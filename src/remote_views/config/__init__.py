"""
Configuration for remote views.
"""
from .configuration import (
    DEFAULT_PLACEHOLDER,
    EngineConfiguration,
    RenderOptions,
    ensure_engine_config,
    ensure_render_options,
    load_config_file,
    merge_configs
)
from .loader import load_config, load_configuration_from_env

__all__ = [
    'DEFAULT_PLACEHOLDER',
    'EngineConfiguration',
    'RenderOptions',
    'ensure_engine_config',
    'ensure_render_options',
    'load_config_file',
    'merge_configs',
    'load_config',
    'load_configuration_from_env',
]
