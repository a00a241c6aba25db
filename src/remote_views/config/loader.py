"""
Centralized configuration loading from files and environment variables.
"""
import os
import logging
from pathlib import Path
from typing import Dict, Any, Optional, List

from dotenv import load_dotenv

from .configuration import (
    EngineConfiguration,
    ensure_engine_config,
    load_config_file,
    merge_configs,
    resolve_size_aliases
)

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ["remote_views.yaml", "remote_views.yml", "remote_views.json"]

# Environment values that hold a list of paths
PATH_LIST_KEYS = {"partials_dir", "extensions"}

# Environment spellings of a disabled layout
DISABLED_LAYOUT_VALUES = {"", "false", "0", "no", "off"}


def load_configuration_from_env(env_prefix: str = "REMOTE_VIEWS_", environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Collect configuration from prefixed environment variables.
    
    ``REMOTE_VIEWS_MAX_AGE=30`` becomes ``{"max_age": "30"}``; list-valued
    options are split on ``os.pathsep``. ``REMOTE_VIEWS_SIZE`` and
    ``REMOTE_VIEWS_MAX`` set ``max_size``; ``REMOTE_VIEWS_LAYOUT=false``
    disables the layout.
    
    Args:
        env_prefix: Prefix of variables to consider
        environ: Environment mapping, ``os.environ`` by default
        
    Returns:
        Configuration dictionary
    """
    environ = os.environ if environ is None else environ
    config = {}
    for name, value in environ.items():
        if not name.startswith(env_prefix):
            continue
        key = name[len(env_prefix):].lower()
        if key not in EngineConfiguration.model_fields and key not in ("size", "max"):
            logger.debug(f"Ignoring unknown configuration variable {name}")
            continue
        if key == "layout" and value.strip().lower() in DISABLED_LAYOUT_VALUES:
            config[key] = False
        elif key in PATH_LIST_KEYS and os.pathsep in value:
            config[key] = [v for v in value.split(os.pathsep) if v]
        else:
            config[key] = value
    return resolve_size_aliases(config)


def load_config(
    config_path: Optional[str] = None,
    env_prefix: str = "REMOTE_VIEWS_",
    defaults: Optional[Dict[str, Any]] = None,
    search_paths: Optional[List[str]] = None,
    dotenv_path: Optional[str] = None
) -> EngineConfiguration:
    """
    Load configuration from files and environment.
    
    Precedence, lowest first: defaults, configuration file, environment.
    
    Args:
        config_path: Path to the configuration file (optional)
        env_prefix: Prefix for environment variables to consider
        defaults: Default configuration values
        search_paths: Directories searched when no config_path is given
        dotenv_path: Optional .env file loaded before reading the environment
        
    Returns:
        EngineConfiguration object with loaded configuration
    """
    config = resolve_size_aliases(defaults or {})
    
    if search_paths is None:
        search_paths = [
            os.getcwd(),
            str(Path(os.getcwd()) / "config"),
        ]
    
    if config_path:
        logger.info(f"Loading configuration from specified file: {config_path}")
        config = merge_configs(config, resolve_size_aliases(load_config_file(config_path)))
    else:
        for path in search_paths:
            for filename in CONFIG_FILENAMES:
                full_path = os.path.join(path, filename)
                if os.path.exists(full_path):
                    logger.info(f"Loading configuration from discovered file: {full_path}")
                    config = merge_configs(config, resolve_size_aliases(load_config_file(full_path)))
                    break
            else:
                continue
            break
        else:
            logger.info("No configuration file found, using defaults and environment variables")
    
    load_dotenv(dotenv_path)
    env_config = load_configuration_from_env(env_prefix)
    config = merge_configs(config, env_config)
    
    return ensure_engine_config(config)
