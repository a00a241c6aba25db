"""
Remote Views: compose local views with cached remote layouts and partials.
"""
import logging

__version__ = "0.1.0"

from .engine import RemoteViews, create, view_engine
from .cache import FreshnessDirectives, FreshnessPolicy, TemplateCache, parse_cache_control
from .config import EngineConfiguration, RenderOptions, load_config
from .error import (
    RemoteViewsError,
    ConfigurationError,
    FetchError,
    ReadError,
    TemplateError,
    CompileError,
    RenderError
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "RemoteViews",
    "create",
    "view_engine",
    "FreshnessDirectives",
    "FreshnessPolicy",
    "TemplateCache",
    "parse_cache_control",
    "EngineConfiguration",
    "RenderOptions",
    "load_config",
    "RemoteViewsError",
    "ConfigurationError",
    "FetchError",
    "ReadError",
    "TemplateError",
    "CompileError",
    "RenderError",
    "__version__",
]
