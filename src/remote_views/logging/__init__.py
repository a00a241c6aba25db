"""
Logging configuration for remote views.
"""
from .config import PACKAGE_LOGGER, LogConfig, JsonFormatter

__all__ = ['PACKAGE_LOGGER', 'LogConfig', 'JsonFormatter']
