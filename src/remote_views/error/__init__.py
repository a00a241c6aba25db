"""
Error handling exceptions.
"""
from .exceptions import (
    ErrorContext,
    RemoteViewsError,
    ConfigurationError,
    FetchError,
    ReadError,
    TemplateError,
    CompileError,
    RenderError
)

__all__ = [
    'ErrorContext',
    'RemoteViewsError',
    'ConfigurationError',
    'FetchError',
    'ReadError',
    'TemplateError',
    'CompileError',
    'RenderError',
]
