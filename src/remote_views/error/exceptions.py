"""
Centralized exception definitions for remote views.
"""
from typing import Optional


class ErrorContext:
    """Context information for errors."""
    
    def __init__(self, component: str = None, operation: str = None, **kwargs):
        self.component = component
        self.operation = operation
        self.details = kwargs


class RemoteViewsError(Exception):
    """Base class for all remote views errors."""
    
    def __init__(self, message: str, context: ErrorContext = None, details: dict = None):
        super().__init__(message)
        self.context = context or ErrorContext()
        self.details = details or {}
        
    def __str__(self):
        base_str = super().__str__()
        if self.context.component and self.context.operation:
            return f"{base_str} [in {self.context.component}.{self.context.operation}]"
        return base_str


class ConfigurationError(RemoteViewsError):
    """Missing or invalid configuration, such as a layout call without a URL."""
    pass


class FetchError(RemoteViewsError):
    """Transport failure or HTTP error status while fetching a remote template."""
    
    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        context: ErrorContext = None,
        details: dict = None
    ):
        super().__init__(message, context, details)
        self.url = url
        self.status_code = status_code


class ReadError(RemoteViewsError):
    """Filesystem failure, including a missing file or directory."""
    
    def __init__(self, message: str, path: Optional[str] = None, context: ErrorContext = None, details: dict = None):
        super().__init__(message, context, details)
        self.path = path


class TemplateError(RemoteViewsError):
    """Error in template handling."""
    pass


class CompileError(TemplateError):
    """Malformed template source."""
    pass


class RenderError(TemplateError):
    """Error raised while executing a compiled template."""
    pass
