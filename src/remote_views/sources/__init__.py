"""
Template sources: remote HTTP transport and local filesystem.
"""
from .transport import AiohttpTransport, TemplateRequest, Transport, TransportResponse
from .filesystem import FileSystem, LocalFileSystem

__all__ = [
    'AiohttpTransport',
    'TemplateRequest',
    'Transport',
    'TransportResponse',
    'FileSystem',
    'LocalFileSystem',
]
