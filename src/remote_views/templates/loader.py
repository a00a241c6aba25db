"""
Resolves single named templates from remote URLs or local files.
"""
import logging
import os
from typing import Any, Optional, Tuple

from ..cache.freshness import FreshnessDirectives, cache_control_from_headers
from ..cache.store import TemplateCache
from ..error.exceptions import ConfigurationError, ErrorContext, FetchError
from ..sources.filesystem import FileSystem
from ..sources.transport import TemplateRequest, Transport
from .compiler import Compiler

logger = logging.getLogger(__name__)

TEMPLATE_MEDIA_TYPE = "text/x-handlebars-template"


def is_compiled(value: Any) -> bool:
    """True if the value is already a compiled template."""
    return callable(value)


class ResourceLoader:
    """
    Loads and compiles templates, reading through the caches.

    Remote templates go through ``cache``, whose freshness follows the
    response's Cache-Control header. Local templates go through
    ``forever_cache`` and never expire.
    """

    def __init__(
        self,
        compiler: Compiler,
        transport: Transport,
        filesystem: FileSystem,
        cache: TemplateCache,
        forever_cache: TemplateCache
    ):
        self.compiler = compiler
        self.transport = transport
        self.filesystem = filesystem
        self.cache = cache
        self.forever_cache = forever_cache

    async def get_layout(self, layout: Any, cache: bool = True):
        """
        Resolve a remote layout.

        Args:
            layout: URL, request descriptor or compiled template
            cache: Whether to read through the remote cache

        Returns:
            Compiled template
        """
        if not layout:
            raise ConfigurationError(
                "A layout URL is required",
                context=ErrorContext("ResourceLoader", "get_layout")
            )
        if is_compiled(layout):
            return layout

        request = TemplateRequest.coerce(layout).with_header("Accept", TEMPLATE_MEDIA_TYPE)

        if not cache:
            template, _ = await self.request_template(request)
            return template

        async def load(key: str):
            return await self.request_template(request)

        return await self.cache.read_through(request.url, load)

    async def get_view(self, file_path: Any, cache: bool = True):
        """
        Resolve a local view.

        Args:
            file_path: Path to the view, or a compiled template
            cache: Whether to read through the forever cache

        Returns:
            Compiled template
        """
        if not file_path:
            raise ConfigurationError(
                "A view path is required",
                context=ErrorContext("ResourceLoader", "get_view")
            )
        if is_compiled(file_path):
            return file_path

        path = os.path.abspath(os.fspath(file_path))

        if not cache:
            return await self.read_template(path)

        async def load(key: str):
            return await self.read_template(key), None

        return await self.forever_cache.read_through(path, load)

    async def request_template(self, request: TemplateRequest) -> Tuple[Any, Optional[FreshnessDirectives]]:
        """
        Fetch and compile a remote template.

        Args:
            request: Request descriptor

        Returns:
            Tuple of (compiled template, cache-control directives or None)
        """
        response = await self.transport.fetch(request)
        if response.status_code >= 400:
            raise FetchError(
                f"HTTP status code '{response.status_code}' received from {request.url}",
                url=request.url,
                status_code=response.status_code,
                context=ErrorContext("ResourceLoader", "request_template")
            )
        template = self.compiler.compile(response.body, name=request.url)
        directives = cache_control_from_headers(response.headers)
        logger.info(f"Fetched template {request.url} ({response.status_code})")
        return template, directives

    async def read_template(self, path: str):
        """Read and compile a local template."""
        content = await self.filesystem.read_file(path)
        return self.compiler.compile(content, name=path)
