"""
RemoteViews: a view engine composing local views with remote layouts and partials.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .cache.store import TemplateCache
from .config.configuration import (
    EngineConfiguration,
    RenderOptions,
    ensure_engine_config,
    ensure_render_options
)
from .sources.filesystem import FileSystem, LocalFileSystem
from .sources.transport import AiohttpTransport, Transport
from .templates.compiler import Compiler, JinjaCompiler
from .templates.loader import ResourceLoader
from .templates.partials import PartialSetResolver
from .templates.pipeline import RenderPipeline

logger = logging.getLogger(__name__)

RenderCallback = Callable[[Optional[BaseException], Optional[str]], Any]


class RemoteViews:
    """
    View engine owning its template caches.

    Remote layouts are cached with server-driven freshness on top of the
    configured ``max_age``; local views and partials are cached forever.
    Each instance has its own caches.
    """
    
    def __init__(
        self,
        config: Optional[Union[EngineConfiguration, Dict[str, Any]]] = None,
        *,
        compiler: Optional[Compiler] = None,
        transport: Optional[Transport] = None,
        filesystem: Optional[FileSystem] = None,
        clock: Optional[Callable[[], float]] = None,
        **options
    ):
        """
        Initialize the engine.
        
        Args:
            config: Engine configuration or mapping of options
            compiler: Template compiler, Jinja2 by default
            transport: HTTP transport, aiohttp by default
            filesystem: Filesystem access, aiofiles by default
            clock: Time source shared by both caches
            **options: Configuration options overriding ``config``
        """
        self.config = ensure_engine_config(config, **options)
        self.compiler = compiler or JinjaCompiler()
        self.transport = transport or AiohttpTransport(timeout=self.config.transport_timeout)
        self.filesystem = filesystem or LocalFileSystem()
        
        self.cache = TemplateCache(
            max_size=self.config.max_size,
            max_age=self.config.max_age,
            stale_while_revalidate=self.config.stale_while_revalidate,
            clock=clock,
            single_flight=self.config.single_flight,
            name="remote"
        )
        self.cache_forever = TemplateCache.forever(clock=clock, single_flight=self.config.single_flight)
        
        self.loader = ResourceLoader(self.compiler, self.transport, self.filesystem, self.cache, self.cache_forever)
        self.partials = PartialSetResolver(self.loader, self.filesystem, self.cache_forever, self.config.extensions)
        self.pipeline = RenderPipeline(self.loader, self.partials)
        
    async def render(self, file_path: Any, context: Optional[Mapping[str, Any]] = None, **options) -> str:
        """
        Render a view.
        
        Args:
            file_path: Path to the view, or a compiled template
            context: Template variables; never mutated
            **options: Per-call ``layout``, ``placeholder``, ``helpers``,
                ``partials_dir``, ``cache`` and ``data``
                
        Returns:
            Rendered text
        """
        render_options = ensure_render_options(options)
        return await self.pipeline.render(file_path, context, **render_options.resolve(self.config))
        
    async def get_layout(self, layout: Any = None, cache: bool = True):
        """Resolve a layout, falling back to the configured one."""
        return await self.loader.get_layout(layout or self.config.layout, cache=cache)
        
    async def get_view(self, file_path: Any, cache: bool = True):
        return await self.loader.get_view(file_path, cache=cache)
        
    async def get_partials(self, partials_dir: Any = None, cache: bool = True):
        """Resolve partials, falling back to the configured directories."""
        return await self.partials.get_partials(partials_dir or self.config.partials_dir, cache=cache)
        
    @property
    def engine(self) -> Callable[[Any, Optional[Mapping[str, Any]], RenderCallback], Optional[asyncio.Task]]:
        """Callback-style view engine function ``(file_path, options, callback)``."""
        return self.render_callback
        
    def render_callback(self, file_path: Any, options: Optional[Mapping[str, Any]], callback: RenderCallback) -> Optional[asyncio.Task]:
        """
        Render and report the outcome through ``callback(error, rendered)``.
        
        Keys of ``options`` naming render options are applied as such; the
        remaining keys form the template context. Inside a running event loop
        the render is scheduled and its task returned; otherwise it runs to
        completion before returning.
        """
        context = dict(options or {})
        render_kwargs = {key: context.pop(key) for key in list(context) if key in RenderOptions.model_fields}
        
        async def run() -> None:
            try:
                rendered = await self.render(file_path, context, **render_kwargs)
            except Exception as e:
                logger.error(f"Failed to render {file_path}: {e}")
                callback(e, None)
                return
            callback(None, rendered)
            
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._run_once(run()))
            return None
        return loop.create_task(run())
        
    async def _run_once(self, coro) -> None:
        # The transport session and any background refresh are bound to this short-lived loop
        try:
            await coro
            await self.cache.join_refreshes()
        finally:
            await self.close()
            
    async def close(self) -> None:
        """Release transport resources."""
        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()
            
    async def __aenter__(self) -> 'RemoteViews':
        return self
        
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def create(config: Optional[Union[EngineConfiguration, Dict[str, Any]]] = None, **options) -> RemoteViews:
    """Create a RemoteViews engine."""
    return RemoteViews(config, **options)


def view_engine(config: Optional[Union[EngineConfiguration, Dict[str, Any]]] = None, **options):
    """Create a RemoteViews engine and return its callback-style render function."""
    return RemoteViews(config, **options).engine
