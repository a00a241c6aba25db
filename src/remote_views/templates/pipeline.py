"""
Render pipeline: resolves view, layout and partials concurrently, then composes them.
"""
import asyncio
import functools
import logging
from typing import Any, Dict, Mapping, Optional

from .loader import ResourceLoader
from .partials import PartialSetResolver, PartialsDir

logger = logging.getLogger(__name__)


class RenderPipeline:
    """
    Fans out view, layout and partials resolution and joins the results.

    The first failing branch fails the render. Branches still in flight
    are not cancelled; their results are ignored.
    """

    def __init__(self, loader: ResourceLoader, partials: PartialSetResolver):
        self.loader = loader
        self.partials = partials

    async def render(
        self,
        view: Any,
        context: Optional[Mapping[str, Any]] = None,
        *,
        layout: Any = False,
        placeholder: str = "content",
        helpers: Optional[Mapping[str, Any]] = None,
        partials_dir: Optional[PartialsDir] = None,
        cache: bool = True,
        data: Optional[Mapping[str, Any]] = None
    ) -> str:
        """
        Render a view, optionally wrapped in a layout.

        Args:
            view: Local view path or compiled template
            context: Template variables; never mutated
            layout: Layout URL, request mapping or compiled template; falsy for none
            placeholder: Context key that receives the view output when a layout is used
            helpers: Template helpers
            partials_dir: Partials directory or ordered directories; falsy for none
            cache: Whether template caches are consulted
            data: Extra render data

        Returns:
            Rendered text
        """
        branches = {"view": self.loader.get_view(view, cache=cache)}
        if layout:
            branches["layout"] = self.loader.get_layout(layout, cache=cache)
        if partials_dir:
            branches["partials"] = self.partials.get_partials(partials_dir, cache=cache)

        results = await self._join(branches)

        settings = {
            "helpers": helpers or {},
            "partials": results.get("partials") or {},
            "data": data,
        }
        return self.compose(results["view"], results.get("layout"), context, placeholder, settings)

    @staticmethod
    def compose(view, layout, context: Optional[Mapping[str, Any]], placeholder: str, settings: Mapping[str, Any]) -> str:
        """
        Render the view and, when given, inject its output into the layout.

        Composition runs on a copy of the context.
        """
        render_context = dict(context or {})
        rendered = view(render_context, settings)
        if layout is not None:
            render_context[placeholder] = rendered
            rendered = layout(render_context, settings)
        return rendered

    async def _join(self, branches: Dict[str, Any]) -> Dict[str, Any]:
        tasks = {name: asyncio.ensure_future(coro) for name, coro in branches.items()}
        for name, task in tasks.items():
            task.add_done_callback(functools.partial(_observe_branch, name))
        # gather raises the first failure and leaves the other tasks running
        values = await asyncio.gather(*tasks.values())
        return dict(zip(tasks.keys(), values))


def _observe_branch(name: str, task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Render branch '{name}' failed: {error}")
