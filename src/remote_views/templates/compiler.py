"""
Template compiler backed by Jinja2.

Partials are resolved by name when a template is rendered, so a compiled
template can be cached once and rendered later against any partial set.
"""
import logging
from contextvars import ContextVar
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, runtime_checkable

import jinja2
from jinja2 import BaseLoader, Environment, TemplateNotFound

from ..error.exceptions import CompileError, ErrorContext, RenderError

logger = logging.getLogger(__name__)

_active_partials: ContextVar[Mapping[str, Any]] = ContextVar("active_partials", default={})


class CompiledTemplate:
    """A compiled template, callable as ``template(context, settings)``."""

    def __init__(self, template: jinja2.Template, name: Optional[str] = None):
        self.template = template
        self.name = name

    def __call__(self, context: Optional[Mapping[str, Any]] = None, settings: Optional[Mapping[str, Any]] = None) -> str:
        """
        Render the template.

        Args:
            context: Template variables
            settings: Optional ``helpers``, ``partials`` and ``data`` mappings

        Returns:
            Rendered text
        """
        settings = settings or {}
        variables: Dict[str, Any] = dict(settings.get("helpers") or {})
        if settings.get("data") is not None:
            variables["data"] = settings["data"]
        variables.update(context or {})

        token = _active_partials.set(settings.get("partials") or {})
        try:
            return self.template.render(variables)
        except jinja2.TemplateError as e:
            raise RenderError(
                f"Failed to render template {self.name or '<string>'}: {e}",
                context=ErrorContext("CompiledTemplate", "render")
            ) from e
        finally:
            _active_partials.reset(token)

    def __repr__(self) -> str:
        return f"<CompiledTemplate {self.name or '<string>'}>"


class PartialLoader(BaseLoader):
    """Loads includes from the partial set bound to the current render."""

    def load(self, environment: Environment, name: str, globals: Optional[Mapping[str, Any]] = None) -> jinja2.Template:
        partial = _active_partials.get().get(name)
        if partial is None:
            raise TemplateNotFound(name)
        template = getattr(partial, "template", None)
        if not isinstance(template, jinja2.Template):
            raise TemplateNotFound(f"{name} (not a compiled Jinja2 template)")
        return template


@runtime_checkable
class Compiler(Protocol):
    """Protocol for template compilation."""

    def compile(self, source: str, name: Optional[str] = None) -> Callable[..., str]:
        ...


class JinjaCompiler:
    """Compiles template source into CompiledTemplate objects."""

    def __init__(self, filters: Optional[Dict[str, Callable]] = None, **environment_options):
        """
        Initialize the compiler.

        Args:
            filters: Extra Jinja2 filters
            **environment_options: Extra keyword arguments for ``jinja2.Environment``
        """
        options = {
            "extensions": ['jinja2.ext.do', 'jinja2.ext.loopcontrols'],
            "autoescape": False,
        }
        options.update(environment_options)
        # Partial sets change per render, so loaded templates must not be memoized
        options["cache_size"] = 0
        options["loader"] = PartialLoader()
        self.env = Environment(**options)
        if filters:
            self.env.filters.update(filters)

    def compile(self, source: str, name: Optional[str] = None) -> CompiledTemplate:
        """
        Compile template source.

        Args:
            source: Template source text
            name: Optional name used in error messages

        Returns:
            Compiled template
        """
        try:
            template = self.env.from_string(source)
        except jinja2.TemplateSyntaxError as e:
            raise CompileError(
                f"Invalid template {name or '<string>'} at line {e.lineno}: {e.message}",
                context=ErrorContext("JinjaCompiler", "compile")
            ) from e
        logger.debug(f"Compiled template {name or '<string>'}")
        return CompiledTemplate(template, name=name)
