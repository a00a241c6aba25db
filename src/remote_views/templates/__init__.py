"""
Template loading, partial resolution and render composition.
"""
from .compiler import CompiledTemplate, Compiler, JinjaCompiler
from .loader import ResourceLoader, TEMPLATE_MEDIA_TYPE
from .partials import DEFAULT_EXTENSIONS, PartialSetResolver, partial_name
from .pipeline import RenderPipeline

__all__ = [
    'CompiledTemplate',
    'Compiler',
    'JinjaCompiler',
    'ResourceLoader',
    'TEMPLATE_MEDIA_TYPE',
    'DEFAULT_EXTENSIONS',
    'PartialSetResolver',
    'partial_name',
    'RenderPipeline',
]
