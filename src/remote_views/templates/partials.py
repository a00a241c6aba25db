"""
Resolves partial directories into a name to compiled template mapping.
"""
import asyncio
import logging
import os
from typing import Dict, Iterable, List, Sequence, Union

from ..cache.store import TemplateCache
from ..error.exceptions import ConfigurationError, ErrorContext
from ..sources.filesystem import FileSystem
from .loader import ResourceLoader

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".handlebars", ".hbs")

PartialsDir = Union[str, os.PathLike, Sequence[Union[str, os.PathLike]]]


def normalize_dirs(partials_dir: PartialsDir) -> List[str]:
    """Turn a single directory or an ordered sequence of directories into a list of strings."""
    if isinstance(partials_dir, (str, os.PathLike)):
        return [os.fspath(partials_dir)]
    return [os.fspath(d) for d in partials_dir]


def partial_name(rel_path: str, extensions: Iterable[str]) -> str:
    """
    Derive a partial name from a path relative to its partials root.

    ``nested/partial.hbs`` becomes ``nested/partial``.
    """
    for extension in extensions:
        if rel_path.endswith(extension):
            return rel_path[:-len(extension)]
    return rel_path


class PartialSetResolver:
    """Scans, compiles and merges partial directories."""

    def __init__(
        self,
        loader: ResourceLoader,
        filesystem: FileSystem,
        forever_cache: TemplateCache,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS
    ):
        self.loader = loader
        self.filesystem = filesystem
        self.forever_cache = forever_cache
        self.extensions = tuple(extensions)

    async def get_partials(self, partials_dir: PartialsDir, cache: bool = True) -> Dict[str, object]:
        """
        Resolve one or more partial directories.

        Later directories override earlier ones when names collide.

        Args:
            partials_dir: Directory or ordered sequence of directories
            cache: Whether to read through the forever cache

        Returns:
            Mapping of partial name to compiled template
        """
        if not partials_dir:
            raise ConfigurationError(
                "A partials directory is required",
                context=ErrorContext("PartialSetResolver", "get_partials")
            )
        dirs = normalize_dirs(partials_dir)

        if not cache:
            return await self.find_templates(dirs)

        async def load(key: str):
            return await self.find_templates(dirs), None

        partials = await self.forever_cache.read_through("".join(dirs), load)
        return dict(partials)

    async def find_templates(self, dirs: List[str]) -> Dict[str, object]:
        """Scan and compile every directory, merging results in directory order."""
        results = await asyncio.gather(*(self._scan_directory(d) for d in dirs))

        templates: Dict[str, object] = {}
        for found in results:
            templates.update(found)
        logger.debug(f"Resolved {len(templates)} partials from {len(dirs)} directories")
        return templates

    async def _scan_directory(self, directory: str) -> Dict[str, object]:
        files = await self.filesystem.list_files(directory, self.extensions)
        root = os.path.abspath(directory)
        compiled = await asyncio.gather(
            *(self.loader.read_template(os.path.join(root, *f.split("/"))) for f in files)
        )
        return {partial_name(f, self.extensions): template for f, template in zip(files, compiled)}
