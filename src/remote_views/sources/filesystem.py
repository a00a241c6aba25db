"""
Filesystem access for local views and partial directories.
"""
import asyncio
import logging
import os
from typing import Iterable, List, Protocol, runtime_checkable

import aiofiles

from ..error.exceptions import ErrorContext, ReadError

logger = logging.getLogger(__name__)


@runtime_checkable
class FileSystem(Protocol):
    """Protocol for reading template files."""
    
    async def read_file(self, path: str) -> str:
        ...
        
    async def list_files(self, directory: str, extensions: Iterable[str]) -> List[str]:
        """
        Recursively list files with one of the given extensions.
        
        Args:
            directory: Root directory
            extensions: Accepted extensions, including the leading dot
            
        Returns:
            Sorted POSIX-style paths relative to the directory
        """
        ...


def _walk(directory: str, extensions: tuple) -> List[str]:
    if not os.path.isdir(directory):
        raise FileNotFoundError(f"No such directory: '{directory}'")
        
    found = []
    for root, _, files in os.walk(directory):
        for file in files:
            if file.endswith(extensions):
                rel_path = os.path.relpath(os.path.join(root, file), directory)
                found.append(rel_path.replace(os.sep, "/"))
    return sorted(found)


class LocalFileSystem:
    """Reads files with aiofiles and scans directories off the event loop."""
    
    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding
        
    async def read_file(self, path: str) -> str:
        logger.debug("Reading template file: %s", path)
        try:
            async with aiofiles.open(path, mode='r', encoding=self.encoding) as f:
                return await f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(
                f"Failed to read {path}: {e}",
                path=path,
                context=ErrorContext("LocalFileSystem", "read_file")
            ) from e
            
    async def list_files(self, directory: str, extensions: Iterable[str]) -> List[str]:
        try:
            files = await asyncio.to_thread(_walk, directory, tuple(extensions))
        except OSError as e:
            raise ReadError(
                f"Failed to scan {directory}: {e}",
                path=directory,
                context=ErrorContext("LocalFileSystem", "list_files")
            ) from e
        logger.debug("Found %d template files in %s", len(files), directory)
        return files
