"""
HTTP transport used to fetch remote templates.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import aiohttp
from pydantic import BaseModel, Field

from ..error.exceptions import ConfigurationError, ErrorContext, FetchError

logger = logging.getLogger(__name__)


class TemplateRequest(BaseModel):
    """Request descriptor for a remote template."""
    url: str = Field(min_length=1, description="Template URL")
    headers: Dict[str, str] = Field(default_factory=dict, description="Request headers")

    @classmethod
    def coerce(cls, value: Any) -> 'TemplateRequest':
        """
        Build a request from a URL string, a mapping or an existing request.

        The result is always a new object so callers' descriptors are never mutated.
        """
        if isinstance(value, TemplateRequest):
            return value.model_copy(deep=True)
        if isinstance(value, str):
            return cls(url=value)
        if isinstance(value, dict):
            try:
                return cls.model_validate(value)
            except ValueError as e:
                raise ConfigurationError(f"Invalid template request: {e}") from e
        raise ConfigurationError(f"Unsupported template request: {value!r}")

    def with_header(self, name: str, value: str) -> 'TemplateRequest':
        headers = {k: v for k, v in self.headers.items() if k.lower() != name.lower()}
        headers[name] = value
        return self.model_copy(update={"headers": headers})


@dataclass
class TransportResponse:
    """Status, headers and body of a fetched resource."""
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""


@runtime_checkable
class Transport(Protocol):
    """Protocol for fetching remote resources."""
    
    async def fetch(self, request: TemplateRequest) -> TransportResponse:
        """
        Fetch a resource.
        
        Args:
            request: Request descriptor
            
        Returns:
            Response with status code, headers and body
        """
        ...


class AiohttpTransport:
    """Transport backed by a lazily created aiohttp client session."""
    
    def __init__(self, timeout: Optional[float] = None, session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize the transport.
        
        Args:
            timeout: Total request timeout in seconds, no timeout when None
            session: Existing session to use; it is not closed by this transport
        """
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None
        
    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session
        
    async def fetch(self, request: TemplateRequest) -> TransportResponse:
        session = self._get_session()
        logger.debug(f"GET {request.url}")
        try:
            async with session.get(request.url, headers=request.headers) as response:
                body = await response.text()
                return TransportResponse(
                    status_code=response.status,
                    headers=dict(response.headers),
                    body=body
                )
        except asyncio.TimeoutError as e:
            raise FetchError(
                f"Timed out fetching {request.url}",
                url=request.url,
                context=ErrorContext("AiohttpTransport", "fetch")
            ) from e
        except aiohttp.ClientError as e:
            raise FetchError(
                f"Failed to fetch {request.url}: {e}",
                url=request.url,
                context=ErrorContext("AiohttpTransport", "fetch")
            ) from e
            
    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
