"""Pytest configuration and fixtures."""
import asyncio
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from remote_views.engine import RemoteViews
from remote_views.sources.transport import TemplateRequest, TransportResponse

FIXTURES = Path(__file__).parent / "fixtures" / "views"
LAYOUT_SOURCE = (FIXTURES / "layouts" / "default.handlebars").read_text()
BARE_LAYOUT_SOURCE = (FIXTURES / "layouts" / "bare.handlebars").read_text()


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport:
    """In-memory transport serving canned responses and recording requests."""

    def __init__(self):
        self.routes: Dict[str, TransportResponse] = {}
        self.errors: Dict[str, Exception] = {}
        self.requests: List[TemplateRequest] = []
        self.gate: Optional[asyncio.Event] = None

    def add(self, url: str, body: str = "", status_code: int = 200, headers: Optional[Dict[str, str]] = None) -> None:
        self.routes[url] = TransportResponse(status_code=status_code, headers=headers or {}, body=body)

    def fail(self, url: str, error: Exception) -> None:
        self.errors[url] = error

    def calls(self, url: str) -> int:
        return sum(1 for request in self.requests if request.url == url)

    async def fetch(self, request: TemplateRequest) -> TransportResponse:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)
        if request.url in self.errors:
            raise self.errors[request.url]
        if request.url not in self.routes:
            return TransportResponse(status_code=404)
        return self.routes[request.url]


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    """Transport with the layouts used across the test suite."""
    transport = FakeTransport()
    transport.add("http://mocked/layouts/default", LAYOUT_SOURCE)
    transport.add(
        "http://mocked/layouts/cached",
        LAYOUT_SOURCE,
        headers={"Cache-Control": "max-age=1, stale-while-revalidate=1"}
    )
    transport.add(
        "http://mocked/layouts/uncached",
        LAYOUT_SOURCE,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"}
    )
    transport.add("http://mocked/layouts/bare", BARE_LAYOUT_SOURCE)
    transport.add("http://mocked/layouts/error", status_code=404)
    return transport


@pytest.fixture
def make_views(transport, clock):
    """Factory building engines wired to the fake transport and clock."""
    def factory(**options) -> RemoteViews:
        return RemoteViews(transport=transport, clock=clock, **options)
    return factory
