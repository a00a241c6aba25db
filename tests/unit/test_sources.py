import pytest

from remote_views.error.exceptions import ConfigurationError, ReadError
from remote_views.sources.filesystem import LocalFileSystem
from remote_views.sources.transport import AiohttpTransport, TemplateRequest


def test_template_request_coercion():
    request = TemplateRequest.coerce("http://mocked/layouts/default")
    assert request.url == "http://mocked/layouts/default"
    assert request.headers == {}

    original = {"url": "http://mocked/a", "headers": {"accept": "text/html"}}
    request = TemplateRequest.coerce(original).with_header("Accept", "text/x-handlebars-template")
    assert request.headers == {"Accept": "text/x-handlebars-template"}
    assert original["headers"] == {"accept": "text/html"}


def test_template_request_rejects_invalid_values():
    with pytest.raises(ConfigurationError):
        TemplateRequest.coerce({"headers": {}})
    with pytest.raises(ConfigurationError):
        TemplateRequest.coerce(42)


@pytest.mark.asyncio
async def test_local_filesystem_reads_and_lists(tmp_path):
    (tmp_path / "a.hbs").write_text("A")
    (tmp_path / "deep" / "er").mkdir(parents=True)
    (tmp_path / "deep" / "er" / "b.handlebars").write_text("B")
    (tmp_path / "skip.txt").write_text("skip")
    filesystem = LocalFileSystem()

    files = await filesystem.list_files(str(tmp_path), (".hbs", ".handlebars"))
    assert files == ["a.hbs", "deep/er/b.handlebars"]
    assert await filesystem.read_file(str(tmp_path / "a.hbs")) == "A"


@pytest.mark.asyncio
async def test_local_filesystem_errors(tmp_path):
    filesystem = LocalFileSystem()
    with pytest.raises(ReadError) as excinfo:
        await filesystem.read_file(str(tmp_path / "missing.hbs"))
    assert excinfo.value.path == str(tmp_path / "missing.hbs")

    with pytest.raises(ReadError):
        await filesystem.list_files(str(tmp_path / "missing"), (".hbs",))


@pytest.mark.asyncio
async def test_aiohttp_transport_close_without_session():
    transport = AiohttpTransport(timeout=5)
    await transport.close()
