import pytest

from remote_views.error.exceptions import ConfigurationError, ReadError
from remote_views.templates.partials import normalize_dirs, partial_name

EXTENSIONS = (".handlebars", ".hbs")


def test_partial_name_strips_extension():
    assert partial_name("sidebar.handlebars", EXTENSIONS) == "sidebar"
    assert partial_name("nested/partial.hbs", EXTENSIONS) == "nested/partial"


def test_normalize_dirs_accepts_single_path_or_sequence(fixtures_dir):
    assert normalize_dirs("views/partials") == ["views/partials"]
    assert normalize_dirs(fixtures_dir) == [str(fixtures_dir)]
    assert normalize_dirs(("a", "b")) == ["a", "b"]


@pytest.mark.asyncio
async def test_get_partials_names_nested_files(make_views, fixtures_dir):
    views = make_views()
    partials = await views.get_partials(str(fixtures_dir / "partials"))

    assert sorted(partials) == ["nested/partial", "sidebar"]
    assert partials["sidebar"]({}) == "<aside>sidebar</aside>"
    assert partials["nested/partial"]({"title": "t"}) == "<nav>t</nav>"


@pytest.mark.asyncio
async def test_later_directory_overrides_earlier(make_views, fixtures_dir):
    views = make_views()
    dirs = [str(fixtures_dir / "partials"), str(fixtures_dir / "partials-override")]

    partials = await views.get_partials(dirs)
    assert partials["sidebar"]({}) == "<aside>override</aside>"
    assert "nested/partial" in partials

    reversed_partials = await views.get_partials(list(reversed(dirs)))
    assert reversed_partials["sidebar"]({}) == "<aside>sidebar</aside>"


@pytest.mark.asyncio
async def test_partials_are_cached_by_directory_list(make_views, tmp_path):
    (tmp_path / "one.hbs").write_text("1")
    views = make_views()

    first = await views.get_partials(str(tmp_path))
    (tmp_path / "two.hbs").write_text("2")
    cached = await views.get_partials(str(tmp_path))
    rescanned = await views.get_partials(str(tmp_path), cache=False)

    assert sorted(first) == ["one"]
    assert sorted(cached) == ["one"]
    assert sorted(rescanned) == ["one", "two"]
    assert views.cache_forever.keys() == [str(tmp_path)]


@pytest.mark.asyncio
async def test_configured_extensions_are_used(make_views, tmp_path):
    (tmp_path / "card.j2").write_text("card")
    (tmp_path / "skip.hbs").write_text("skip")
    views = make_views(extensions=["j2"])

    partials = await views.get_partials(str(tmp_path))
    assert list(partials) == ["card"]


@pytest.mark.asyncio
async def test_missing_directory_raises_read_error(make_views, tmp_path):
    views = make_views()
    with pytest.raises(ReadError):
        await views.get_partials(str(tmp_path / "nope"))
    assert len(views.cache_forever) == 0


@pytest.mark.asyncio
async def test_partials_directory_is_required(make_views):
    views = make_views()
    with pytest.raises(ConfigurationError):
        await views.get_partials()
