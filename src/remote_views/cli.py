import json
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .cache.freshness import FreshnessPolicy, parse_cache_control
from .config.loader import load_config
from .engine import RemoteViews
from .error.exceptions import ConfigurationError, RemoteViewsError
from .logging.config import LogConfig

# Initialize Typer app
app = typer.Typer(help="Remote Views CLI")

# Initialize Rich console
console = Console()


def _load_context(value: Optional[str]) -> Dict[str, Any]:
    """Parse a render context given as inline JSON or a JSON/YAML file path."""
    if not value:
        return {}
    path = Path(value)
    try:
        if path.suffix in (".yaml", ".yml") and path.exists():
            context = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        elif path.suffix == ".json" and path.exists():
            context = json.loads(path.read_text(encoding="utf-8"))
        else:
            context = json.loads(value)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Invalid render context: {e}") from e
    if not isinstance(context, dict):
        raise ConfigurationError("Render context must be a mapping")
    return context


@app.command("render")
def render(
    view: Path = typer.Argument(..., help="Path to the view template"),
    layout: Optional[str] = typer.Option(None, "--layout", "-l", help="Layout URL"),
    partials_dir: List[str] = typer.Option([], "--partials-dir", "-p", help="Partials directory (repeatable, later wins)"),
    placeholder: Optional[str] = typer.Option(None, "--placeholder", help="Context key receiving the view output"),
    context: Optional[str] = typer.Option(None, "--context", help="Render context as JSON or a JSON/YAML file"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass template caches"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result to a file")
):
    """Render a view, optionally wrapped in a remote layout."""
    async def _render() -> str:
        config = load_config(str(config_path) if config_path else None)
        LogConfig.from_configuration(config).configure()

        options: Dict[str, Any] = {"cache": not no_cache}
        if layout is not None:
            options["layout"] = layout
        if partials_dir:
            options["partials_dir"] = partials_dir
        if placeholder:
            options["placeholder"] = placeholder

        async with RemoteViews(config) as views:
            return await views.render(view, _load_context(context), **options)

    try:
        rendered = asyncio.run(_render())
    except RemoteViewsError as e:
        console.print(f"[bold red]Error rendering {escape(str(view))}: {escape(str(e))}[/bold red]")
        raise typer.Exit(code=1)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered, encoding="utf-8")
        console.print(f"[bold green]Rendered output written to {output}[/bold green]")
    else:
        typer.echo(rendered)


@app.command("partials")
def partials(
    dirs: List[str] = typer.Argument(..., help="Partials directories in override order")
):
    """List the partials resolved from one or more directories."""
    async def _resolve() -> Dict[str, str]:
        async with RemoteViews(partials_dir=dirs) as views:
            sources: Dict[str, str] = {}
            for directory in dirs:
                found = await views.get_partials([directory], cache=False)
                for name in found:
                    sources[name] = directory
            return sources

    try:
        sources = asyncio.run(_resolve())
    except RemoteViewsError as e:
        console.print(f"[bold red]Error resolving partials: {escape(str(e))}[/bold red]")
        raise typer.Exit(code=1)

    table = Table(title="Partials")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Directory")
    for name in sorted(sources):
        table.add_row(name, sources[name])
    console.print(table)


@app.command("cache-control")
def cache_control(
    header: str = typer.Argument(..., help="Cache-Control header value"),
    max_age: float = typer.Option(60, "--max-age", help="Default max-age in seconds"),
    stale_while_revalidate: float = typer.Option(0, "--stale-while-revalidate", help="Default stale window in seconds")
):
    """Show how a Cache-Control header combines with the configured defaults."""
    directives = parse_cache_control(header)
    freshness = FreshnessPolicy(max_age, stale_while_revalidate).resolve(directives)

    table = Table(title="Cache-Control")
    table.add_column("Directive", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("max-age", str(directives.max_age))
    table.add_row("stale-while-revalidate", str(directives.stale_while_revalidate))
    table.add_row("no-store", str(directives.no_store))
    table.add_row("no-cache", str(directives.no_cache))
    table.add_row("must-revalidate", str(directives.must_revalidate))
    console.print(table)

    if freshness is None:
        console.print("[bold yellow]Not cached: every request fetches the template again[/bold yellow]")
    else:
        console.print(
            f"[bold green]Fresh for {freshness.max_age:g}s, "
            f"then usable while revalidating for {freshness.stale_while_revalidate:g}s[/bold green]"
        )


if __name__ == "__main__":
    app()
