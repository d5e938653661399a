"""
CLI for inspecting and maintaining an asset cache directory.

Commands:
    assetcache put KEY FILE - Cache a local file under KEY
    assetcache get KEY - Write the cached bytes for KEY to a file or stdout
    assetcache asset KEY - Decode the cached file for KEY and describe it
    assetcache sweep - Remove expired entries
    assetcache clear - Remove every entry
    assetcache stats - Show entry and disk usage counts
    assetcache config - Show current configuration
    assetcache version - Print version
"""

from __future__ import annotations

import asyncio
import sys
from datetime import timedelta
from pathlib import Path
from typing import Annotated, Any, Awaitable, Callable, Optional, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from assetcache import __version__
from assetcache.cache.engine import CacheEngine
from assetcache.config import Settings, clear_settings_cache, get_settings
from assetcache.logging import setup_logging
from assetcache.types import CacheStatus, DecodedAsset

app = typer.Typer(
    name="assetcache",
    help="Disk-backed asset cache with time-based expiration",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

T = TypeVar("T")

CacheDirOption = Annotated[
    Optional[Path],
    typer.Option("--cache-dir", "-d", help="Cache root directory (defaults to CACHE_DIR)"),
]


def _load_settings() -> Settings:
    try:
        clear_settings_cache()
        settings = get_settings()
    except ValidationError as e:
        error_console.print(f"[red]Error:[/red] Configuration is invalid.\n{e}")
        raise typer.Exit(1) from e
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    return settings


def _run(
    settings: Settings,
    cache_dir: Path | None,
    action: Callable[[CacheEngine], Awaitable[T]],
) -> T:
    """Open the cache, run one action against it and close it."""
    root = cache_dir or settings.CACHE_DIR

    async def runner() -> T:
        async with CacheEngine(
            root, default_content_type=settings.DEFAULT_CONTENT_TYPE
        ) as cache:
            return await action(cache)

    return asyncio.run(runner())


@app.command()
def put(
    key: Annotated[str, typer.Argument(help="Logical key, usually the source URL")],
    file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, readable=True, help="File to cache"),
    ],
    ttl: Annotated[
        Optional[int],
        typer.Option("--ttl", "-t", min=0, help="Time-to-live in seconds"),
    ] = None,
    cache_dir: CacheDirOption = None,
) -> None:
    """Cache the contents of FILE under KEY."""
    settings = _load_settings()
    data = file.read_bytes()
    expires_in = timedelta(seconds=ttl) if ttl is not None else settings.default_ttl

    result = _run(settings, cache_dir, lambda cache: cache.save(key, data, expires_in))
    if result.status is not CacheStatus.SUCCESS:
        error_console.print(f"[red]Error:[/red] {result.message}")
        raise typer.Exit(1)

    console.print(
        f"[green]Cached[/green] {len(data)} bytes for {key} "
        f"(ttl {int(expires_in.total_seconds())}s)"
    )


@app.command()
def get(
    key: Annotated[str, typer.Argument(help="Logical key, usually the source URL")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write to this file instead of stdout"),
    ] = None,
    cache_dir: CacheDirOption = None,
) -> None:
    """Write the cached bytes for KEY.

    Exits with 1 when the entry is missing and 2 when it has expired.
    """
    settings = _load_settings()

    result = _run(settings, cache_dir, lambda cache: cache.load(key))
    if result.error.status is CacheStatus.EXPIRED:
        error_console.print(f"[yellow]{result.error.message}[/yellow]")
        raise typer.Exit(2)
    if result.error.status is not CacheStatus.SUCCESS or result.data is None:
        error_console.print(f"[red]Error:[/red] {result.error.message}")
        raise typer.Exit(1)

    if output is None:
        sys.stdout.buffer.write(result.data)
        sys.stdout.buffer.flush()
    else:
        output.write_bytes(result.data)
        console.print(f"Wrote {len(result.data)} bytes to {output}")


@app.command()
def asset(
    key: Annotated[str, typer.Argument(help="Logical key, usually the source URL")],
    content_type: Annotated[
        Optional[str],
        typer.Option(
            "--content-type", "-c", help="Decoder hint (defaults to DEFAULT_CONTENT_TYPE)"
        ),
    ] = None,
    cache_dir: CacheDirOption = None,
) -> None:
    """Decode the cached file for KEY and describe the result.

    Exits with 1 when the entry is missing or cannot be decoded and 2 when it
    has expired.
    """
    settings = _load_settings()

    result = _run(
        settings, cache_dir, lambda cache: cache.download_asset(key, content_type)
    )
    if result.error.status is CacheStatus.EXPIRED:
        error_console.print(f"[yellow]{result.error.message}[/yellow]")
        raise typer.Exit(2)
    if result.error.status is not CacheStatus.SUCCESS:
        error_console.print(f"[red]Error:[/red] {result.error.message}")
        raise typer.Exit(1)

    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    if isinstance(result.asset, DecodedAsset):
        table.add_row("content type", result.asset.content_type)
        table.add_row("size", str(len(result.asset.data)))
        table.add_row("path", str(result.asset.path))
    else:
        table.add_row("asset", repr(result.asset))
    console.print(table)


@app.command()
def sweep(cache_dir: CacheDirOption = None) -> None:
    """Remove entries whose expiration has passed."""
    settings = _load_settings()

    swept = _run(settings, cache_dir, lambda cache: cache.delete_expired())
    console.print(f"Removed {swept} expired entr{'y' if swept == 1 else 'ies'}")


@app.command()
def clear(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation"),
    ] = False,
    cache_dir: CacheDirOption = None,
) -> None:
    """Remove every entry and every cached file."""
    settings = _load_settings()
    root = cache_dir or settings.CACHE_DIR

    if not yes:
        typer.confirm(f"Remove everything cached under {root}?", abort=True)

    _run(settings, cache_dir, lambda cache: cache.delete_all())
    console.print("[green]Cache cleared[/green]")


@app.command()
def stats(cache_dir: CacheDirOption = None) -> None:
    """Show entry counts and disk usage."""
    settings = _load_settings()
    root = cache_dir or settings.CACHE_DIR

    summary = _run(settings, cache_dir, lambda cache: cache.stats())

    table = Table(title=f"Cache {root}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for name, value in summary.to_dict().items():
        table.add_row(name.replace("_", " "), str(value))
    console.print(table)


@app.command()
def config() -> None:
    """Show current configuration."""
    settings = _load_settings()

    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    values: dict[str, Any] = settings.display()
    for key, value in values.items():
        table.add_row(key, "[dim]not set[/dim]" if value is None else str(value))

    console.print(table)


@app.command()
def version() -> None:
    """Print the version number."""
    console.print(f"assetcache version {__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
