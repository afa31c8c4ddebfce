#!/usr/bin/env python3
"""
Formula Rendering CLI

Renders formulas through the cache-backed processor, shows where a formula is
cached, and renders sample files to check a toolchain installation.

Commands:
    render  - Render a formula (or /<ext>/<formula> path) through the cache
    path    - Print the success and failure cache paths for a formula
    samples - Render every sample file in a directory, bypassing the cache

Examples:\n

    texcache_cli.py render 'x^2' --ext svg --out x2.svg

    texcache_cli.py render '/png/%5Cfrac%7B1%7D%7B2%7D' --out half.png

    texcache_cli.py path 'x^2'

    texcache_cli.py samples tests/fixtures/samples outs/samples
"""

from pathlib import Path
from typing import List, Optional

import typer
from typing_extensions import Annotated

from texcache.contexts.caching import Outcome, cache_key
from texcache.contexts.rendering import OutputKind
from texcache.contexts.rendering.samples import render_samples
from texcache.contexts.serving import (
    InvalidRequestError,
    RenderRequest,
    RequestContext,
    parse_uri,
)
from texcache.contexts.serving.factory import build_processor, build_renderer, build_store
from texcache.utils.config import ConfigError, load_settings
from texcache.utils.logger import setup_logger

app = typer.Typer(
    help="Render LaTeX formulas to SVG/PNG with a content-addressable cache",
    add_completion=False,
    invoke_without_command=True,
)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="YAML config file (default: TEXCACHE_CONFIG)"),
]
OverrideOption = Annotated[
    Optional[List[str]],
    typer.Option("--set", "-s", help="Config override, e.g. --set timeout=4"),
]


def _load(config: Optional[Path], overrides: Optional[List[str]], verbose: bool = False):
    try:
        settings = load_settings(config, overrides)
    except ConfigError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    setup_logger(
        context_name="texcache",
        log_dir=settings.log_dir,
        extra_provenance={
            "LaTeX command": " ".join(settings.latex_command),
            "Raster strategy": settings.raster.value,
        },
        console_level="DEBUG" if verbose else "WARNING",
    )
    return settings


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("render")
def render_command(
    formula: Annotated[
        str,
        typer.Argument(help="Formula text, or a request path like /svg/<urlencoded formula>"),
    ],
    ext: Annotated[
        OutputKind,
        typer.Option("--ext", "-e", help="Output format (ignored for request paths)"),
    ] = OutputKind.SVG,
    out: Annotated[
        Optional[Path],
        typer.Option("--out", "-o", help="Write the image here (default: print headers only)"),
    ] = None,
    referrer: Annotated[
        str,
        typer.Option("--referrer", help="Caller recorded in failure diagnostics"),
    ] = "cli",
    config: ConfigOption = None,
    overrides: OverrideOption = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug output (stage commands and output)"),
    ] = False,
):
    """
    Render a formula through the cache.

    A cached image is returned without running LaTeX; a fresh result is
    written to the cache after it has been returned.

    Examples:\n

        $ texcache_cli.py render 'e^{i\\pi}+1=0' --out euler.svg

        $ texcache_cli.py render '/png/x%5E2' --out x2.png
    """
    settings = _load(config, overrides, verbose)

    try:
        if formula.startswith("/"):
            request = parse_uri(formula)
        else:
            request = RenderRequest(formula=formula.strip(), kind=ext)
    except InvalidRequestError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    processor = build_processor(settings)

    def deliver(response):
        if not response.success:
            typer.secho(f"✗ {response.error.message}", fg=typer.colors.RED, bold=True, err=True)
            if verbose and response.error.diagnostics:
                typer.echo(response.error.diagnostics, err=True)
            return

        label = "✓ Rendered (cached)" if response.from_cache else "✓ Rendered"
        typer.secho(label, fg=typer.colors.GREEN, bold=True)
        for name, value in response.headers().items():
            typer.echo(f"  {name}: {value}")
        if out is not None:
            out.write_bytes(response.content)
            typer.echo(f"  Saved: {out}")

    response = processor.handle(request, RequestContext(referrer=referrer), deliver=deliver)
    raise typer.Exit(code=0 if response.success else 1)


@app.command("path")
def path_command(
    formula: Annotated[str, typer.Argument(help="Formula text")],
    config: ConfigOption = None,
    overrides: OverrideOption = None,
):
    """
    Print the cache paths for a formula.

    The success paths are what a static file server should look up before
    passing a request to the renderer.
    """
    settings = _load(config, overrides)
    store = build_store(settings)
    key = cache_key(formula.strip())

    typer.echo(f"Key: {key}")
    for outcome in Outcome:
        for kind in OutputKind:
            path = store.path_for(key, kind, outcome)
            marker = "*" if path.exists() else " "
            typer.echo(f" {marker} {outcome.value:<8} {path}")


@app.command("samples")
def samples_command(
    src_dir: Annotated[
        Path,
        typer.Argument(help="Directory with *.tex formula samples", exists=True, file_okay=False),
    ],
    out_dir: Annotated[
        Path,
        typer.Argument(help="Directory for rendered images (cleared first)"),
    ],
    pattern: Annotated[
        str,
        typer.Option("--pattern", "-p", help="Glob for sample files"),
    ] = "*.tex",
    config: ConfigOption = None,
    overrides: OverrideOption = None,
):
    """
    Render every sample into out_dir and print a timing table.

    Samples bypass the cache, so this always exercises the toolchain.
    """
    settings = _load(config, overrides)
    results = render_samples(build_renderer(settings), src_dir, out_dir, pattern)

    failed = 0
    for result in results:
        status = "ok" if result.error is None else result.error.kind.value
        typer.echo(f"| {result.source.name:<30}| {result.elapsed:<8.4f}| {status}")
        if result.error is not None:
            failed += 1

    typer.echo(f"\n{len(results) - failed}/{len(results)} samples rendered into {out_dir}")
    raise typer.Exit(code=0 if failed == 0 else 1)


if __name__ == "__main__":
    app()
