"""Builds a Processor from Settings."""

from texcache.contexts.caching.store import CacheStore
from texcache.contexts.rendering.outcome import OutputKind, RasterStrategy
from texcache.contexts.rendering.png import PngConverter
from texcache.contexts.rendering.renderer import Renderer
from texcache.contexts.serving.processor import Processor
from texcache.contexts.templating.templater import FormulaTemplater
from texcache.utils.config import Settings


def build_renderer(settings: Settings) -> Renderer:
    png_converter = None
    if settings.raster is RasterStrategy.NATIVE:
        png_converter = PngConverter(scale=settings.raster_scale)

    return Renderer(
        templater=FormulaTemplater(),
        tmp_dir=settings.tmp_dir,
        latex_command=settings.latex_command,
        svg_command=settings.svg_command,
        raster=settings.raster,
        png_command=settings.png_command,
        png_converter=png_converter,
        timeout=settings.timeout,
        conversion_timeout=settings.conversion_timeout,
    )


def build_store(settings: Settings) -> CacheStore:
    return CacheStore(
        success_dir=settings.success_dir,
        failure_dir=settings.failure_dir,
        optimizers={
            OutputKind.SVG: settings.svg_optimizers,
            OutputKind.PNG: settings.png_optimizers,
        },
        optimizer_timeout=settings.optimizer_timeout,
    )


def build_processor(settings: Settings) -> Processor:
    """Wire templater, renderer and cache store according to settings."""
    return Processor(renderer=build_renderer(settings), store=build_store(settings))
