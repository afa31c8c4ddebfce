"""In-process SVG -> PNG conversion using cairosvg."""

from pathlib import Path


class PngConverter:
    """
    Rasterizes SVG files without spawning a process.

    Used by RasterStrategy.NATIVE; the input is the processed SVG, so the
    PNG has exactly the same bounding box as the vector output.
    """

    def __init__(self, scale: float = 1.0, dpi: int = 96):
        self.scale = scale
        self.dpi = dpi

    def convert(self, svg_path: Path) -> bytes:
        # cairosvg loads the system cairo library on import, so only
        # deployments using this strategy need it
        import cairosvg

        return cairosvg.svg2png(url=str(svg_path), scale=self.scale, dpi=self.dpi)
