"""
SVG post-processing for baseline alignment.

When the formula is inline math, the LaTeX template places a dvisvgm raw
special right before the formula box:

    \\special{dvisvgm:raw <!--start {?x} {?y} -->}

dvisvgm expands it into a comment holding the current position, whose y
coordinate is the baseline. The depth below the baseline is the distance
from that point to the bottom of the viewBox, and is written onto the root
element as a negative vertical-align so the image sits on the text line.
"""

import re

START_MARKER = re.compile(r"<!--start (-?[\d.]+) (-?[\d.]+) -->")
VIEWBOX = re.compile(r"viewBox=['\"](-?[\d.]+) (-?[\d.]+) (-?[\d.]+) (-?[\d.]+)['\"]")
SVG_OPEN_TAG = re.compile(r"<svg\b")


def baseline_depth(svg: str) -> float:
    """
    Distance from the baseline marker to the bottom of the viewBox, in pt.

    Returns 0.0 when either the marker or the viewBox is missing.
    """
    marker = START_MARKER.search(svg)
    viewbox = VIEWBOX.search(svg)
    if marker is None or viewbox is None:
        return 0.0

    baseline_y = float(marker.group(2))
    min_y, height = float(viewbox.group(2)), float(viewbox.group(4))
    return max(0.0, round(min_y + height - baseline_y, 3))


def process_svg_content(svg: str, has_baseline: bool) -> str:
    """
    Normalize raw dvisvgm output.

    Args:
        svg: SVG text written by dvisvgm
        has_baseline: Whether the source was typeset with a baseline marker

    Returns:
        SVG text with the marker removed and, for inline formulas, a
        vertical-align style on the root element
    """
    if has_baseline:
        depth = baseline_depth(svg)
        style = f"vertical-align:-{depth:g}pt" if depth else "vertical-align:0pt"
        svg = SVG_OPEN_TAG.sub(f'<svg style="{style}"', svg, count=1)

    return START_MARKER.sub("", svg)
