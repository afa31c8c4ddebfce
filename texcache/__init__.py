"""
texcache - formula rendering service with a content-addressable image cache

Turns a LaTeX formula into an SVG or PNG image by driving an external TeX
toolchain, and keeps every result on disk so that a formula is rendered once.

Architecture:
- Templating Context: Expands a bare formula into a complete LaTeX document
- Rendering Context: Validates formulas and runs the latex -> dvisvgm -> png stages
- Caching Context: Sharded on-disk store with separate success/failure roots
- Serving Context: Request parsing, cache lookup, response metadata, persistence
"""

__version__ = "0.1.0"
