"""
Templating Context

Responsibilities:
- Expands a bare formula into a complete LaTeX document
- Loads the packages a formula needs (tikz, xy, mhchem, ...)
- Decides whether the document carries a baseline marker

Owns: LaTeX document template
Never: Validates formulas or runs the toolchain
"""

from texcache.contexts.templating.templater import FormulaSource, FormulaTemplater

__all__ = ["FormulaSource", "FormulaTemplater"]
