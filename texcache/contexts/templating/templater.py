"""
Formula templating.

Expands a bare formula into a complete LaTeX document. Inline math gets a
baseline marker so the SVG can be aligned with surrounding text; formulas
that open with their own text-mode environment (tikzpicture, align, ...)
are placed in the document body as they are.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template

TEMPLATE_PATH = Path(__file__).resolve().parent / "template"
TEMPLATE_NAME = "formula.tex.jinja"

# Text-mode environments; a formula opening with one of these is not wrapped in $...$
BLOCK_ENVIRONMENTS = (
    "tikzpicture",
    "tikzcd",
    "align",
    "align*",
    "gather",
    "gather*",
    "multline",
    "multline*",
    "flalign",
    "flalign*",
    "equation",
    "equation*",
    "eqnarray",
    "eqnarray*",
    "displaymath",
    "tabular",
)

# Packages loaded on demand: pattern found in formula -> (name, options)
PACKAGE_TRIGGERS = (
    (re.compile(r"\\begin\{tikzpicture\}"), ("tikz", "")),
    (re.compile(r"\\begin\{tikzcd\}"), ("tikz-cd", "")),
    (re.compile(r"\\xymatrix"), ("xy", "[all]")),
    (re.compile(r"\\begin\{CD\}"), ("amscd", "")),
    (re.compile(r"\\mathscr\b"), ("mathrsfs", "")),
    (re.compile(r"\\(?:textcolor|colorbox|definecolor)\b"), ("xcolor", "")),
    (re.compile(r"\\(?:ce|pu)\{"), ("mhchem", "[version=4]")),
)

BLOCK_ENVIRONMENT = re.compile(
    r"^\s*\\begin\{(" + "|".join(re.escape(env) for env in BLOCK_ENVIRONMENTS) + r")\}"
)


@dataclass(frozen=True)
class FormulaSource:
    """
    Complete LaTeX source for one formula.

    Attributes:
        text: Document text handed to the latex stage
        has_baseline: Whether the document carries a baseline marker
    """

    text: str
    has_baseline: bool


class FormulaTemplater:
    """
    Renders formulas into the LaTeX document template.

    The template uses custom Jinja2 delimiters to avoid conflicts with LaTeX:
    - Variable: <<< var >>>
    - Block: <%% block %%>
    - Comment: <# comment #>
    """

    def __init__(self, template_path: Path = None, template_name: str = TEMPLATE_NAME):
        if template_path is None:
            template_path = TEMPLATE_PATH

        self.template_path = template_path
        self.template_name = template_name

        self.env = Environment(
            loader=FileSystemLoader(str(template_path)),
            # Catches silent failures
            undefined=StrictUndefined,
            # Custom delimiters to avoid LaTeX brace conflicts
            variable_start_string="<<<",
            variable_end_string=">>>",
            block_start_string="<%%",
            block_end_string="%%>",
            comment_start_string="<#",
            comment_end_string="#>",
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )
        self._template: Template = None

    @property
    def template(self) -> Template:
        if self._template is None:
            self._template = self.env.get_template(self.template_name)
        return self._template

    def run(self, formula: str) -> FormulaSource:
        """
        Expand a formula into LaTeX source.

        Args:
            formula: Validated formula text

        Returns:
            FormulaSource with the document text and baseline flag
        """
        has_baseline = not is_block_formula(formula)
        text = self.template.render(
            formula=formula,
            has_baseline=has_baseline,
            packages=detect_packages(formula),
        )
        return FormulaSource(text=text, has_baseline=has_baseline)


def is_block_formula(formula: str) -> bool:
    """
    True if the formula starts with a text-mode environment.

    Math-mode environments (array, pmatrix, cases, ...) and environments that
    appear later in the formula stay inside $...$.
    """
    return BLOCK_ENVIRONMENT.match(formula) is not None


def detect_packages(formula: str) -> List[Dict[str, str]]:
    """
    Packages the formula needs, in declaration order, without duplicates.

    Example:
        >>> detect_packages(r"\\begin{tikzpicture}\\draw (0,0) -- (1,1);\\end{tikzpicture}")
        [{'name': 'tikz', 'options': ''}]
    """
    packages = []
    seen = set()
    for pattern, (name, options) in PACKAGE_TRIGGERS:
        if name not in seen and pattern.search(formula):
            seen.add(name)
            packages.append({"name": name, "options": options})
    return packages
