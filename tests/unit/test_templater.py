"""Unit tests for FormulaTemplater."""

import pytest

from texcache.contexts.templating.templater import (
    FormulaTemplater,
    detect_packages,
    is_block_formula,
)


@pytest.mark.unit
def test_inline_formula_has_baseline_marker():
    source = FormulaTemplater().run(r"x^2")

    assert source.has_baseline is True
    assert r"\begin{lrbox}{\formulabox}$x^2$\end{lrbox}" in source.text
    assert r"\special{dvisvgm:raw <!--start {?x} {?y} -->}" in source.text
    assert source.text.startswith(r"\documentclass")
    assert source.text.rstrip().endswith(r"\end{document}")


@pytest.mark.unit
def test_block_formula_is_placed_as_is():
    formula = r"\begin{align*} a &= b \\ c &= d \end{align*}"
    source = FormulaTemplater().run(formula)

    assert source.has_baseline is False
    assert formula in source.text
    assert "dvisvgm:raw" not in source.text
    assert "$" + formula not in source.text


@pytest.mark.unit
def test_tikz_formula_loads_tikz():
    formula = r"\begin{tikzpicture}\draw (0,0) circle (1);\end{tikzpicture}"
    source = FormulaTemplater().run(formula)

    assert r"\usepackage{tikz}" in source.text
    assert source.has_baseline is False


@pytest.mark.unit
def test_jinja_like_text_in_formula_is_not_evaluated():
    """Template delimiters inside the formula are data, not template code."""
    formula = r"a <<< b >>> c {{ d }}"
    source = FormulaTemplater().run(formula)

    assert formula in source.text


@pytest.mark.unit
def test_detect_packages():
    assert detect_packages(r"\xymatrix{A \ar[r] & B}") == [{"name": "xy", "options": "[all]"}]
    assert detect_packages(r"\ce{H2O}") == [{"name": "mhchem", "options": "[version=4]"}]
    assert detect_packages(r"\mathscr{L} + \textcolor{red}{x}") == [
        {"name": "mathrsfs", "options": ""},
        {"name": "xcolor", "options": ""},
    ]
    assert detect_packages(r"x^2") == []


@pytest.mark.unit
def test_is_block_formula():
    assert is_block_formula(r"\begin{gather}x\end{gather}")
    assert not is_block_formula(r"\begin{pmatrix}1&0\\0&1\end{pmatrix}")


@pytest.mark.unit
def test_piecewise_array_formula_stays_in_math_mode():
    formula = r"f(x)=\left\{\begin{array}{ll}1 & x>0\\0 & x\le 0\end{array}\right."
    source = FormulaTemplater().run(formula)

    assert source.has_baseline is True
    assert "$" + formula + "$" in source.text


@pytest.mark.unit
@pytest.mark.parametrize(
    "formula, expected",
    [
        (r"\begin{array}{cc}1&0\\0&1\end{array}", False),
        (r"x + \begin{tabular}{c}a\end{tabular}", False),
        (r"  \begin{tikzcd}A \arrow[r] & B\end{tikzcd}", True),
        (r"\begin{equation*}E=mc^2\end{equation*}", True),
    ],
)
def test_only_leading_text_mode_environments_are_blocks(formula, expected):
    assert is_block_formula(formula) is expected
