"""
Formula validation.

Rejects formulas containing TeX primitives that would let untrusted input
write files, read arbitrary files, load packages, or emit driver specials.
This is a denylist and runs before anything is written or spawned; it is
not a substitute for running the toolchain in an OS-level sandbox.
"""

from typing import Optional

from texcache.contexts.rendering.logger import log_forbidden_formula
from texcache.contexts.rendering.outcome import ErrorKind, RenderError

# Matched as plain substrings, so "\write" also covers "\write18"
# and "\include" covers "\includegraphics".
FORBIDDEN_COMMANDS = (
    "\\write",
    "\\immediate",
    "\\openout",
    "\\openin",
    "\\read",
    "\\input",
    "\\include",
    "\\usepackage",
    "\\RequirePackage",
    "\\special",
    "\\catcode",
    "\\csname",
    "\\directlua",
    "\\InputIfFileExists",
    "\\IfFileExists",
    "\\makeatletter",
    "\\makeatother",
    "\\@",  # kernel-internal aliases such as \@@input and \@input
    "^^",  # character-code escapes can spell any of the above
)


def find_forbidden_command(formula: str) -> Optional[str]:
    """Return the first forbidden command found in the formula, if any."""
    for command in FORBIDDEN_COMMANDS:
        if command in formula:
            return command
    return None


def validate_formula(formula: str) -> Optional[RenderError]:
    """
    Check a formula against the denylist.

    Args:
        formula: Raw formula text from the caller

    Returns:
        None if the formula may be rendered, otherwise a SECURITY RenderError

    Example:
        >>> validate_formula(r"x^2") is None
        True
        >>> validate_formula(r"\\write18{rm -rf /}").kind
        <ErrorKind.SECURITY: 'security'>
    """
    command = find_forbidden_command(formula)
    if command is None:
        return None

    log_forbidden_formula(command, formula)
    return RenderError(
        kind=ErrorKind.SECURITY,
        message="Forbidden commands.",
        diagnostics=f"Forbidden command: {command}",
    )
