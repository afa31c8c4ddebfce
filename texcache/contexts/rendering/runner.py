"""
External stage runner.

Runs one pipeline stage as a child process with an argument list (never a
shell string) and a wall-clock bound, capturing exit status and output.
"""

import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

# Exit code reported when the executable could not be started
EXIT_NOT_STARTED = 127


@dataclass
class StageResult:
    """
    Result of one external stage.

    Attributes:
        args: Argument list that was executed
        exit_code: Process exit status (None if killed by the timeout)
        stdout: Captured standard output
        stderr: Captured standard error
        timed_out: Whether the process was terminated by the timeout
        elapsed: Wall-clock time in seconds
    """

    args: List[str]
    exit_code: Optional[int]
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.timed_out and self.exit_code == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr for diagnostics."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


def format_command(template: Sequence[str], **values) -> List[str]:
    """
    Fill placeholders in a command template.

    Values are substituted per argument, so a value containing spaces or
    shell metacharacters stays a single argument.

    Example:
        >>> format_command(["dvisvgm", "--output={path}.svg", "{path}.dvi"], path="/tmp/w/f")
        ['dvisvgm', '--output=/tmp/w/f.svg', '/tmp/w/f.dvi']
    """
    return [arg.format(**values) for arg in template]


def _decode(output) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


def run_stage(args: Sequence[str], timeout: float, cwd: Optional[Path] = None) -> StageResult:
    """
    Run an external command with a bounded timeout.

    On timeout the child is killed and whatever output it produced is kept.

    Args:
        args: Command and arguments
        timeout: Wall-clock bound in seconds
        cwd: Working directory for the child

    Returns:
        StageResult
    """
    args = [str(arg) for arg in args]
    start_time = time.monotonic()

    try:
        result = subprocess.run(
            args,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        return StageResult(
            args=args,
            exit_code=None,
            stdout=_decode(e.stdout),
            stderr=_decode(e.stderr),
            timed_out=True,
            elapsed=time.monotonic() - start_time,
        )
    except OSError as e:
        # Missing executable or permission problem
        return StageResult(
            args=args,
            exit_code=EXIT_NOT_STARTED,
            stderr=f"Cannot run {args[0]}: {e}",
            elapsed=time.monotonic() - start_time,
        )

    return StageResult(
        args=args,
        exit_code=result.returncode,
        stdout=_decode(result.stdout),
        stderr=_decode(result.stderr),
        elapsed=time.monotonic() - start_time,
    )
