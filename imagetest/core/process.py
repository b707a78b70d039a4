"""
External process invocation.

Every call to the build tool and the container engine goes through
run_command(), so all of them are traced the same way and a missing
executable surfaces as ToolNotFoundError.
"""

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from imagetest.core.exceptions import CommandError, ToolNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result of one external command."""

    args: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Standard output followed by standard error."""
        return self.stdout + self.stderr

    def check(self) -> "CommandResult":
        """Raise CommandError if the command failed."""
        if not self.success:
            raise CommandError(self.args, self.returncode, self.output)
        return self


def run_command(
    args: Sequence[Union[str, Path]],
    combine_output: bool = False,
    cwd: Optional[Path] = None,
) -> CommandResult:
    """
    Run an external command and wait for it to finish.

    Args:
        args: Command and arguments
        combine_output: Interleave stderr into stdout (as a terminal would)
        cwd: Working directory for the command

    Returns:
        CommandResult; a nonzero exit code is not an error here

    Raises:
        ToolNotFoundError: If the executable is not on PATH
    """
    args = [str(arg) for arg in args]
    logger.debug(f"+ {shlex.join(args)}")

    try:
        result = subprocess.run(
            args,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if combine_output else subprocess.PIPE,
            text=True,
            errors="replace",
        )
    except FileNotFoundError:
        raise ToolNotFoundError(args[0])

    stdout = result.stdout or ""
    stderr = result.stderr or ""
    if result.returncode != 0:
        logger.debug(f"  exit code {result.returncode}")

    return CommandResult(
        args=args, returncode=result.returncode, stdout=stdout, stderr=stderr
    )
