"""Subprocess execution with Result-based error handling.

``run`` captures output; ``run_streaming`` lets the child write to the
terminal; ``run_unless_dry`` echoes instead of executing during a dry run.

Usage:
    result = run(["git", "describe", "--tags", "--abbrev=0"], cwd=root)
    match result:
        case Ok(stdout):
            tag = stdout.strip()
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from relpub.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from relpub.output.console import ConsoleProtocol

__all__ = ["ProcessError", "format_command", "run", "run_streaming", "run_unless_dry"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: Exit code of the process, -1 if it could not start.
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def format_command(cmd: list[str]) -> str:
    """Render a command line the way a shell user would type it."""
    return shlex.join(cmd)


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return its stdout.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=f"Command timed out after {timeout}s",
            )
        )
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)


def run_streaming(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
) -> Result[None, ProcessError]:
    """Execute a command whose output goes straight to the terminal.

    Used for long-running builds and delegate tools. No timeout is applied.
    """
    try:
        proc = subprocess.run(cmd, cwd=str(cwd), env=env, check=False)
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

    if proc.returncode != 0:
        return Err(
            ProcessError(command=tuple(cmd), returncode=proc.returncode, stdout="", stderr="")
        )
    return Ok(None)


def run_unless_dry(
    cmd: list[str],
    cwd: Path,
    *,
    dry_run: bool,
    console: ConsoleProtocol,
    force: bool = False,
    env: dict[str, str] | None = None,
) -> Result[None, ProcessError]:
    """Run ``cmd`` for real, or only echo it during a dry run.

    ``force`` executes the command even during a dry run; it is used for
    steps whose inputs already exist locally and whose effects stay local.
    """
    if dry_run and not force:
        console.dry(f"exec: {format_command(cmd)} (in {cwd})")
        return Ok(None)
    return run_streaming(cmd, cwd, env)
