"""Subprocess wrapper with error handling."""

from __future__ import annotations

import subprocess

from helm_antecedent.config import DEFAULT_TIMEOUT


class RunError(Exception):
    """Raised when a subprocess exits with non-zero status."""

    def __init__(self, cmd: list[str], returncode: int, stderr: str) -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"Command {cmd!r} failed (exit {returncode}): {stderr.strip()}"
        )


class RunTimeout(RunError):
    """Raised when a subprocess does not finish within its timeout."""

    def __init__(self, cmd: list[str], timeout: float) -> None:
        self.timeout = timeout
        super().__init__(cmd, -1, f"timed out after {timeout}s")


def run(cmd: list[str], timeout: float = DEFAULT_TIMEOUT, stdin: str | None = None) -> str:
    """Run subprocess, capture stdout, raise on non-zero exit or timeout."""
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            input=stdin,
        )
    except subprocess.TimeoutExpired as e:
        raise RunTimeout(cmd, timeout) from e
    if result.returncode != 0:
        raise RunError(cmd, result.returncode, result.stderr)
    return result.stdout
