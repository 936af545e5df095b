"""Shell and output utilities.

Provides a thin wrapper around git plus helpers for progress output. All
progress output goes to stderr so the decision line printed on stdout stays
machine-parseable.
"""

from __future__ import annotations

import subprocess
import sys

from .errors import GitError


def git(*args: str) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "diff", "--name-only").

    Returns:
        Stripped stdout from the git command.

    Raises:
        GitError: If git is missing or exits non-zero.
    """
    try:
        result = subprocess.run(["git", *args], capture_output=True, text=True)
    except FileNotFoundError as exc:
        raise GitError("git executable not found on PATH") from exc
    if result.returncode != 0:
        detail = result.stderr.strip() or f"exit code {result.returncode}"
        raise GitError(f"git {' '.join(args)} failed: {detail}")
    return result.stdout.strip()


def step(msg: str) -> None:
    """Print a visually distinct step header."""
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}", file=sys.stderr)


def info(msg: str) -> None:
    """Print an indented detail line under the current step."""
    print(f"  {msg}", file=sys.stderr)


def warn(msg: str) -> None:
    print(f"WARNING: {msg}", file=sys.stderr)
