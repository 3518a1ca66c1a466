"""Subprocess helpers.

Git queries run with captured output against an explicit repository
directory. The editor runs attached to the terminal. Phase headers for the
release workflow are printed by `step()`.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import TextIO


def git(*args: str, cwd: str | Path, check: bool = True) -> str:
    """Run git in `cwd` and return its stripped stdout.

    With check=False a failing command returns whatever it printed, which
    is how `git tag --list` and `git config --get` report "nothing".
    """
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=check
    )
    return result.stdout.strip()


def git_succeeds(*args: str, cwd: str | Path) -> bool:
    """Answer a yes/no git query by its exit status (e.g. `show-ref --verify`)."""
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True)
    return result.returncode == 0


def run(*args: str, check: bool = True) -> subprocess.CompletedProcess[bytes]:
    """Run a command attached to the user's terminal.

    Used to open the release spec in an editor: stdin and stdout are left
    alone so terminal editors work, and the call blocks until the editor
    exits. A non-zero exit raises CalledProcessError when `check` is set.
    """
    return subprocess.run(args, check=check)


def step(msg: str, file: TextIO | None = None) -> None:
    """Print a header ruled off above and below, marking a workflow phase."""
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}", file=file or sys.stdout)
