"""Locate an editor and wait for the user to edit the release spec."""

from __future__ import annotations

import shlex
import shutil
import subprocess
import sys
from typing import TextIO

from .errors import EditorExecutionError
from .models import Editor
from .shell import run


def resolve_editor(preferred: str | None = None) -> Editor | None:
    """Find an executable that can edit the release spec.

    Tries `preferred` first (usually $EDITOR, which may include arguments,
    e.g. "vim -u NONE"), then falls back to VS Code, which is passed
    `--wait` so it only returns once the file is closed.

    Returns:
        The editor, or None if neither can be found on PATH.
    """
    parts = shlex.split(preferred) if preferred else []
    if parts:
        command, *args = parts
        path = shutil.which(command)
        if path is not None:
            return Editor(path=path, args=args)

    path = shutil.which("code")
    if path is not None:
        return Editor(path=path, args=["--wait"])
    return None


def wait_for_user_to_edit_release_spec(
    spec_path: str, editor: Editor, stdout: TextIO | None = None
) -> None:
    """Open the release spec in the editor and block until it exits.

    There is no timeout: the user may take as long as they need.

    Raises:
        EditorExecutionError: If the editor cannot be started or exits with
                              a non-zero status. The original error is kept
                              as the cause.
    """
    out = stdout or sys.stdout
    print("Waiting for the release spec to be edited...", end="", file=out, flush=True)
    try:
        run(editor.path, *editor.args, spec_path)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise EditorExecutionError(
            "Encountered an error while waiting for the release spec to be edited."
        ) from exc
    finally:
        # Clear the waiting message
        print("\r\033[K", end="", file=out, flush=True)
