"""Git operations on the project repository.

Every function takes the repository directory explicitly and shells out
through `shell.git`, so tests can patch `create_release_branch.repo.git`.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from .errors import ProjectError
from .shell import git, git_succeeds


def get_current_branch_name(repo_dir: str | Path) -> str:
    return git("rev-parse", "--abbrev-ref", "HEAD", cwd=repo_dir)


def branch_exists(repo_dir: str | Path, branch_name: str) -> bool:
    return git_succeeds(
        "show-ref", "--verify", "--quiet", f"refs/heads/{branch_name}", cwd=repo_dir
    )


def checkout_branch(repo_dir: str | Path, branch_name: str) -> None:
    git("checkout", branch_name, cwd=repo_dir)


def checkout_new_branch(repo_dir: str | Path, branch_name: str) -> None:
    git("checkout", "-b", branch_name, cwd=repo_dir)


def commit_all_changes(repo_dir: str | Path, message: str) -> bool:
    """Stage everything in the working tree and commit it.

    Returns:
        False without committing when there was nothing to stage.
    """
    git("add", "--all", cwd=repo_dir)
    staged = git("diff", "--cached", "--name-only", cwd=repo_dir, check=False)
    if not staged:
        return False
    git("commit", "--message", message, cwd=repo_dir)
    return True


def is_shallow_repository(repo_dir: str | Path) -> bool:
    """Check whether the local clone has an incomplete history.

    Raises:
        ProjectError: If git answers with something other than true/false.
    """
    answer = git("rev-parse", "--is-shallow-repository", cwd=repo_dir)
    if answer not in ("true", "false"):
        raise ProjectError(
            f'"git rev-parse --is-shallow-repository" returned unrecognized value: {answer!r}'
        )
    return answer == "true"


def get_tag_names(repo_dir: str | Path) -> list[str]:
    """List all tags in the repository.

    Raises:
        ProjectError: If there are no tags and the clone is shallow, since the
                      tags may simply not have been fetched.
    """
    tags = git("tag", "--list", cwd=repo_dir, check=False).splitlines()
    if not tags and is_shallow_repository(repo_dir):
        raise ProjectError('"git tag" returned no tags. Increase your git fetch depth.')
    return tags


def _relative_prefix(repo_dir: str | Path, directory: str | Path) -> str:
    rel = os.path.relpath(Path(directory).resolve(), Path(repo_dir).resolve())
    if rel == ".":
        return ""
    return Path(rel).as_posix().rstrip("/") + "/"


def has_changes_in_directory_since_tag(
    repo_dir: str | Path, directory: str | Path, tag: str
) -> bool:
    """Whether any file under `directory` changed between `tag` and HEAD."""
    changed_files = git("diff", "--name-only", tag, "HEAD", cwd=repo_dir).splitlines()
    prefix = _relative_prefix(repo_dir, directory)
    return any(f.startswith(prefix) for f in changed_files)


def get_commit_subjects_since_tag(
    repo_dir: str | Path, directory: str | Path, tag: str | None
) -> list[str]:
    """Subjects of commits touching `directory` since `tag`, oldest first.

    With no tag, the whole history of the directory is used.
    """
    revision = f"{tag}..HEAD" if tag else "HEAD"
    prefix = _relative_prefix(repo_dir, directory) or "."
    output = git(
        "log", "--reverse", "--format=%s", revision, "--", prefix, cwd=repo_dir
    )
    return [line for line in output.splitlines() if line]


def restore_file_from_branch(
    repo_dir: str | Path, branch_name: str, file_path: str | Path
) -> None:
    """Replace a file in the working tree with its version on another branch."""
    git("checkout", branch_name, "--", str(file_path), cwd=repo_dir)


_SSH_URL = re.compile(r"^git@(?P<host>[^:]+):(?P<path>.+?)(?:\.git)?$")
_HTTPS_URL = re.compile(r"^https://(?P<host>[^/]+)/(?P<path>.+?)(?:\.git)?$")


def get_repository_https_url(repo_dir: str | Path) -> str | None:
    """Read the HTTPS URL of the `origin` remote.

    Handles both URL styles:
        git@github.com:Org/Repo.git → https://github.com/Org/Repo
        https://github.com/Org/Repo.git → https://github.com/Org/Repo

    Returns:
        None if the repository has no `origin` remote.

    Raises:
        ProjectError: If the remote URL is in an unrecognized format.
    """
    url = git("config", "--get", "remote.origin.url", cwd=repo_dir, check=False)
    if not url:
        return None
    for pattern in (_SSH_URL, _HTTPS_URL):
        match = pattern.match(url)
        if match:
            return f"https://{match['host']}/{match['path']}"
    raise ProjectError(f'Unrecognized URL for git remote "origin": {url}')
