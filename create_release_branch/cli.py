"""CLI entry point for create-release-branch."""

from __future__ import annotations

import argparse
import os
import sys
import tempfile
from importlib.metadata import version as pkg_version
from pathlib import Path

from create_release_branch.errors import ReleaseError
from create_release_branch.models import Project
from create_release_branch.project import load_project
from create_release_branch.workflow import follow_monorepo_workflow

__version__ = pkg_version("create-release-branch")


def _fatal(msg: str) -> None:
    """Print error and exit."""
    print(f"Error: {msg}", file=sys.stderr)
    sys.exit(1)


def default_temp_directory(project: Project) -> Path:
    """Per-project scratch space that survives between runs."""
    root_name = project.root_package.name.replace("/", "__")
    return Path(tempfile.gettempdir()) / "create-release-branch" / root_name


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-release-branch",
        description="Prepare a release branch for a uv workspace monorepo.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--project-directory",
        default=".",
        help="Root directory of the workspace. (default: %(default)s)",
    )
    parser.add_argument(
        "--temp-directory",
        default=None,
        help="Where the release spec is kept between runs. "
        "(default: <system tmp>/create-release-branch/<project name>)",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Discard the release spec from a previous run and start over.",
    )
    parser.add_argument(
        "--backport",
        action="store_true",
        help="Prepare a backport release instead of an ordinary one.",
    )
    parser.add_argument(
        "--default-branch",
        default="main",
        help="Branch to restore changelogs of unreleased packages from. "
        "(default: %(default)s)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        project = load_project(Path(args.project_directory))
        temp_directory = (
            Path(args.temp_directory)
            if args.temp_directory
            else default_temp_directory(project)
        )
        follow_monorepo_workflow(
            project,
            temp_directory,
            reset=args.reset,
            release_type="backport" if args.backport else "ordinary",
            default_branch=args.default_branch,
            preferred_editor=os.environ.get("EDITOR"),
        )
    except ReleaseError as e:
        _fatal(str(e))
    return 0


def cli() -> None:
    """Main CLI entry point."""
    sys.exit(main())
