"""Read a uv workspace into a `Project`.

The root pyproject.toml names the monorepo and carries the release version;
[tool.uv.workspace].members lists the package directories. Whether a package
changed since its latest release is decided against git tags:

- the root package is released as `v{version}`
- a workspace package is released as `{name}/v{version}`, falling back to
  the root tag for packages released together with the monorepo
"""

from __future__ import annotations

import glob
import sys
from pathlib import Path
from typing import TextIO

from .deps import dependency_map
from .errors import ProjectError
from .models import Package, Project
from .repo import (
    get_repository_https_url,
    get_tag_names,
    has_changes_in_directory_since_tag,
)
from .shell import step
from .toml import (
    get_dependency_strings,
    get_peer_dependency_strings,
    get_project_name,
    get_project_version,
    get_workspace_member_globs,
    load_pyproject,
)
from .versions import release_version_from

MANIFEST_FILE_NAME = "pyproject.toml"
CHANGELOG_FILE_NAME = "CHANGELOG.md"


def root_release_tag_name(version: str) -> str:
    return f"v{version}"


def workspace_release_tag_name(name: str, version: str) -> str:
    return f"{name}/v{version}"


def _find_latest_release_tag(
    candidates: list[str], tag_names: list[str], describe: str
) -> str | None:
    """Pick the first candidate tag that exists.

    Returns None when the repository has no tags at all, which means nothing
    has been released yet.

    Raises:
        ProjectError: If tags exist but none of the candidates do.
    """
    if not tag_names:
        return None
    for candidate in candidates:
        if candidate in tag_names:
            return candidate
    expected = " or ".join(f'"{c}"' for c in candidates)
    raise ProjectError(
        f"{describe} has no Git tag for its current version (expected {expected}), "
        "so this tool is unable to determine whether it should be included in "
        "this release. You will need to create a tag in order to proceed."
    )


def read_package(
    package_dir: Path,
    project_dir: Path,
    tag_candidates: list[str],
    tag_names: list[str],
) -> Package:
    """Read one package's manifest and decide whether it has changed."""
    manifest_path = package_dir / MANIFEST_FILE_NAME
    doc = load_pyproject(manifest_path)
    name = get_project_name(doc, package_dir.name)
    version = get_project_version(doc)
    candidates = [
        tag.format(name=name, version=version) for tag in tag_candidates
    ]
    latest_tag = _find_latest_release_tag(
        candidates, tag_names, f"The package {name} at version {version}"
    )
    has_changes = (
        True
        if latest_tag is None
        else has_changes_in_directory_since_tag(project_dir, package_dir, latest_tag)
    )
    return Package(
        name=name,
        version=version,
        directory_path=str(package_dir),
        manifest_path=str(manifest_path),
        changelog_path=str(package_dir / CHANGELOG_FILE_NAME),
        dependencies=dependency_map(get_dependency_strings(doc)),
        peer_dependencies=dependency_map(get_peer_dependency_strings(doc)),
        has_changes_since_latest_release=has_changes,
        latest_release_tag=latest_tag,
    )


def load_project(directory_path: str | Path, stdout: TextIO | None = None) -> Project:
    """Scan the workspace and build the dependency graph model.

    Reads [tool.uv.workspace].members from the root pyproject.toml to find
    package directories, then reads name, version, and dependencies from
    each package's pyproject.toml.

    Raises:
        ProjectError: If the root manifest is missing or a release tag
                      cannot be found.
    """
    out = stdout or sys.stdout
    step("Reading project", file=out)

    root = Path(directory_path).resolve()
    if not (root / MANIFEST_FILE_NAME).exists():
        raise ProjectError(f"No {MANIFEST_FILE_NAME} found in {root}")

    tag_names = get_tag_names(root)
    root_doc = load_pyproject(root / MANIFEST_FILE_NAME)
    root_version = get_project_version(root_doc)
    root_package = read_package(
        root, root, [root_release_tag_name("{version}")], tag_names
    )

    # Expand globs to find all package directories
    member_dirs: list[Path] = []
    for pattern in get_workspace_member_globs(root_doc):
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match)
            if (p / MANIFEST_FILE_NAME).exists() and p != root:
                member_dirs.append(p)

    workspace_candidates = [
        workspace_release_tag_name("{name}", "{version}"),
        root_release_tag_name(root_version),
    ]
    workspace_packages: dict[str, Package] = {}
    for d in member_dirs:
        pkg = read_package(d, root, workspace_candidates, tag_names)
        workspace_packages[pkg.name] = pkg

    # Print discovered packages for user feedback
    for name, pkg in workspace_packages.items():
        changed = " (changed)" if pkg.has_changes_since_latest_release else ""
        print(f"  {name} {pkg.version}{changed}", file=out)

    return Project(
        directory_path=str(root),
        repository_url=get_repository_https_url(root),
        root_package=root_package,
        workspace_packages=workspace_packages,
        release_version=release_version_from(root_version),
        is_monorepo=bool(workspace_packages),
    )
