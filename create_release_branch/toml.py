"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying pyproject.toml
files. This is important for maintaining readable, diff-friendly files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, cast

import tomlkit
from packaging.utils import canonicalize_name

from .errors import ProjectError


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Returns a TOMLDocument that preserves formatting when modified and saved.
    """
    return tomlkit.parse(path.read_text())


def save_pyproject(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    path.write_text(tomlkit.dumps(doc))


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract the canonical package name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.

    Args:
        doc: Parsed pyproject.toml document.
        fallback: Value to return if name is not specified.
    """
    return canonicalize_name(doc.get("project", {}).get("name", fallback))


def get_project_version(doc: tomlkit.TOMLDocument) -> str:
    """Extract version from [project].version, defaulting to '0.0.0'."""
    return str(doc.get("project", {}).get("version", "0.0.0"))


def set_project_version(path: Path, new_version: str) -> None:
    """Rewrite [project].version of a pyproject.toml in place."""
    doc = load_pyproject(path)
    # Cast needed because tomlkit types are complex unions
    project = cast(dict[str, Any], doc["project"])
    project["version"] = new_version
    save_pyproject(path, doc)


def get_dependency_strings(doc: tomlkit.TOMLDocument) -> list[str]:
    """Collect the runtime dependency strings from [project].dependencies.

    Returns raw PEP 508 strings like "requests>=2.0" or "pkg[extra]~=1.0".
    """
    return [str(dep) for dep in doc.get("project", {}).get("dependencies", [])]


def get_peer_dependency_strings(doc: tomlkit.TOMLDocument) -> list[str]:
    """Collect dependency strings a package is used alongside but not bound to.

    Gathers dependencies from two locations:
    - [project].optional-dependencies.* (extras like [dev], [test])
    - [dependency-groups].* (PEP 735 dependency groups)

    `{include-group = ...}` tables inside dependency groups are skipped.
    """
    deps: list[str] = []
    # Collect optional dependency groups (e.g., [project.optional-dependencies.dev])
    for group_deps in doc.get("project", {}).get("optional-dependencies", {}).values():
        deps.extend(str(dep) for dep in group_deps)
    # Collect PEP 735 dependency groups (e.g., [dependency-groups.test])
    for group_deps in doc.get("dependency-groups", {}).values():
        deps.extend(str(dep) for dep in group_deps if isinstance(dep, str))
    return deps


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns from [tool.uv.workspace].

    These patterns (e.g., "packages/*", "libs/*") define which directories
    contain workspace packages.

    Raises:
        ProjectError: If no workspace members are defined.
    """
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    if not members:
        raise ProjectError("No [tool.uv.workspace] members defined in root pyproject.toml")
    return [str(member) for member in members]
