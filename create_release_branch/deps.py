"""Dependency handling utilities.

Provides functions for parsing PEP 508 dependency strings into the
name → specifier maps kept on each package.
"""

from __future__ import annotations

from packaging.requirements import Requirement
from packaging.utils import canonicalize_name


def dep_canonical_name(dep_str: str) -> str:
    """Extract the canonical package name from a PEP 508 dependency string.

    Handles version specifiers, extras, and normalizes the name per PEP 503
    (lowercase, hyphens instead of underscores).

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
    """
    return canonicalize_name(Requirement(dep_str).name)


def dependency_map(dep_strs: list[str]) -> dict[str, str]:
    """Turn PEP 508 strings into a map of canonical name → specifier.

    The first occurrence of a name wins, so a package listed in several
    groups keeps the specifier it was first declared with.

    Examples:
        ["requests>=2.0", "pkg-a"] → {"requests": ">=2.0", "pkg-a": ""}
    """
    deps: dict[str, str] = {}
    for dep_str in dep_strs:
        req = Requirement(dep_str)
        name = canonicalize_name(req.name)
        if name not in deps:
            deps[name] = str(req.specifier)
    return deps
