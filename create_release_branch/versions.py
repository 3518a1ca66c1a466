"""Version parsing and bumping utilities.

Handles conversion between version strings and semver objects, with
special handling for incomplete version strings (e.g., "1.0" → "1.0.0").
"""

from __future__ import annotations

import semver

from .models import DirectiveKind, ReleaseType, ReleaseVersion


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Complete versions, including prerelease and build metadata, are parsed
    as they are. Incomplete versions are padded with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3-beta.1" → "1.2.3-beta.1"
    """
    if is_valid_semver(version_str):
        return semver.Version.parse(version_str)
    parts = version_str.split(".")
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts[:3]))


def is_valid_semver(value: object) -> bool:
    """Whether a value is a complete semver string such as "1.2.3"."""
    return isinstance(value, str) and semver.Version.is_valid(value)


def increment_version(version_str: str, part: DirectiveKind) -> str:
    """Increment one part of a version and return it as a string.

    Incrementing a prerelease releases it when the parts below the one being
    incremented are already zero.

    Examples:
        ("1.2.3", MAJOR) → "2.0.0"
        ("1.2.3", MINOR) → "1.3.0"
        ("1.2.3", PATCH) → "1.2.4"
        ("1.0.0-beta.1", PATCH) → "1.0.0"
        ("1.3.0-rc.1", MINOR) → "1.3.0"
        ("1.3.1-rc.1", MINOR) → "1.4.0"
    """
    version = parse_version(version_str)
    if part is DirectiveKind.MAJOR:
        if version.prerelease and version.minor == 0 and version.patch == 0:
            return str(version.finalize_version())
        return str(version.bump_major())
    if part is DirectiveKind.MINOR:
        if version.prerelease and version.patch == 0:
            return str(version.finalize_version())
        return str(version.bump_minor())
    if part is DirectiveKind.PATCH:
        if version.prerelease:
            return str(version.finalize_version())
        return str(version.bump_patch())
    raise ValueError(f"Cannot increment a version with a {part.value} directive")


def version_diff(old: str, new: str) -> str | None:
    """Name the most significant part that differs between two versions.

    Returns "major", "minor" or "patch" (prefixed with "pre" when the new
    version is a prerelease), "prerelease" when only the prerelease differs,
    or None when the versions are equal.
    """
    a = parse_version(old)
    b = semver.Version.parse(new)
    if a == b:
        return None
    prefix = "pre" if b.prerelease else ""
    if a.major != b.major:
        return f"{prefix}major"
    if a.minor != b.minor:
        return f"{prefix}minor"
    if a.patch != b.patch:
        return f"{prefix}patch"
    return "prerelease"


def release_version_from(root_version: str) -> ReleaseVersion:
    """Read the ordinary and backport numbers out of a root package version."""
    version = parse_version(root_version)
    return ReleaseVersion(ordinary_number=version.major, backport_number=version.minor)


def determine_new_release_version(
    release_version: ReleaseVersion, release_type: ReleaseType
) -> str:
    """Compute the version of the upcoming release.

    Examples:
        (12.3, "ordinary") → "13.0.0"
        (12.3, "backport") → "12.4.0"
    """
    if release_type == "backport":
        return f"{release_version.ordinary_number}.{release_version.backport_number + 1}.0"
    return f"{release_version.ordinary_number + 1}.0.0"
