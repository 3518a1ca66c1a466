"""Data models for create-release-branch.

These Pydantic models represent the core data structures used throughout
the release workflow.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

import semver
from pydantic import BaseModel, ConfigDict, Field

ReleaseType = Literal["ordinary", "backport"]


class Package(BaseModel):
    """Metadata for a single package in the monorepo.

    Attributes:
        name: Canonical (PEP 503) package name.
        version: Current version string from pyproject.toml.
        directory_path: Absolute path to the package directory.
        manifest_path: Absolute path to the package's pyproject.toml.
        changelog_path: Absolute path to CHANGELOG.md (which may not exist).
        dependencies: Map of canonical name → version specifier from
                      [project].dependencies.
        peer_dependencies: Map of canonical name → version specifier from
                           optional dependencies and dependency groups.
        has_changes_since_latest_release: Whether anything in the package
                                          directory changed since the tag
                                          of its current version.
        latest_release_tag: The tag the change check was made against, or
                            None if the project has no tags yet.
    """

    name: str
    version: str
    directory_path: str
    manifest_path: str
    changelog_path: str
    dependencies: dict[str, str] = Field(default_factory=dict)
    peer_dependencies: dict[str, str] = Field(default_factory=dict)
    has_changes_since_latest_release: bool = False
    latest_release_tag: str | None = None


class ReleaseVersion(BaseModel):
    """The release numbers encoded in the root package version.

    A root version of "12.3.0" means the 12th ordinary release followed by
    three backport releases.
    """

    model_config = ConfigDict(frozen=True)

    ordinary_number: int
    backport_number: int


class Project(BaseModel):
    """The whole monorepo: its root package and its workspace packages."""

    model_config = ConfigDict(frozen=True)

    directory_path: str
    repository_url: str | None = None
    root_package: Package
    workspace_packages: dict[str, Package] = Field(default_factory=dict)
    release_version: ReleaseVersion
    is_monorepo: bool = True


class DirectiveKind(str, Enum):
    SKIP = "skip"
    INTENTIONALLY_SKIP = "intentionally-skip"
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    EXACT = "exact"


INCREMENT_KINDS = (DirectiveKind.MAJOR, DirectiveKind.MINOR, DirectiveKind.PATCH)


class VersionDirective(BaseModel):
    """How the version of one package should change in a release.

    Attributes:
        kind: Skip, intentionally skip, bump a part, or set exactly.
        version: The exact version, only present for `DirectiveKind.EXACT`.
    """

    model_config = ConfigDict(frozen=True)

    kind: DirectiveKind
    version: str | None = None

    @property
    def is_skip(self) -> bool:
        return self.kind in (DirectiveKind.SKIP, DirectiveKind.INTENTIONALLY_SKIP)

    @property
    def exact_version(self) -> semver.Version:
        if self.kind is not DirectiveKind.EXACT or self.version is None:
            raise ValueError(f"{self.kind.value} directive has no exact version")
        return semver.Version.parse(self.version)

    def to_raw(self) -> str | None:
        """Render the directive the way it is written in a release spec."""
        if self.kind is DirectiveKind.SKIP:
            return None
        if self.kind is DirectiveKind.EXACT:
            return self.version
        return self.kind.value


class ReleaseSpecification(BaseModel):
    """A validated release spec.

    Attributes:
        packages: Ordered (package name, directive) pairs, in the order they
                  were written. Skip directives are never included.
        path: The file the spec was read from.
    """

    model_config = ConfigDict(frozen=True)

    packages: list[tuple[str, VersionDirective]]
    path: str

    def package_names(self) -> list[str]:
        return [name for name, _ in self.packages]


class PackageReleasePlan(BaseModel):
    """How one package is updated in a release.

    Attributes:
        package: The package to update.
        new_version: Version to write into its manifest.
        should_update_changelog: False for the root package, which has no
                                 changelog of its own.
    """

    package: Package
    new_version: str
    should_update_changelog: bool = True


class ReleasePlan(BaseModel):
    """Concrete instructions for updating the project.

    Attributes:
        new_version: The new release version of the monorepo.
        packages: Root package first, then workspace packages in spec order.
    """

    new_version: str
    packages: list[PackageReleasePlan]


class BranchAcquisition(BaseModel):
    """Result of switching to the release branch.

    Attributes:
        version: The release version the branch is named after.
        first_run: True only when the branch was created just now.
    """

    version: str
    first_run: bool


class Editor(BaseModel):
    """An executable that can be used to edit the release spec."""

    path: str
    args: list[str] = Field(default_factory=list)


class WorkflowState(str, Enum):
    """Where a workflow run stopped or what it last completed."""

    BRANCH_ACQUIRED = "branch-acquired"
    INITIALIZED = "initialized"
    AWAITING_EDIT = "awaiting-edit"
    SPEC_READY = "spec-ready"
    VALIDATED = "validated"
    PLANNED = "planned"
    EXECUTED = "executed"
    COMMITTED = "committed"
    DONE = "done"
