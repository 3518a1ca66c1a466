"""Changelog handling for workspace packages.

Changelogs follow the Keep a Changelog layout:

    # Changelog

    ## [Unreleased]
    ### Added
    - Something new

    ## [1.0.0]
    ### Fixed
    - Something broken

    [Unreleased]: https://github.com/org/repo/compare/pkg/v1.0.0...HEAD
    [1.0.0]: https://github.com/org/repo/releases/tag/pkg/v1.0.0

The release workflow touches changelogs three times: commit subjects are
added to the Unreleased section when a release branch is created, changelogs
of packages left out of the release are restored from the default branch,
and the Unreleased entries of released packages are moved under their new
version.
"""

from __future__ import annotations

import re
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from pydantic import BaseModel, Field

from .models import Package, Project, ReleaseSpecification
from .repo import get_commit_subjects_since_tag, restore_file_from_branch

UNRELEASED = "Unreleased"
DEFAULT_CATEGORY = "Uncategorized"

_SECTION_HEADER = re.compile(r"^## \[?(?P<title>[^\]\s]+)\]?(?P<suffix>.*)$")
_CATEGORY_HEADER = re.compile(r"^### (?P<category>.+)$")
_LINK_REFERENCE = re.compile(r"^\[(?P<label>[^\]]+)\]: \S+")


class ChangelogSection(BaseModel):
    """One `## [...]` section: Unreleased or a released version.

    Attributes:
        title: "Unreleased" or a version string.
        suffix: Anything after the bracketed title, such as " - 2024-05-01".
        categories: Map of category ("Added", "Fixed", ...) to its raw lines.
                    Lines written before any category live under "".
    """

    title: str
    suffix: str = ""
    categories: dict[str, list[str]] = Field(default_factory=dict)

    def entries(self) -> list[str]:
        return [
            line[2:].strip()
            for lines in self.categories.values()
            for line in lines
            if line.startswith("- ")
        ]

    def is_empty(self) -> bool:
        return not any(self.categories.values())


class Changelog(BaseModel):
    preamble: list[str] = Field(default_factory=list)
    sections: list[ChangelogSection] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)

    def unreleased(self) -> ChangelogSection:
        """Return the Unreleased section, creating it if necessary."""
        for section in self.sections:
            if section.title == UNRELEASED:
                return section
        section = ChangelogSection(title=UNRELEASED)
        self.sections.insert(0, section)
        return section

    def find_release(self, version: str) -> ChangelogSection | None:
        return next((s for s in self.sections if s.title == version), None)

    def add_unreleased_change(
        self, description: str, category: str = DEFAULT_CATEGORY
    ) -> bool:
        """Add an entry to the Unreleased section unless it is already there.

        Returns:
            True if the entry was added.
        """
        section = self.unreleased()
        if description in section.entries():
            return False
        section.categories.setdefault(category, []).append(f"- {description}")
        return True

    def migrate_unreleased_to_release(self, version: str) -> bool:
        """Move all Unreleased entries into the section for `version`.

        The section is created right below Unreleased if it does not exist
        yet; if it does (a resumed run), the entries are merged into it.

        Returns:
            False if there was nothing to move.
        """
        unreleased = self.unreleased()
        if unreleased.is_empty():
            return False
        release = self.find_release(version)
        if release is None:
            release = ChangelogSection(title=version)
            self.sections.insert(self.sections.index(unreleased) + 1, release)
        for category, lines in unreleased.categories.items():
            release.categories.setdefault(category, []).extend(lines)
        unreleased.categories = {}
        return True

    def render(self, repository_url: str | None = None, tag_prefix: str = "") -> str:
        """Serialize the changelog.

        When a repository URL is given, the link references at the bottom are
        regenerated from the section titles; otherwise they are kept as read.
        """
        blocks: list[str] = []
        preamble = "\n".join(self.preamble).strip()
        if preamble:
            blocks.append(preamble)
        for section in self.sections:
            lines = [f"## [{section.title}]{section.suffix}"]
            for category, category_lines in section.categories.items():
                if not category_lines:
                    continue
                if category:
                    lines.append(f"### {category}")
                lines.extend(category_lines)
            blocks.append("\n".join(lines))
        links = (
            self._generate_links(repository_url, tag_prefix)
            if repository_url
            else self.links
        )
        if links:
            blocks.append("\n".join(links))
        return "\n\n".join(blocks) + "\n"

    def _generate_links(self, repository_url: str, tag_prefix: str) -> list[str]:
        url = repository_url.rstrip("/")
        versions = [s.title for s in self.sections if s.title != UNRELEASED]
        links: list[str] = []
        if versions:
            links.append(f"[{UNRELEASED}]: {url}/compare/{tag_prefix}{versions[0]}...HEAD")
        else:
            links.append(f"[{UNRELEASED}]: {url}/")
        for newer, older in zip(versions, versions[1:]):
            links.append(f"[{newer}]: {url}/compare/{tag_prefix}{older}...{tag_prefix}{newer}")
        if versions:
            links.append(f"[{versions[-1]}]: {url}/releases/tag/{tag_prefix}{versions[-1]}")
        return links


def parse_changelog(text: str) -> Changelog:
    """Parse Keep a Changelog text into a `Changelog`.

    Blank lines inside sections are not significant and are normalized away
    when the changelog is rendered again.
    """
    changelog = Changelog()
    section: ChangelogSection | None = None
    category = ""
    for line in text.splitlines():
        if _LINK_REFERENCE.match(line):
            changelog.links.append(line)
            continue
        header = _SECTION_HEADER.match(line)
        if header:
            section = ChangelogSection(title=header["title"], suffix=header["suffix"])
            changelog.sections.append(section)
            category = ""
            continue
        if section is None:
            changelog.preamble.append(line)
            continue
        sub = _CATEGORY_HEADER.match(line)
        if sub:
            category = sub["category"].strip()
            section.categories.setdefault(category, [])
        elif line.strip():
            section.categories.setdefault(category, []).append(line.rstrip())
    return changelog


def package_tag_prefix(pkg: Package) -> str:
    return f"{pkg.name}/v"


def read_changelog(pkg: Package) -> Changelog | None:
    """Read a package's changelog, or None if it does not have one."""
    path = Path(pkg.changelog_path)
    if not path.exists():
        return None
    return parse_changelog(path.read_text())


def write_changelog(project: Project, pkg: Package, changelog: Changelog) -> None:
    Path(pkg.changelog_path).write_text(
        changelog.render(project.repository_url, package_tag_prefix(pkg))
    )


def populate_changelogs_for_changed_packages(
    project: Project, stderr: TextIO | None = None
) -> dict[str, int]:
    """Add commit subjects since the latest release to each changed package.

    Subjects already present in the Unreleased section are not added twice,
    so running this again on the same history changes nothing.

    Returns:
        Map of package name → number of entries added, for packages that
        received any.
    """
    err = stderr or sys.stderr
    added_counts: dict[str, int] = {}
    for pkg in project.workspace_packages.values():
        if not pkg.has_changes_since_latest_release:
            continue
        changelog = read_changelog(pkg)
        if changelog is None:
            print(f"{pkg.name} does not seem to have a changelog. Skipping.", file=err)
            continue
        subjects = get_commit_subjects_since_tag(
            project.directory_path, pkg.directory_path, pkg.latest_release_tag
        )
        added = [s for s in subjects if changelog.add_unreleased_change(s)]
        if added:
            write_changelog(project, pkg, changelog)
            added_counts[pkg.name] = len(added)
    return added_counts


def restore_changelog_for_skipped_package(
    project: Project, package_name: str, default_branch: str
) -> bool:
    """Undo the changelog population for a package left out of the release.

    Returns:
        False if the package has no changelog to restore.
    """
    pkg = project.workspace_packages[package_name]
    if not Path(pkg.changelog_path).exists():
        return False
    restore_file_from_branch(project.directory_path, default_branch, pkg.changelog_path)
    return True


def skipped_package_names(
    project: Project, released_names: Iterable[str]
) -> list[str]:
    """Changed workspace packages that are not part of the release."""
    released = set(released_names)
    return [
        name
        for name, pkg in project.workspace_packages.items()
        if pkg.has_changes_since_latest_release and name not in released
    ]


def restore_changelogs_for_skipped_packages(
    project: Project, spec: ReleaseSpecification, default_branch: str
) -> list[str]:
    """Restore the changelog of every changed package the spec leaves out.

    Returns:
        Names of the packages whose changelogs were restored.
    """
    restored: list[str] = []
    for name in skipped_package_names(project, spec.package_names()):
        if restore_changelog_for_skipped_package(project, name, default_branch):
            restored.append(name)
    return restored


def migrate_unreleased_changes_to_release(
    project: Project, pkg: Package, new_version: str, stderr: TextIO | None = None
) -> bool:
    """Move a package's Unreleased entries into a section for `new_version`.

    Returns:
        False if the package has no changelog or nothing was moved.
    """
    err = stderr or sys.stderr
    changelog = read_changelog(pkg)
    if changelog is None:
        print(f"{pkg.name} does not seem to have a changelog. Skipping.", file=err)
        return False
    if not changelog.migrate_unreleased_to_release(new_version):
        print(
            f"Changelog for {pkg.name} was not updated as there were no updates to make.",
            file=err,
        )
        return False
    write_changelog(project, pkg, changelog)
    return True
