"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
import tomlkit

from create_release_branch.models import Package, Project, ReleaseVersion

PackageFactory = Callable[..., Package]
ProjectFactory = Callable[..., Project]


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    content = """\
[project]
name = "test-package"
version = "1.0.0"
dependencies = [
    "requests>=2.0",
    "internal-dep>=1.0",
]

[project.optional-dependencies]
dev = ["pytest>=8.0", "another-internal>=0.5"]

[dependency-groups]
test = ["pytest>=8.0", "group-internal>=0.1", {include-group = "lint"}]
lint = ["ruff"]
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)
    return pyproject


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[project]
name = "My_Monorepo"
version = "12.3.0"
dependencies = ["click>=8.0", "pydantic>=2.0"]

[project.optional-dependencies]
dev = ["pytest>=8.0"]
docs = ["sphinx>=7.0"]

[dependency-groups]
test = ["hypothesis>=6.0"]

[tool.uv.workspace]
members = ["packages/*", "libs/*"]
"""
    return tomlkit.parse(content)


@pytest.fixture
def make_package(tmp_path: Path) -> PackageFactory:
    """Build a `Package` living under tmp_path/packages/<name>."""

    def _make(
        name: str,
        version: str = "1.0.0",
        *,
        changed: bool = True,
        dependencies: dict[str, str] | None = None,
        peer_dependencies: dict[str, str] | None = None,
        directory: Path | None = None,
    ) -> Package:
        package_dir = directory or tmp_path / "packages" / name
        return Package(
            name=name,
            version=version,
            directory_path=str(package_dir),
            manifest_path=str(package_dir / "pyproject.toml"),
            changelog_path=str(package_dir / "CHANGELOG.md"),
            dependencies=dependencies or {},
            peer_dependencies=peer_dependencies or {},
            has_changes_since_latest_release=changed,
            latest_release_tag=f"{name}/v{version}",
        )

    return _make


@pytest.fixture
def make_project(tmp_path: Path, make_package: PackageFactory) -> ProjectFactory:
    """Build a `Project` rooted at tmp_path from a list of packages."""

    def _make(
        *packages: Package,
        root_version: str = "1.0.0",
        repository_url: str | None = None,
    ) -> Project:
        major, minor, *_ = root_version.split(".")
        return Project(
            directory_path=str(tmp_path),
            repository_url=repository_url,
            root_package=make_package(
                "monorepo", root_version, changed=False, directory=tmp_path
            ),
            workspace_packages={pkg.name: pkg for pkg in packages},
            release_version=ReleaseVersion(
                ordinary_number=int(major), backport_number=int(minor)
            ),
        )

    return _make


def write_manifest(
    directory: Path,
    name: str,
    version: str,
    dependencies: list[str] | None = None,
    extra: str = "",
) -> Path:
    """Write a minimal pyproject.toml into `directory`."""
    directory.mkdir(parents=True, exist_ok=True)
    deps = ", ".join(f'"{d}"' for d in dependencies or [])
    manifest = directory / "pyproject.toml"
    manifest.write_text(
        f'[project]\nname = "{name}"\nversion = "{version}"\ndependencies = [{deps}]\n'
        f"{extra}"
    )
    return manifest


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A uv workspace on disk with three packages.

    - pkg-alpha: no dependencies
    - pkg-beta: depends on pkg-alpha
    - pkg-gamma: peer-depends on pkg-alpha through a dependency group
    """
    write_manifest(
        tmp_path,
        "monorepo",
        "12.3.0",
        extra='\n[tool.uv.workspace]\nmembers = ["packages/*"]\n',
    )
    packages = tmp_path / "packages"
    write_manifest(packages / "pkg-alpha", "pkg-alpha", "1.0.0")
    write_manifest(packages / "pkg-beta", "pkg-beta", "2.1.0", ["pkg-alpha>=1.0"])
    write_manifest(
        packages / "pkg-gamma",
        "pkg-gamma",
        "0.4.2",
        extra='\n[dependency-groups]\ntest = ["pkg-alpha"]\n',
    )
    (packages / "pkg-alpha" / "CHANGELOG.md").write_text(
        "# Changelog\n\n## [Unreleased]\n\n## [1.0.0]\n### Added\n- Initial release\n"
    )
    return tmp_path
