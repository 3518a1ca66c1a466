"""Tests for create_release_branch.toml."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit

from create_release_branch.errors import ProjectError
from create_release_branch.toml import (
    get_dependency_strings,
    get_peer_dependency_strings,
    get_project_name,
    get_project_version,
    get_workspace_member_globs,
    load_pyproject,
    save_pyproject,
    set_project_version,
)


class TestLoadSavePyproject:
    def test_load(self, tmp_pyproject: Path) -> None:
        doc = load_pyproject(tmp_pyproject)
        assert get_project_name(doc, "") == "test-package"

    def test_save_preserves_content(self, tmp_pyproject: Path) -> None:
        doc = load_pyproject(tmp_pyproject)
        doc["project"]["version"] = "9.9.9"
        save_pyproject(tmp_pyproject, doc)

        reloaded = load_pyproject(tmp_pyproject)
        assert get_project_version(reloaded) == "9.9.9"
        assert get_project_name(reloaded, "") == "test-package"


class TestGetProjectName:
    def test_normalizes_name(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        assert get_project_name(sample_toml_doc, "fallback") == "my-monorepo"

    def test_returns_fallback_when_missing(self) -> None:
        doc = tomlkit.parse("[project]")
        assert get_project_name(doc, "my-fallback") == "my-fallback"


class TestGetProjectVersion:
    def test_returns_version(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        assert get_project_version(sample_toml_doc) == "12.3.0"

    def test_returns_default_when_missing(self) -> None:
        assert get_project_version(tomlkit.parse("[project]")) == "0.0.0"


class TestSetProjectVersion:
    def test_updates_version(self, tmp_pyproject: Path) -> None:
        set_project_version(tmp_pyproject, "2.0.0")
        assert 'version = "2.0.0"' in tmp_pyproject.read_text()

    def test_preserves_formatting(self, tmp_pyproject: Path) -> None:
        before = tmp_pyproject.read_text()
        set_project_version(tmp_pyproject, "2.0.0")
        after = tmp_pyproject.read_text()
        assert after == before.replace('version = "1.0.0"', 'version = "2.0.0"')


class TestDependencyStrings:
    def test_runtime_dependencies(self, tmp_pyproject: Path) -> None:
        doc = load_pyproject(tmp_pyproject)
        assert get_dependency_strings(doc) == ["requests>=2.0", "internal-dep>=1.0"]

    def test_peer_dependencies_from_extras_and_groups(self, tmp_pyproject: Path) -> None:
        doc = load_pyproject(tmp_pyproject)
        assert get_peer_dependency_strings(doc) == [
            "pytest>=8.0",
            "another-internal>=0.5",
            "pytest>=8.0",
            "group-internal>=0.1",
            "ruff",
        ]

    def test_no_dependencies(self) -> None:
        doc = tomlkit.parse('[project]\nname = "empty"')
        assert get_dependency_strings(doc) == []
        assert get_peer_dependency_strings(doc) == []


class TestGetWorkspaceMemberGlobs:
    def test_returns_members(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        assert get_workspace_member_globs(sample_toml_doc) == ["packages/*", "libs/*"]

    def test_raises_without_workspace(self) -> None:
        with pytest.raises(ProjectError, match="tool.uv.workspace"):
            get_workspace_member_globs(tomlkit.parse("[project]"))
