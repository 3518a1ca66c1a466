"""Turn a validated release spec into concrete version updates and apply them."""

from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import TextIO

from .changelog import migrate_unreleased_changes_to_release
from .errors import ExecutionError
from .models import (
    DirectiveKind,
    PackageReleasePlan,
    Project,
    ReleasePlan,
    ReleaseSpecification,
    VersionDirective,
)
from .shell import step
from .toml import set_project_version
from .versions import increment_version


def get_new_package_version(current_version: str, directive: VersionDirective) -> str:
    """Resolve a directive against a package's current version.

    Exact versions are used verbatim; increments follow semver, so bumping
    "major" resets minor and patch to 0, and bumping "minor" resets patch.
    """
    if directive.kind is DirectiveKind.EXACT:
        return str(directive.version)
    return increment_version(current_version, directive.kind)


def plan_release(
    project: Project, spec: ReleaseSpecification, new_release_version: str
) -> ReleasePlan:
    """Compute the new version of every package included in the release.

    The root package always receives `new_release_version`. The returned plan
    lists the root package first, then workspace packages in spec order.
    """
    root_plan = PackageReleasePlan(
        package=project.root_package,
        new_version=new_release_version,
        should_update_changelog=False,
    )
    workspace_plans = [
        PackageReleasePlan(
            package=project.workspace_packages[name],
            new_version=get_new_package_version(
                project.workspace_packages[name].version, directive
            ),
        )
        for name, directive in spec.packages
    ]
    return ReleasePlan(new_version=new_release_version, packages=[root_plan, *workspace_plans])


def update_package(
    project: Project, package_plan: PackageReleasePlan, stderr: TextIO | None = None
) -> None:
    """Write the new version into the manifest and move changelog entries.

    A package without a changelog is reported on `stderr` and otherwise left
    alone.
    """
    pkg = package_plan.package
    set_project_version(Path(pkg.manifest_path), package_plan.new_version)
    if package_plan.should_update_changelog:
        migrate_unreleased_changes_to_release(
            project, pkg, package_plan.new_version, stderr=stderr
        )


def execute_release_plan(
    project: Project,
    plan: ReleasePlan,
    stderr: TextIO | None = None,
    stdout: TextIO | None = None,
) -> None:
    """Update every package in the plan.

    Packages are updated in parallel; each one only touches its own files.
    If any update fails, the first failure is raised once all updates have
    finished. Updates that succeeded are not rolled back.

    Raises:
        ExecutionError: Wrapping the first failed update.
    """
    out = stdout or sys.stdout
    step(f"Updating {len(plan.packages)} packages", file=out)
    for package_plan in plan.packages:
        pkg = package_plan.package
        print(f"  {pkg.name}: {pkg.version} → {package_plan.new_version}", file=out)

    with ThreadPoolExecutor(max_workers=max(len(plan.packages), 1)) as executor:
        futures = {
            executor.submit(update_package, project, package_plan, stderr): package_plan
            for package_plan in plan.packages
        }
        failure: tuple[PackageReleasePlan, BaseException] | None = None
        for future in as_completed(futures):
            exc = future.exception()
            if exc is not None and failure is None:
                failure = (futures[future], exc)

    if failure is not None:
        package_plan, exc = failure
        raise ExecutionError(
            f"Failed to update package {package_plan.package.name} "
            f"to {package_plan.new_version}: {exc}"
        ) from exc
