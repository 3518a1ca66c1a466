"""Release workflow: branch → initialize → spec → validate → plan → execute → commit.

This module orchestrates preparing a monorepo release:
1. Switch to (or create) the release branch for the next release version
2. On a new branch, fill in changelogs and commit them as a starting point
3. Generate the release spec and let the user edit it
4. Validate the spec against the project
5. Restore changelogs of changed packages the user chose not to release
6. Plan and apply the version and changelog updates
7. Commit the result

The workflow can be interrupted and run again. The only state carried between
runs is the checked-out branch and the release spec file in the temporary
directory: when the branch already exists it is reused, and when the spec
file already exists the editing step is skipped.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TextIO

from .changelog import (
    populate_changelogs_for_changed_packages,
    restore_changelogs_for_skipped_packages,
)
from .editor import resolve_editor, wait_for_user_to_edit_release_spec
from .errors import ReleaseError
from .models import BranchAcquisition, Project, ReleaseType, WorkflowState
from .release_plan import execute_release_plan, plan_release
from .release_spec import generate_release_spec_template, load_release_spec
from .repo import (
    branch_exists,
    checkout_branch,
    checkout_new_branch,
    commit_all_changes,
    get_current_branch_name,
)
from .shell import step
from .versions import determine_new_release_version

RELEASE_SPEC_FILE_NAME = "RELEASE_SPEC.yml"


def release_branch_name(version: str) -> str:
    return f"release/{version}"


def create_release_branch(
    project: Project, release_type: ReleaseType, stdout: TextIO | None = None
) -> BranchAcquisition:
    """Switch to the branch for the next release, creating it if needed.

    Ordinary releases increment the ordinary number (12.3.0 → 13.0.0);
    backport releases increment the backport number (12.3.0 → 12.4.0).

    Returns:
        The release version, and whether the branch was created just now.
        Running this again after it created the branch returns
        first_run=False.
    """
    out = stdout or sys.stdout
    version = determine_new_release_version(project.release_version, release_type)
    branch_name = release_branch_name(version)

    if get_current_branch_name(project.directory_path) == branch_name:
        print(f"  Already on {branch_name}", file=out)
        return BranchAcquisition(version=version, first_run=False)

    if branch_exists(project.directory_path, branch_name):
        print(f"  {branch_name} already exists, checking it out", file=out)
        checkout_branch(project.directory_path, branch_name)
        return BranchAcquisition(version=version, first_run=False)

    checkout_new_branch(project.directory_path, branch_name)
    print(f"  Created {branch_name}", file=out)
    return BranchAcquisition(version=version, first_run=True)


def _commit(project: Project, message: str, stdout: TextIO) -> None:
    if commit_all_changes(project.directory_path, message):
        print(f"  Committed: {message}", file=stdout)
    else:
        print("  No changes to commit", file=stdout)


def _edit_release_spec(
    project: Project,
    spec_path: Path,
    preferred_editor: str | None,
    stdout: TextIO,
) -> bool:
    """Write the spec template and hand it to the user.

    Returns:
        True once the file has been edited, False if no editor is available
        and the user has to edit the file and run the tool again.

    Raises:
        EditorExecutionError: If the editor fails. The spec file is deleted
                              first, since its contents cannot be trusted.
    """
    editor = resolve_editor(preferred_editor)
    template = generate_release_spec_template(project, is_editor_available=editor is not None)
    spec_path.parent.mkdir(parents=True, exist_ok=True)
    spec_path.write_text(template)

    if editor is None:
        print(
            "A template has been generated that specifies this release. Please "
            "open the following file in your editor of choice, then re-run "
            f"this tool:\n\n{spec_path}",
            file=stdout,
        )
        return False

    try:
        wait_for_user_to_edit_release_spec(str(spec_path), editor, stdout)
    except ReleaseError:
        spec_path.unlink(missing_ok=True)
        raise
    return True


def follow_monorepo_workflow(
    project: Project,
    temp_directory_path: str | Path,
    *,
    reset: bool = False,
    release_type: ReleaseType = "ordinary",
    default_branch: str = "main",
    preferred_editor: str | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> WorkflowState:
    """Run the release workflow as far as it can go.

    Args:
        project: The project, as read at the start of this run.
        temp_directory_path: Where the release spec file is kept between runs.
        reset: Discard an existing release spec and start editing afresh.
        release_type: "ordinary" or "backport".
        default_branch: Branch to restore skipped packages' changelogs from.
        preferred_editor: Editor command to try first (usually $EDITOR).
        stdout: Stream for progress output.
        stderr: Stream for warnings.

    Returns:
        WorkflowState.AWAITING_EDIT if the run stopped for the user to edit
        the spec by hand, otherwise WorkflowState.DONE.

    Raises:
        ReleaseError: Whatever went wrong. The release spec file is kept
                      unless the error says otherwise.
    """
    out = stdout or sys.stdout
    err = stderr or sys.stderr
    state: WorkflowState | None = None

    try:
        step("Acquiring release branch", file=out)
        branch = create_release_branch(project, release_type, out)
        state = WorkflowState.BRANCH_ACQUIRED

        if branch.first_run:
            step("Initializing release", file=out)
            added = populate_changelogs_for_changed_packages(project, err)
            for name, count in added.items():
                print(f"  {name}: {count} new changelog entries", file=out)
            _commit(project, f"Initialize Release {branch.version}", out)
            state = WorkflowState.INITIALIZED

        spec_path = Path(temp_directory_path) / RELEASE_SPEC_FILE_NAME
        if not reset and spec_path.exists():
            print(
                "Release spec already exists. Picking back up from previous run.",
                file=out,
            )
        else:
            step("Editing release spec", file=out)
            if not _edit_release_spec(project, spec_path, preferred_editor, out):
                return WorkflowState.AWAITING_EDIT
        state = WorkflowState.SPEC_READY

        step("Validating release spec", file=out)
        spec = load_release_spec(project, spec_path)
        state = WorkflowState.VALIDATED

        for name in restore_changelogs_for_skipped_packages(project, spec, default_branch):
            print(f"  {name}: not released, changelog restored from {default_branch}", file=out)

        plan = plan_release(project, spec, branch.version)
        state = WorkflowState.PLANNED

        execute_release_plan(project, plan, stderr=err, stdout=out)
        state = WorkflowState.EXECUTED

        spec_path.unlink()
        step("Committing release", file=out)
        _commit(project, f"Update Release {branch.version}", out)
        state = WorkflowState.COMMITTED
    except ReleaseError:
        if state is not None:
            print(f"Release workflow stopped after reaching {state.value}.", file=err)
        raise

    print(
        f"\n{'=' * 60}\n"
        f"Release {branch.version} is ready on {release_branch_name(branch.version)}\n"
        f"{'=' * 60}",
        file=out,
    )
    return WorkflowState.DONE
