"""Error types raised while preparing a release.

Every error knows whether the release spec file should survive it. Errors the
user can fix by editing the spec again keep the file; errors that leave its
contents in doubt do not.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel

RETAINED_SPEC_AFTERWORD = (
    "The release spec file has been retained for you to edit again and make "
    "the necessary fixes. Once you've done this, re-run this tool."
)


class ReleaseError(Exception):
    """Base class for all errors raised by create-release-branch."""

    retain_spec_file: bool = False

    def __init__(self, message: str, *, retain_spec_file: bool | None = None):
        super().__init__(message)
        if retain_spec_file is not None:
            self.retain_spec_file = retain_spec_file


class ProjectError(ReleaseError):
    """The project could not be read from disk or git."""


class NoChangesError(ReleaseError):
    """No workspace package has changed since its latest release."""


class EditorExecutionError(ReleaseError):
    """The editor could not be spawned or exited with a non-zero status."""


class ExecutionError(ReleaseError):
    """A package could not be updated while executing a release plan."""

    retain_spec_file = True


class ParseError(ReleaseError):
    """The release spec is not valid YAML."""

    retain_spec_file = True

    def __init__(self, diagnostic: str, line_number: int, path: str | None = None):
        self.diagnostic = diagnostic
        self.line_number = line_number
        self.path = path
        parts = [
            "Your release spec does not appear to be valid YAML.",
            f"Line {line_number}: {diagnostic}",
        ]
        if path is not None:
            parts.extend([RETAINED_SPEC_AFTERWORD, path])
        super().__init__("\n\n".join(parts))


class StructuralError(ReleaseError):
    """The release spec is valid YAML but does not have the expected shape."""

    retain_spec_file = True

    def __init__(self, parsed: Any, path: str):
        self.parsed = parsed
        self.path = path
        super().__init__(
            "\n\n".join(
                [
                    "Your release spec could not be processed because it needs "
                    "to be an object with a `packages` property. The value of "
                    "`packages` must itself be an object, where each key is a "
                    "workspace package in the project and each value is a "
                    'version specifier ("major", "minor", or "patch"; or a '
                    "version string with major, minor, and patch parts, such "
                    'as "1.2.3").',
                    "Here is the parsed version of the file you provided:",
                    json.dumps(parsed, indent=2, default=str),
                    RETAINED_SPEC_AFTERWORD,
                    path,
                ]
            )
        )


class IssueKind(str, Enum):
    """Kinds of problems found in a release spec, in reporting order."""

    UNKNOWN_PACKAGE = "unknown-package"
    INVALID_DIRECTIVE = "invalid-directive"
    ALREADY_AT_VERSION = "already-at-version"
    AT_GREATER_VERSION = "at-greater-version"
    MISSING_CHANGED_PACKAGE = "missing-changed-package"
    MISSING_MAJOR_BUMP_PEER_DEPENDENT = "missing-major-bump-peer-dependent"
    MISSING_MAJOR_BUMP_DIRECT_DEPENDENT = "missing-major-bump-direct-dependent"
    MISSING_TRANSITIVE_CHANGE_DEPENDENCY = "missing-transitive-change-dependency"


class ValidationIssue(BaseModel):
    """A single problem with one entry of the release spec.

    Attributes:
        kind: What went wrong.
        package_name: The entry (or missing package) the issue is about.
        message: The first line is the summary; any further lines are
                 rendered indented beneath it.
        line_number: 1-based line of the entry, or None when the package
                     is not listed at all.
    """

    kind: IssueKind
    package_name: str
    message: list[str]
    line_number: int | None = None

    def format(self) -> list[str]:
        item_prefix = "* "
        line_prefix = "" if self.line_number is None else f"Line {self.line_number}: "
        first, *rest = self.message
        indent = " " * (len(item_prefix) + len(line_prefix))
        lines = [f"{item_prefix}{line_prefix}{first}"]
        for extra in rest:
            lines.extend(f"{indent}{line}" if line else "" for line in extra.split("\n"))
        return lines


class AggregatedValidationError(ReleaseError):
    """All of the issues found in a release spec, reported together."""

    retain_spec_file = True

    def __init__(self, issues: list[ValidationIssue], path: str):
        order = list(IssueKind)
        self.issues = sorted(issues, key=lambda issue: order.index(issue.kind))
        self.path = path
        body = "\n".join(line for issue in self.issues for line in issue.format())
        super().__init__(
            "\n\n".join(
                [
                    "Your release spec could not be processed due to the "
                    "following issues:",
                    body,
                    RETAINED_SPEC_AFTERWORD,
                    path,
                ]
            )
        )

    def issues_of_kind(self, kind: IssueKind) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.kind == kind]
