"""SCM phases: commits, tag, branch, tag removal and the perform checkout.

In simulation these phases only log what a full run would do; the repository
provider is never asked to change anything.
"""

from __future__ import annotations

import time
from enum import Enum
from pathlib import Path

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.platform.files import remove_tree
from relflow.policy.naming import interpolate_name
from relflow.release.descriptor import ReleaseDescriptor
from relflow.release.phase import PhaseRun, ReleasePhase

from .common import (
    DEFAULT_COMMENT_PREFIX,
    PhaseDependencies,
    credentials,
    release_manifest_path,
    working_directory,
)

__all__ = [
    "CheckoutProjectPhase",
    "CommitKind",
    "EndReleasePhase",
    "RemoveScmTagPhase",
    "ScmBranchPhase",
    "ScmCommitPhase",
    "ScmTagPhase",
    "commit_message",
]

CHECKOUT_DIRECTORY = Path("target") / "checkout"


class CommitKind(Enum):
    RELEASE = "@{prefix}prepare release @{releaseLabel}"
    DEVELOPMENT = "@{prefix}prepare for next development iteration"
    BRANCH = "@{prefix}prepare branch @{releaseLabel}"
    ROLLBACK = "@{prefix}rollback the release of @{releaseLabel}"

    def template(self, descriptor: ReleaseDescriptor) -> str:
        match self:
            case CommitKind.RELEASE:
                custom = descriptor.scm_release_commit_comment
            case CommitKind.DEVELOPMENT:
                custom = descriptor.scm_development_commit_comment
            case CommitKind.BRANCH:
                custom = descriptor.scm_branch_commit_comment
            case CommitKind.ROLLBACK:
                custom = descriptor.scm_rollback_commit_comment
        return custom or self.value


def _prefix(descriptor: ReleaseDescriptor) -> str:
    if descriptor.scm_comment_prefix is None:
        return DEFAULT_COMMENT_PREFIX
    prefix = descriptor.scm_comment_prefix
    return prefix if not prefix or prefix.endswith(" ") else prefix + " "


def commit_message(
    template: str, descriptor: ReleaseDescriptor, **extra: str
) -> Result[str, ReleaseError]:
    """Fill ``@{prefix}``, ``@{releaseLabel}`` and any extra placeholders."""
    values: dict[str, str | None] = {
        "prefix": _prefix(descriptor),
        "releaseLabel": descriptor.scm_release_label,
    }
    values.update(extra)
    return interpolate_name(template, values)


def _require_label(descriptor: ReleaseDescriptor, what: str) -> Result[str, ReleaseError]:
    if descriptor.scm_release_label is None:
        return Err(
            ReleaseError(
                kind=ErrorKind.FAILURE,
                message=f"A release label is required to {what}",
                hint="run the input-variables phase or pass --tag",
            )
        )
    return Ok(descriptor.scm_release_label)


class ScmCommitPhase(ReleasePhase):
    """Commit the rewritten manifests, per project or all at once."""

    def __init__(self, phase_id: str, kind: CommitKind, deps: PhaseDependencies) -> None:
        self.phase_id = phase_id
        self.kind = kind
        self.deps = deps

    def _skipped(self, descriptor: ReleaseDescriptor) -> str | None:
        match self.kind:
            case CommitKind.RELEASE | CommitKind.BRANCH if descriptor.suppress_commit_before_tag_or_branch:
                return "Modified manifests are not committed because suppress-commit is set"
            case CommitKind.DEVELOPMENT if (
                descriptor.branch_creation and not descriptor.update_working_copy_versions
            ):
                return "Working copy versions are not updated; nothing to commit"
            case _:
                return None

    def _files(self, run: PhaseRun) -> list[list[Path]]:
        descriptor = run.descriptor
        groups: list[list[Path]] = []
        for project in run.projects:
            files = [project.manifest]
            if descriptor.generate_release_manifests and self.kind in (
                CommitKind.RELEASE,
                CommitKind.DEVELOPMENT,
            ):
                files.append(release_manifest_path(project))
            groups.append(files)
        if descriptor.commit_by_project:
            return groups
        return [[path for files in groups for path in files]]

    def _message(self, descriptor: ReleaseDescriptor) -> Result[str, ReleaseError]:
        if self.kind != CommitKind.DEVELOPMENT:
            label = _require_label(descriptor, "commit")
            if isinstance(label, Err):
                return label
        return commit_message(self.kind.template(descriptor), descriptor)

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        return self._commit(run, simulate=False)

    def simulate(self, run: PhaseRun) -> Result[None, ReleaseError]:
        return self._commit(run, simulate=True)

    def _commit(self, run: PhaseRun, *, simulate: bool) -> Result[None, ReleaseError]:
        descriptor = run.descriptor
        reason = self._skipped(descriptor)
        if reason is not None:
            run.result.info(reason)
            return Ok(None)

        message = self._message(descriptor)
        if isinstance(message, Err):
            return message

        directory = working_directory(descriptor)
        for files in self._files(run):
            if simulate:
                run.result.info(
                    f"Full run would commit {len(files)} file(s) with message: '{message.value}'"
                )
                continue
            run.result.info(f"Checking in modified manifests with message: '{message.value}'")
            committed = self.deps.provider.commit(
                directory, files, message.value, push=descriptor.push_changes
            )
            if isinstance(committed, Err):
                return committed
        return Ok(None)


class ScmTagPhase(ReleasePhase):
    phase_id = "scm-tag"

    def __init__(self, deps: PhaseDependencies) -> None:
        self.deps = deps

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        return self._tag(run, simulate=False)

    def simulate(self, run: PhaseRun) -> Result[None, ReleaseError]:
        return self._tag(run, simulate=True)

    def _tag(self, run: PhaseRun, *, simulate: bool) -> Result[None, ReleaseError]:
        descriptor = run.descriptor
        label = _require_label(descriptor, "tag")
        if isinstance(label, Err):
            return label
        message = commit_message("@{prefix}copy for tag @{releaseLabel}", descriptor)
        if isinstance(message, Err):
            return message

        if simulate:
            run.result.info(f"Full run would tag working copy with label: '{label.value}'")
            return Ok(None)

        if descriptor.wait_before_tagging > 0:
            run.result.info(f"Waiting {descriptor.wait_before_tagging}s before tagging")
            time.sleep(descriptor.wait_before_tagging)

        run.result.info(f"Tagging release with the label {label.value}...")
        return self.deps.provider.tag(
            working_directory(descriptor),
            label.value,
            message.value,
            push=descriptor.push_changes and descriptor.remote_tagging,
        )


class ScmBranchPhase(ReleasePhase):
    phase_id = "scm-branch"

    def __init__(self, deps: PhaseDependencies) -> None:
        self.deps = deps

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        return self._branch(run, simulate=False)

    def simulate(self, run: PhaseRun) -> Result[None, ReleaseError]:
        return self._branch(run, simulate=True)

    def _branch(self, run: PhaseRun, *, simulate: bool) -> Result[None, ReleaseError]:
        descriptor = run.descriptor
        label = _require_label(descriptor, "branch")
        if isinstance(label, Err):
            return label
        message = commit_message("@{prefix}copy for branch @{releaseLabel}", descriptor)
        if isinstance(message, Err):
            return message

        if simulate:
            run.result.info(f"Full run would branch working copy to: '{label.value}'")
            return Ok(None)

        run.result.info(f"Branching release with the label {label.value}...")
        return self.deps.provider.branch(
            working_directory(descriptor),
            label.value,
            message.value,
            push=descriptor.push_changes,
        )


class RemoveScmTagPhase(ReleasePhase):
    phase_id = "remove-scm-tag"

    def __init__(self, deps: PhaseDependencies) -> None:
        self.deps = deps

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        descriptor = run.descriptor
        label = _require_label(descriptor, "remove the tag")
        if isinstance(label, Err):
            return label
        run.result.info(f"Removing tag with the label {label.value}...")
        return self.deps.provider.remove_tag(
            working_directory(descriptor),
            label.value,
            push=descriptor.push_changes and descriptor.remote_tagging,
        )

    def simulate(self, run: PhaseRun) -> Result[None, ReleaseError]:
        run.result.info(f"Full run would remove tag '{run.descriptor.scm_release_label}'")
        return Ok(None)


class CheckoutProjectPhase(ReleasePhase):
    """Clone the release tag into the checkout directory for the perform goals.

    With ``local_checkout`` the clone is made from the working copy itself
    rather than from the SCM url.
    """

    phase_id = "checkout-project-from-scm"

    def __init__(self, deps: PhaseDependencies) -> None:
        self.deps = deps

    def _target(self, descriptor: ReleaseDescriptor) -> Path:
        if descriptor.checkout_directory is not None:
            return descriptor.checkout_directory
        return working_directory(descriptor) / CHECKOUT_DIRECTORY

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        descriptor = run.descriptor
        tag = _require_label(descriptor, "check out the release")
        if isinstance(tag, Err):
            return tag

        if descriptor.local_checkout:
            url = str(working_directory(descriptor))
        elif descriptor.scm_source_url is not None:
            url = descriptor.scm_source_url
        else:
            return Err(
                ReleaseError(
                    kind=ErrorKind.FAILURE,
                    message="No SCM URL was provided to perform the release from",
                    hint="pass --scm-url or resume from release.properties",
                )
            )

        target = self._target(descriptor)
        try:
            if remove_tree(target):
                run.result.info(f"Removed previous checkout {target}")
        except OSError as e:
            return Err(
                ReleaseError(
                    kind=ErrorKind.EXECUTION,
                    message=f"Unable to clear the checkout directory: {e}",
                    hint=str(target),
                )
            )

        run.result.info(f"Checking out the project to perform the release ({tag.value})...")
        checked_out = self.deps.provider.checkout(url, tag.value, target, credentials(descriptor))
        if isinstance(checked_out, Err):
            return checked_out
        descriptor.checkout_directory = target
        return Ok(None)

    def simulate(self, run: PhaseRun) -> Result[None, ReleaseError]:
        target = self._target(run.descriptor)
        run.result.info(f"The project would be checked out to perform the release into {target}")
        return Ok(None)


class EndReleasePhase(ReleasePhase):
    phase_id = "end-release"

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        run.result.info("Release preparation complete.")
        return Ok(None)

    def simulate(self, run: PhaseRun) -> Result[None, ReleaseError]:
        run.result.info("Release preparation simulation complete.")
        return Ok(None)
